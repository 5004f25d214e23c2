"""
Example 5.1 的 21 点：无限副牌，玩家只在 12..21 之间做决策。

状态 = (玩家点数 12..21, 庄家明牌 1..10（1 是 A）, 玩家是否有可用 A)
动作 = hit / stick
奖励只在最后一步给：赢 +1，输 -1，平 0。
"""
from __future__ import annotations

from typing import List, NamedTuple, Optional, Tuple

import numpy as np

from tabular_mc.core.mdp import TabularMDP

HIT = "hit"
STICK = "stick"
ACTIONS = (HIT, STICK)

# 无限副牌：J/Q/K 都按 10 算，1 表示 A
CARDS = (1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 10, 10, 10)


class BlackjackState(NamedTuple):
    sum: int
    upcard: int
    usable_ace: bool


STATES = [BlackjackState(s, c, ua) for s in range(12, 22) for c in range(1, 11) for ua in (True, False)]


def add_card(total: int, usable_ace: bool, card: int) -> Tuple[int, bool]:
    # 往手牌里加一张牌，返回 (新点数, 是否还有可用 A)
    if card == 1:
        if usable_ace:
            return total + 1, True
        return (total + 1, False) if total >= 11 else (total + 11, True)
    if not usable_ace:
        return total + card, False
    if total + card > 21:
        # 可用 A 从 11 退回 1
        return total + card - 10, False
    return total + card, True


def score_game(player_sum: int, dealer_sum: int) -> float:
    if dealer_sum > 21:
        return 1.0
    if player_sum > dealer_sum:
        return 1.0
    if player_sum < dealer_sum:
        return -1.0
    return 0.0


class BlackjackSimulator:
    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def deal(self) -> int:
        return CARDS[int(self.rng.integers(len(CARDS)))]

    def random_state(self) -> BlackjackState:
        return BlackjackState(
            int(self.rng.integers(12, 22)), int(self.rng.integers(1, 11)), bool(self.rng.random() > 0.5)
        )

    def dealer_play(self, total: int, usable_ace: bool) -> int:
        # 庄家规则固定：不到 17 就一直要牌
        while total < 17:
            total, usable_ace = self.add(total, usable_ace)
        return total

    def add(self, total: int, usable_ace: bool) -> Tuple[int, bool]:
        return add_card(total, usable_ace, self.deal())

    def __call__(self, s0: BlackjackState, a0: str, action_selector):
        # s0 当作发完初始牌后的局面；只有 21 且带可用 A 才算 natural
        player_natural = s0.sum == 21 and s0.usable_ace

        trajectory: List[Tuple[BlackjackState, str]] = [(s0, a0)]
        state, action = s0, a0
        player_sum = s0.sum
        while action == HIT:
            player_sum, usable_ace = self.add(state.sum, state.usable_ace)
            if player_sum > 21:
                break
            state = BlackjackState(player_sum, s0.upcard, usable_ace)
            action = action_selector(state)
            trajectory.append((state, action))

        if player_sum > 21:
            # 玩家爆了，庄家怎么打都无所谓
            final_reward = -1.0
        else:
            # 暗牌 + 明牌组成庄家的初始手牌
            dealer_sum, dealer_ace = add_card(0, False, self.deal())
            dealer_sum, dealer_ace = add_card(dealer_sum, dealer_ace, s0.upcard)
            dealer_natural = dealer_sum == 21
            if player_natural:
                final_reward = 0.0 if dealer_natural else 1.0
            elif dealer_natural:
                final_reward = -1.0
            else:
                final_reward = score_game(player_sum, self.dealer_play(dealer_sum, dealer_ace))

        rewards = [0.0] * (len(trajectory) - 1) + [final_reward]
        return trajectory, rewards


def make_blackjack_mdp(rng: Optional[np.random.Generator] = None) -> TabularMDP:
    simulator = BlackjackSimulator(rng)
    return TabularMDP(STATES, ACTIONS, simulator.random_state, simulator)


def make_stick_policy(mdp: TabularMDP, stick_sum: int = 20) -> np.ndarray:
    # 点数 >= stick_sum 就停牌，否则要牌（Example 5.1 用的是 20）
    policy = np.zeros((mdp.num_states, mdp.num_actions))
    hit, stick = mdp.action_index(HIT), mdp.action_index(STICK)
    for i_s, state in enumerate(mdp.states):
        policy[i_s, stick if state.sum >= stick_sum else hit] = 1.0
    return policy
