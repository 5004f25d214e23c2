from __future__ import annotations

from typing import Any, Callable, Dict, Hashable, List, Sequence, Tuple

import gymnasium as gym
import numpy as np

from tabular_mc.core.types import Episode

# simulator(s0, a0, action_selector) -> (trajectory, rewards)
# trajectory 是 [(state, action), ...]，rewards 与之等长
Simulator = Callable[[Any, Any, Callable[[Any], Any]], Tuple[Sequence[Tuple[Any, Any]], Sequence[float]]]


class TabularMDP:
    """只能“采样交互”的有限 MDP：状态/动作是任意可哈希的值，动力学藏在 simulator 里。"""

    def __init__(
        self,
        states: Sequence[Hashable],
        actions: Sequence[Hashable],
        state_init: Callable[[], Any],
        simulator: Simulator,
    ):
        self.states: List[Hashable] = list(states)
        self.actions: List[Hashable] = list(actions)
        if not self.states or not self.actions:
            raise ValueError("MDP 至少需要一个状态和一个动作。")

        self.state_lookup: Dict[Hashable, int] = {s: i for i, s in enumerate(self.states)}
        self.action_lookup: Dict[Hashable, int] = {a: i for i, a in enumerate(self.actions)}
        if len(self.state_lookup) != len(self.states) or len(self.action_lookup) != len(self.actions):
            raise ValueError("状态/动作列表里有重复元素。")

        self.state_init = state_init
        self.simulator = simulator

        # 状态/动作都用 id 编号，空间用 Discrete 表示（exploring starts 直接从空间里均匀采样）
        self.observation_space = gym.spaces.Discrete(len(self.states))
        self.action_space = gym.spaces.Discrete(len(self.actions))

    @property
    def num_states(self) -> int:
        return len(self.states)

    @property
    def num_actions(self) -> int:
        return len(self.actions)

    def seed(self, seed: int | None = None):
        self.observation_space.seed(seed)
        self.action_space.seed(None if seed is None else seed + 1)

    def state_index(self, state: Hashable) -> int:
        try:
            return self.state_lookup[state]
        except KeyError:
            raise ValueError(f"未知状态：{state!r}") from None

    def action_index(self, action: Hashable) -> int:
        try:
            return self.action_lookup[action]
        except KeyError:
            raise ValueError(f"未知动作：{action!r}") from None

    def simulate(self, s0, a0, action_selector: Callable[[Any], Any]) -> Episode:
        # 控制权反转：环境自己往前推，需要动作时回调 action_selector(state)
        trajectory, rewards = self.simulator(s0, a0, action_selector)
        trajectory = list(trajectory)
        rewards = [float(r) for r in rewards]
        if len(trajectory) != len(rewards):
            raise ValueError(
                f"simulator 返回的轨迹长度 ({len(trajectory)}) 和奖励长度 ({len(rewards)}) 不一致。"
            )

        states = [s for s, _ in trajectory]
        actions = [a for _, a in trajectory]
        return Episode(
            states=states,
            actions=actions,
            rewards=rewards,
            state_ids=[self.state_index(s) for s in states],
            action_ids=[self.action_index(a) for a in actions],
        )


def make_random_policy(mdp: TabularMDP) -> np.ndarray:
    return np.full((mdp.num_states, mdp.num_actions), 1.0 / mdp.num_actions)


def initialize_state_value(mdp: TabularMDP, init: float = 0.0) -> np.ndarray:
    return np.full(mdp.num_states, float(init))


def initialize_state_action_value(mdp: TabularMDP, init: float = 0.0) -> np.ndarray:
    return np.full((mdp.num_states, mdp.num_actions), float(init))


def check_policy(policy: np.ndarray, mdp: TabularMDP, atol: float = 1e-6):
    # 策略必须和 MDP 定义在同一个空间上：形状对得上、每一行是合法分布
    policy = np.asarray(policy)
    if policy.ndim != 2:
        raise ValueError(f"策略必须是二维数组 (num_states, num_actions)，实际维度 {policy.ndim}")

    n, m = policy.shape
    if n != mdp.num_states:
        raise ValueError(f"策略定义在 {n} 个状态上，和 MDP 的状态数 {mdp.num_states} 不一致")
    if m != mdp.num_actions:
        raise ValueError(f"策略的动作分布长度 {m} 和 MDP 的动作数 {mdp.num_actions} 不一致")
    if np.any(policy < 0):
        raise ValueError("策略里出现了负概率")

    row_sums = policy.sum(axis=1)
    bad = np.nonzero(~np.isclose(row_sums, 1.0, atol=atol))[0]
    if bad.size > 0:
        i_s = int(bad[0])
        raise ValueError(f"状态 {mdp.states[i_s]!r} 的动作概率和为 {row_sums[i_s]}，不是 1")


def check_coverage(target: np.ndarray, behavior: np.ndarray, mdp: TabularMDP | None = None):
    # 覆盖性：π(a|s) > 0 的地方 b(a|s) 也必须 > 0，否则重要性比率没有定义
    uncovered = np.argwhere((np.asarray(target) > 0) & (np.asarray(behavior) <= 0))
    if uncovered.size > 0:
        i_s, i_a = (int(x) for x in uncovered[0])
        where = f"(state={mdp.states[i_s]!r}, action={mdp.actions[i_a]!r})" if mdp is not None else f"({i_s}, {i_a})"
        raise ValueError(f"行为策略没有覆盖目标策略：{where} 处 π > 0 但 b = 0")


def sample_action(policy: np.ndarray, state_id: int, rng: np.random.Generator) -> int:
    probs = policy[state_id]
    return int(rng.choice(probs.shape[0], p=probs))
