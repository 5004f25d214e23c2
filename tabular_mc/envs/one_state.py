"""
Example 5.5 的单状态 MDP（无限方差的例子）。

- right：直接结束，奖励 0
- left：以 0.1 的概率结束并拿 +1，否则奖励 0 回到同一个状态

目标策略永远选 left（真值 v_π(s) = 1），行为策略左右各 0.5。
"""
from __future__ import annotations

from typing import Optional

import numpy as np

from tabular_mc.core.mdp import TabularMDP, make_random_policy

LEFT = "left"
RIGHT = "right"
ACTIONS = (LEFT, RIGHT)
STATE = 0


class OneStateSimulator:
    def __init__(self, rng: Optional[np.random.Generator] = None, terminate_prob: float = 0.1):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.terminate_prob = terminate_prob

    def step(self, action: str):
        # 返回 (奖励, 是否结束)
        if action == RIGHT:
            return 0.0, True
        if self.rng.random() <= self.terminate_prob:
            return 1.0, True
        return 0.0, False

    def __call__(self, s0, a0, action_selector):
        trajectory = [(s0, a0)]
        reward, done = self.step(a0)
        rewards = [reward]
        while not done:
            action = action_selector(s0)
            trajectory.append((s0, action))
            reward, done = self.step(action)
            rewards.append(reward)
        return trajectory, rewards


def make_one_state_mdp(rng: Optional[np.random.Generator] = None, terminate_prob: float = 0.1) -> TabularMDP:
    return TabularMDP([STATE], ACTIONS, lambda: STATE, OneStateSimulator(rng, terminate_prob))


def make_target_policy(mdp: TabularMDP) -> np.ndarray:
    policy = np.zeros((mdp.num_states, mdp.num_actions))
    policy[:, mdp.action_index(LEFT)] = 1.0
    return policy


def make_behavior_policy(mdp: TabularMDP) -> np.ndarray:
    return make_random_policy(mdp)
