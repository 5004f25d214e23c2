from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from tabular_mc.core.accumulator import backward_action_pass
from tabular_mc.core.base_agent import BaseAgent
from tabular_mc.core.importance import OrdinaryImportance
from tabular_mc.core.mdp import (
    TabularMDP,
    check_policy,
    initialize_state_action_value,
    make_random_policy,
    sample_action,
)
from tabular_mc.core.policies import greedy_actions, make_epsilon_soft_policy
from tabular_mc.core.types import Config, Episode


@dataclass
class MCEpsilonSoftConfig(Config):
    """ε-soft 同策略蒙特卡洛控制的配置结构定义。"""

    gamma: float = 1.0
    num_episodes: int = 100000
    initial_value: float = 0.0
    epsilon: float = 0.1
    # 日志里跟踪哪个状态；None 用环境默认的那个
    history_state_index: Optional[int] = None


class MCEpsilonSoftAgent(BaseAgent):
    """不用 exploring starts 的同策略控制：策略始终是 ε-soft，同时当目标和行为策略。"""

    def __init__(
        self,
        mdp: TabularMDP,
        config: Config,
        target_policy: Optional[np.ndarray] = None,
        behavior_policy: Optional[np.ndarray] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(mdp, config, target_policy, behavior_policy, rng)
        self.epsilon = float(getattr(config, "epsilon", 0.1))
        if not 0.0 < self.epsilon <= 1.0:
            raise ValueError(f"ε-soft 控制要求 0 < epsilon <= 1，实际为 {self.epsilon}")

        if target_policy is None:
            target_policy = make_random_policy(mdp)
        check_policy(target_policy, mdp)

        self.policy = np.array(target_policy, dtype=np.float64, copy=True)
        self.values = initialize_state_action_value(mdp, getattr(config, "initial_value", 0.0))
        self.counts = np.zeros((mdp.num_states, mdp.num_actions))
        self.rule = OrdinaryImportance()

    def start_action(self, state):
        return self.select_action(state)

    def select_action(self, state):
        i_a = sample_action(self.policy, self.mdp.state_index(state), self.rng)
        return self.mdp.actions[i_a]

    def improve(self, state_id: int):
        self.policy[state_id] = make_epsilon_soft_policy(self.values[state_id], self.epsilon)

    def update(self, episode: Episode) -> Dict[str, float]:
        w = backward_action_pass(
            episode, self.values, self.counts, self.gamma, self.rule, on_update=self.improve
        )
        return {
            "episode_return": episode.episode_return,
            "episode_length": float(len(episode)),
            "final_weight": w,
        }

    def tracked_value(self, state_id: int) -> float:
        return float(self.policy[state_id] @ self.values[state_id])

    def greedy_policy(self) -> np.ndarray:
        # 训练完把 ε-soft 策略收成确定性策略（每个状态一个动作 id）
        return greedy_actions(self.policy)
