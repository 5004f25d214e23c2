from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from tabular_mc.core.accumulator import backward_state_pass
from tabular_mc.core.base_agent import BaseAgent
from tabular_mc.core.importance import OrdinaryImportance
from tabular_mc.core.mdp import TabularMDP, check_policy, initialize_state_value, sample_action
from tabular_mc.core.types import Config, Episode


@dataclass
class MCPredictionConfig(Config):
    """同策略蒙特卡洛预测的配置结构定义。"""

    gamma: float = 1.0
    num_episodes: int = 10000
    initial_value: float = 0.0
    first_visit: bool = False
    # 日志里跟踪哪个状态；None 用环境默认的那个
    history_state_index: Optional[int] = None


class MCPredictionAgent(BaseAgent):
    """同策略 MC 预测：估计 V_π，默认 every-visit。"""

    def __init__(
        self,
        mdp: TabularMDP,
        config: Config,
        target_policy: Optional[np.ndarray] = None,
        behavior_policy: Optional[np.ndarray] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(mdp, config, target_policy, behavior_policy, rng)
        if target_policy is None:
            raise ValueError("MC 预测需要给出要评估的策略（target_policy）。")
        check_policy(target_policy, mdp)

        self.pi = np.asarray(target_policy, dtype=np.float64)
        self.first_visit = bool(getattr(config, "first_visit", False))
        self.values = initialize_state_value(mdp, getattr(config, "initial_value", 0.0))
        self.counts = np.zeros(mdp.num_states)
        # π = b，所以 w 恒为 1，Ordinary 规则就退化成普通的增量平均
        self.rule = OrdinaryImportance()

    def start_action(self, state):
        return self.select_action(state)

    def select_action(self, state):
        i_a = sample_action(self.pi, self.mdp.state_index(state), self.rng)
        return self.mdp.actions[i_a]

    def update(self, episode: Episode) -> Dict[str, float]:
        w = backward_state_pass(
            episode, self.values, self.counts, self.gamma, self.rule, first_visit=self.first_visit
        )
        return {
            "episode_return": episode.episode_return,
            "episode_length": float(len(episode)),
            "final_weight": w,
        }

    def tracked_value(self, state_id: int) -> float:
        return float(self.values[state_id])
