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
from tabular_mc.core.policies import make_greedy_policy
from tabular_mc.core.types import Config, Episode


@dataclass
class MCESConfig(Config):
    """Exploring Starts 蒙特卡洛控制的配置结构定义。"""

    gamma: float = 1.0
    num_episodes: int = 100000
    initial_value: float = 0.0
    # None 表示并列最大值严格平分；给数值就用很尖的 softmax（数值越大越接近硬 argmax）
    greedy_temperature: Optional[float] = None
    # 日志里跟踪哪个状态；None 用环境默认的那个
    history_state_index: Optional[int] = None


class MCESAgent(BaseAgent):
    """MC ES：起点 (s, a) 都均匀随机，每次 Q 更新后立刻把该状态的策略改成贪心。"""

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
            target_policy = make_random_policy(mdp)
        check_policy(target_policy, mdp)

        self.policy = np.array(target_policy, dtype=np.float64, copy=True)
        self.values = initialize_state_action_value(mdp, getattr(config, "initial_value", 0.0))
        self.counts = np.zeros((mdp.num_states, mdp.num_actions))
        self.temperature = getattr(config, "greedy_temperature", None)
        self.rule = OrdinaryImportance()

    def start_state(self):
        # exploring starts：状态和动作都从整个空间里均匀抽
        return self.mdp.states[int(self.mdp.observation_space.sample())]

    def start_action(self, state):
        return self.mdp.actions[int(self.mdp.action_space.sample())]

    def select_action(self, state):
        i_a = sample_action(self.policy, self.mdp.state_index(state), self.rng)
        return self.mdp.actions[i_a]

    def improve(self, state_id: int):
        self.policy[state_id] = make_greedy_policy(self.values[state_id], self.temperature)

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
