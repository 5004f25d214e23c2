from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from tabular_mc.core.accumulator import backward_state_pass
from tabular_mc.core.base_agent import BaseAgent
from tabular_mc.core.importance import make_update_rule
from tabular_mc.core.mdp import (
    TabularMDP,
    check_coverage,
    check_policy,
    initialize_state_value,
    sample_action,
)
from tabular_mc.core.types import Config, Episode


@dataclass
class OffPolicyVConfig(Config):
    """离策略状态价值预测（重要性采样）的配置结构定义。"""

    gamma: float = 1.0
    num_episodes: int = 10000
    initial_value: float = 0.0
    sample_method: str = "ordinary"
    # 只关心某一个状态时，每条 episode 都从它开始
    fixed_start_state_index: Optional[int] = None
    # 第一步动作用目标策略选（后面仍然用行为策略），保证每条 episode 都“有用”
    use_target_for_first_action: bool = False
    # 日志里跟踪哪个状态；None 用环境默认的那个
    history_state_index: Optional[int] = None


class OffPolicyVAgent(BaseAgent):
    """用行为策略 b 的轨迹估计目标策略 π 的 V_π。"""

    def __init__(
        self,
        mdp: TabularMDP,
        config: Config,
        target_policy: Optional[np.ndarray] = None,
        behavior_policy: Optional[np.ndarray] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(mdp, config, target_policy, behavior_policy, rng)
        if target_policy is None or behavior_policy is None:
            raise ValueError("离策略预测需要同时给出 target_policy 和 behavior_policy。")

        # 跑之前先把所有能查的都查了：形状、概率和、覆盖性
        check_policy(target_policy, mdp)
        check_policy(behavior_policy, mdp)
        check_coverage(target_policy, behavior_policy, mdp)

        self.target = np.asarray(target_policy, dtype=np.float64)
        self.behavior = np.asarray(behavior_policy, dtype=np.float64)
        self.rule = make_update_rule(getattr(config, "sample_method", "ordinary"))

        start_index = getattr(config, "fixed_start_state_index", None)
        if start_index is not None and not 0 <= int(start_index) < mdp.num_states:
            raise ValueError(f"fixed_start_state_index 越界：{start_index}（共 {mdp.num_states} 个状态）")
        self.fixed_start_state_index = None if start_index is None else int(start_index)
        self.use_target_for_first_action = bool(getattr(config, "use_target_for_first_action", False))

        self.init_tables()

    def init_tables(self):
        self.values = initialize_state_value(self.mdp, getattr(self.config, "initial_value", 0.0))
        self.counts = np.zeros(self.mdp.num_states)

    def start_state(self):
        if self.fixed_start_state_index is not None:
            return self.mdp.states[self.fixed_start_state_index]
        return self.mdp.state_init()

    def start_action(self, state):
        policy = self.target if self.use_target_for_first_action else self.behavior
        return self.mdp.actions[sample_action(policy, self.mdp.state_index(state), self.rng)]

    def select_action(self, state):
        return self.mdp.actions[sample_action(self.behavior, self.mdp.state_index(state), self.rng)]

    def accumulate(self, episode: Episode) -> float:
        # V 的版本：w 先乘上当前步的比率再更新
        return backward_state_pass(
            episode, self.values, self.counts, self.gamma, self.rule, self.target, self.behavior
        )

    def update(self, episode: Episode) -> Dict[str, float]:
        w = self.accumulate(episode)
        return {
            "episode_return": episode.episode_return,
            "episode_length": float(len(episode)),
            "final_weight": w,
        }

    def tracked_value(self, state_id: int) -> float:
        return float(self.values[state_id])
