from dataclasses import dataclass

import numpy as np

from tabular_mc.algos.off_policy_v.agent import OffPolicyVAgent, OffPolicyVConfig
from tabular_mc.core.accumulator import backward_action_pass
from tabular_mc.core.mdp import initialize_state_action_value
from tabular_mc.core.types import Episode


@dataclass
class OffPolicyQConfig(OffPolicyVConfig):
    """离策略动作价值预测的配置结构定义（字段和状态价值版一样）。"""


class OffPolicyQAgent(OffPolicyVAgent):
    """离策略 Q_π 预测：和 V 版只差在 w 的更新时机（Q 更新之后才乘比率）。"""

    def init_tables(self):
        self.values = initialize_state_action_value(self.mdp, getattr(self.config, "initial_value", 0.0))
        self.counts = np.zeros((self.mdp.num_states, self.mdp.num_actions))

    def accumulate(self, episode: Episode) -> float:
        return backward_action_pass(
            episode, self.values, self.counts, self.gamma, self.rule, self.target, self.behavior
        )

    def tracked_value(self, state_id: int) -> float:
        # 目标策略下这个状态的价值：Σ_a π(a|s) Q(s,a)
        return float(self.target[state_id] @ self.values[state_id])
