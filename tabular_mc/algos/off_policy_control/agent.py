from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from tabular_mc.core.accumulator import backward_control_pass
from tabular_mc.core.base_agent import BaseAgent
from tabular_mc.core.mdp import TabularMDP, initialize_state_action_value, make_random_policy
from tabular_mc.core.types import Config, Episode


@dataclass
class OffPolicyControlConfig(Config):
    """离策略蒙特卡洛控制的配置结构定义。"""

    gamma: float = 1.0
    num_episodes: int = 100000
    initial_value: float = 0.0
    # True 时按完整比率 π/b 更新权重（只用来核对和 1/b 的写法一致）
    full_ratio: bool = False
    # 日志里跟踪哪个状态；None 用环境默认的那个
    history_state_index: Optional[int] = None


class OffPolicyControlAgent(BaseAgent):
    """离策略 MC 控制：行为策略永远是均匀随机，目标策略是 Q 上的确定性 argmax。"""

    def __init__(
        self,
        mdp: TabularMDP,
        config: Config,
        target_policy: Optional[np.ndarray] = None,
        behavior_policy: Optional[np.ndarray] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        super().__init__(mdp, config, target_policy, behavior_policy, rng)
        # 传进来的策略这里都不用：b 固定均匀，π 从 Q 里算
        self.behavior = make_random_policy(mdp)
        self.values = initialize_state_action_value(mdp, getattr(config, "initial_value", 0.0))
        self.counts = np.zeros((mdp.num_states, mdp.num_actions))
        # 贪心动作一开始随便给
        self.greedy = self.rng.integers(mdp.num_actions, size=mdp.num_states)
        self.full_ratio = bool(getattr(config, "full_ratio", False))

    @property
    def policy(self) -> np.ndarray:
        # 对外仍然给一个 (num_states, num_actions) 的分布矩阵，方便和别的算法统一
        probs = np.zeros((self.mdp.num_states, self.mdp.num_actions))
        probs[np.arange(self.mdp.num_states), self.greedy] = 1.0
        return probs

    @policy.setter
    def policy(self, value):
        if value is not None:
            self.greedy = np.argmax(np.asarray(value), axis=1)

    def start_action(self, state):
        return self.select_action(state)

    def select_action(self, state):
        return self.mdp.actions[int(self.mdp.action_space.sample())]

    def update(self, episode: Episode) -> Dict[str, float]:
        w = backward_control_pass(
            episode, self.values, self.counts, self.greedy, self.behavior, self.gamma, self.full_ratio
        )
        return {
            "episode_return": episode.episode_return,
            "episode_length": float(len(episode)),
            "final_weight": w,
        }

    def tracked_value(self, state_id: int) -> float:
        return float(self.values[state_id, self.greedy[state_id]])

    def greedy_policy(self) -> np.ndarray:
        return self.greedy.copy()

    def save(self):
        data = super().save()
        data["greedy"] = self.greedy.copy()
        return data

    def load(self, data):
        super().load(data)
        if "greedy" in data:
            self.greedy = np.asarray(data["greedy"], dtype=np.int64).copy()
