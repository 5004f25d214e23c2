import abc
from typing import Any, Dict, Optional

import numpy as np

from tabular_mc.core.mdp import TabularMDP
from tabular_mc.core.types import Config, Episode, RunResult


class BaseAgent(abc.ABC):
    def __init__(
        self,
        mdp: TabularMDP,
        config: Config,
        target_policy: Optional[np.ndarray] = None,
        behavior_policy: Optional[np.ndarray] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        # 所有 agent 都会用到的几个最基本东西
        self.mdp = mdp
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng()
        self.gamma = float(getattr(config, "gamma", 1.0))
        if not 0.0 <= self.gamma <= 1.0:
            raise ValueError(f"gamma 必须在 [0, 1] 内，实际为 {self.gamma}")
        # 空间的采样（exploring starts 之类）也跟着 agent 的随机流走，方便复现
        self.mdp.seed(int(self.rng.integers(2**31 - 2)))

        # 子类负责把这几张表建出来
        self.values: np.ndarray
        self.counts: np.ndarray
        self.policy: Optional[np.ndarray] = None

    def start_state(self):
        # 默认用环境自己的初始状态分布
        return self.mdp.state_init()

    @abc.abstractmethod
    def start_action(self, state):
        raise NotImplementedError

    @abc.abstractmethod
    def select_action(self, state):
        # 交给环境的回调：episode 中途每一步都靠它出动作（也就是行为策略）
        raise NotImplementedError

    @abc.abstractmethod
    def update(self, episode: Episode) -> Dict[str, float]:
        # 用一整条轨迹更新表，返回一些统计量；至少要有 final_weight
        raise NotImplementedError

    @abc.abstractmethod
    def tracked_value(self, state_id: int) -> float:
        raise NotImplementedError

    def generate_episode(self) -> Episode:
        s0 = self.start_state()
        a0 = self.start_action(s0)
        return self.mdp.simulate(s0, a0, self.select_action)

    def result(self, checkpoints=None, value_history=None, weight_history=None) -> RunResult:
        return RunResult(
            values=self.values,
            counts=self.counts,
            policy=self.policy,
            checkpoints=np.zeros(0, dtype=np.int64) if checkpoints is None else checkpoints,
            value_history=np.zeros(0) if value_history is None else value_history,
            weight_history=np.zeros(0) if weight_history is None else weight_history,
        )

    def save(self) -> Dict[str, Any]:
        data = {"values": self.values.copy(), "counts": self.counts.copy()}
        if self.policy is not None:
            data["policy"] = self.policy.copy()
        return data

    def load(self, data: Dict[str, Any]):
        values = np.asarray(data["values"], dtype=np.float64)
        counts = np.asarray(data["counts"], dtype=np.float64)
        if values.shape != self.values.shape or counts.shape != self.counts.shape:
            raise ValueError(f"表的形状对不上：期望 {self.values.shape}，实际 {values.shape}")
        self.values = values.copy()
        self.counts = counts.copy()
        if "policy" in data and self.policy is not None:
            self.policy = np.asarray(data["policy"]).astype(self.policy.dtype, copy=True)
