from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, is_dataclass
from typing import Any, Dict, Hashable, List, Optional

import numpy as np


@dataclass
class Config:
    # 最简单的配置基类：
    # - 每个算法都有一个 Config dataclass，字段就是超参数（带默认值）
    # - 从 yaml 读到 dict 后：只覆盖同名字段；多出来的字段也允许（临时参数直接挂在对象上）

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        data = data or {}
        if not is_dataclass(cls):
            return cls(**data)

        field_names = {f.name for f in fields(cls)}
        obj = cls(**{k: v for k, v in data.items() if k in field_names})

        # 兼容 yaml 里多写的字段：不报错，直接挂到对象上
        for k, v in data.items():
            if k not in field_names:
                setattr(obj, k, v)
        return obj

    def to_dict(self):
        if is_dataclass(self):
            data = asdict(self)
        else:
            data = dict(getattr(self, "__dict__", {}))

        # 把“额外字段”也一并写出去，保证 config 快照可复现
        for k, v in getattr(self, "__dict__", {}).items():
            if k not in data:
                data[k] = v
        return data


@dataclass
class Episode:
    # 一条完整轨迹：reward[t] 是离开 (state[t], action[t]) 时拿到的即时奖励
    # state_ids / action_ids 由 TabularMDP.simulate 填好，累加器只看 id
    states: List[Hashable]
    actions: List[Hashable]
    rewards: List[float]
    state_ids: List[int]
    action_ids: List[int]

    def __len__(self):
        return len(self.rewards)

    @property
    def episode_return(self) -> float:
        # 未折扣回报，只用来打日志
        return float(sum(self.rewards))


@dataclass
class RunResult:
    # 一次 driver 调用的产物：最终表 + 可选的诊断历史
    values: np.ndarray
    counts: np.ndarray
    policy: Optional[np.ndarray] = None
    checkpoints: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    value_history: np.ndarray = field(default_factory=lambda: np.zeros(0))
    weight_history: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def history_at(self, episode_idx: int) -> float:
        hits = np.nonzero(self.checkpoints == int(episode_idx))[0]
        if hits.size == 0:
            raise KeyError(f"episode {episode_idx} 不在采样检查点里")
        return float(self.value_history[hits[0]])
