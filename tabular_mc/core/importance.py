"""
重要性采样的两种增量更新规则。

对同一个 key，喂进 n 组 (w_i, g_i) 之后：
- Ordinary：value = (1/n) * Σ w_i g_i      （分母是访问次数，w = 0 也要计数）
- Weighted：value = Σ w_i g_i / Σ w_i      （分母是权重和，w = 0 什么都不变）

两者都是增量公式，不存任何回报列表。
"""
from __future__ import annotations

import abc
from enum import Enum
from typing import Tuple, Union

import numpy as np

Key = Union[int, Tuple[int, int]]


class SampleMethod(str, Enum):
    ORDINARY = "ordinary"
    WEIGHTED = "weighted"


class UpdateRule(abc.ABC):
    method: SampleMethod
    # 权重变成 0 之后，这条轨迹更早的步还要不要继续处理
    stops_at_zero_weight: bool = False

    @abc.abstractmethod
    def update_denominator(self, counts: np.ndarray, key: Key, w: float):
        raise NotImplementedError

    @abc.abstractmethod
    def update_value(self, values: np.ndarray, counts: np.ndarray, key: Key, g: float, w: float):
        raise NotImplementedError

    def update(self, values: np.ndarray, counts: np.ndarray, key: Key, g: float, w: float):
        # 先更新分母，再用新的分母更新估计
        self.update_denominator(counts, key, w)
        self.update_value(values, counts, key, g, w)


class OrdinaryImportance(UpdateRule):
    method = SampleMethod.ORDINARY

    def update_denominator(self, counts, key, w):
        counts[key] += 1.0

    def update_value(self, values, counts, key, g, w):
        # V <- V + (W*G - V) / C
        values[key] += (w * g - values[key]) / counts[key]


class WeightedImportance(UpdateRule):
    method = SampleMethod.WEIGHTED
    stops_at_zero_weight = True

    def update_denominator(self, counts, key, w):
        counts[key] += w

    def update_value(self, values, counts, key, g, w):
        c = counts[key]
        # 权重和还是 0：0/0 当作不更新
        if c == 0:
            return
        # V <- V + W/C * (G - V)
        values[key] += (g - values[key]) * w / c


_RULES = {
    SampleMethod.ORDINARY: OrdinaryImportance,
    SampleMethod.WEIGHTED: WeightedImportance,
}


def make_update_rule(method: Union[str, SampleMethod, UpdateRule]) -> UpdateRule:
    if isinstance(method, UpdateRule):
        return method
    try:
        method = SampleMethod(str(getattr(method, "value", method)).lower())
    except ValueError:
        raise ValueError(
            f"未知的重要性采样方式：{method}，可选：{[m.value for m in SampleMethod]}"
        ) from None
    return _RULES[method]()
