from __future__ import annotations

from typing import Optional

import numpy as np


def make_greedy_policy(v: np.ndarray, c: Optional[float] = None) -> np.ndarray:
    """把一行动作价值变成（近似）确定性的贪心分布。

    c 为 None：所有最大值平分概率。
    c 为数值：用 exp(c * (v - vmax) / (vmax - vmin)) 做一个很“尖”的 softmax，
    c 越大越接近硬 argmax，并列最大值在极限下也是平分。
    所有值都相等时直接返回均匀分布。
    """
    v = np.asarray(v, dtype=np.float64)
    vmin, vmax = float(v.min()), float(v.max())
    if vmin == vmax:
        return np.full(v.shape[0], 1.0 / v.shape[0])

    if c is None:
        is_max = v == vmax
        return is_max / is_max.sum()

    z = np.exp(c * (v - vmax) / abs(vmax - vmin))
    return z / z.sum()


def make_epsilon_soft_policy(v: np.ndarray, epsilon: float) -> np.ndarray:
    # 最大动作拿 1 - ε + ε/|A|，其余都是 ε/|A|；并列最大时把 1 - ε 平分
    if not 0.0 <= epsilon <= 1.0:
        raise ValueError(f"epsilon 必须在 [0, 1] 内，实际为 {epsilon}")
    v = np.asarray(v, dtype=np.float64)
    n = v.shape[0]
    is_max = np.isclose(v, v.max())
    probs = np.full(n, epsilon / n)
    probs[is_max] += (1.0 - epsilon) / is_max.sum()
    return probs


def greedy_actions(table: np.ndarray) -> np.ndarray:
    # 每个状态取概率（或价值）最大的动作 id
    return np.argmax(np.asarray(table), axis=1)
