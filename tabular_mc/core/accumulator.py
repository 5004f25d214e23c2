"""
轨迹累加器：从最后一步往前走一遍 episode，边走边维护折扣回报 g 和重要性权重 w，
每一步交给 UpdateRule 去改表。

这里没有 first-visit 检查（除非显式打开），所以默认就是 every-visit 估计：
同一个状态在一条轨迹里出现几次，就按各自之后的回报更新几次。

三个变体的区别只在 w 什么时候乘上当前步的比率：
- 状态价值 V(s)：先乘再更新（这一步的动作本身也要被目标策略“认可”）
- 动作价值 Q(s,a)：先更新再乘（Q 是以 a 已经发生为条件的）
- 离策略控制：目标策略是确定性的 argmax，动作对不上就直接停
"""
from __future__ import annotations

from typing import Callable, Dict, Optional

import numpy as np

from tabular_mc.core.importance import UpdateRule, WeightedImportance
from tabular_mc.core.types import Episode


def _first_visit_steps(state_ids) -> Dict[int, int]:
    first: Dict[int, int] = {}
    for t, s in enumerate(state_ids):
        first.setdefault(s, t)
    return first


def backward_state_pass(
    episode: Episode,
    values: np.ndarray,
    counts: np.ndarray,
    gamma: float,
    rule: UpdateRule,
    target: Optional[np.ndarray] = None,
    behavior: Optional[np.ndarray] = None,
    first_visit: bool = False,
) -> float:
    """更新 V，返回这条轨迹最后（也就是最早一步）的累计权重。

    target / behavior 都不给时就是同策略，w 恒为 1。
    """
    off_policy = target is not None
    if off_policy and behavior is None:
        raise ValueError("离策略更新需要同时给出 target 和 behavior。")

    first = _first_visit_steps(episode.state_ids) if first_visit else None
    g = 0.0
    w = 1.0
    for t in reversed(range(len(episode))):
        s = episode.state_ids[t]
        a = episode.action_ids[t]
        g = gamma * g + episode.rewards[t]
        if off_policy:
            w = w * (target[s, a] / behavior[s, a])
        # 加权模式下 w = 0 之后分子分母都不会再变，直接结束
        if w == 0 and rule.stops_at_zero_weight:
            break
        if first is not None and first[s] != t:
            continue
        rule.update(values, counts, s, g, w)
    return float(w)


def backward_action_pass(
    episode: Episode,
    values: np.ndarray,
    counts: np.ndarray,
    gamma: float,
    rule: UpdateRule,
    target: Optional[np.ndarray] = None,
    behavior: Optional[np.ndarray] = None,
    on_update: Optional[Callable[[int], None]] = None,
) -> float:
    """更新 Q。on_update(state_id) 在每次 Q 更新后立刻调用（控制算法在这里改策略）。"""
    off_policy = target is not None
    if off_policy and behavior is None:
        raise ValueError("离策略更新需要同时给出 target 和 behavior。")

    g = 0.0
    w = 1.0
    for t in reversed(range(len(episode))):
        s = episode.state_ids[t]
        a = episode.action_ids[t]
        g = gamma * g + episode.rewards[t]
        rule.update(values, counts, (s, a), g, w)
        if on_update is not None:
            on_update(s)
        if off_policy:
            w = w * (target[s, a] / behavior[s, a])
        if w == 0 and rule.stops_at_zero_weight:
            break
    return float(w)


def backward_control_pass(
    episode: Episode,
    values: np.ndarray,
    counts: np.ndarray,
    greedy: np.ndarray,
    behavior: np.ndarray,
    gamma: float,
    full_ratio: bool = False,
) -> float:
    """离策略 MC 控制的内循环：加权重要性采样 + 确定性贪心目标策略。

    默认用 w <- w / b(a|s)：动作和贪心动作一致时 π(a|s) 恒为 1。
    full_ratio=True 时按完整比率 π(a|s)/b(a|s) 算，只用来核对两者一致。
    """
    rule = WeightedImportance()
    g = 0.0
    w = 1.0
    for t in reversed(range(len(episode))):
        s = episode.state_ids[t]
        a = episode.action_ids[t]
        g = gamma * g + episode.rewards[t]
        rule.update(values, counts, (s, a), g, w)
        greedy[s] = int(np.argmax(values[s]))
        if full_ratio:
            pi = 1.0 if a == greedy[s] else 0.0
            w = w * (pi / behavior[s, a])
            if w == 0:
                break
        else:
            # 轨迹动作不是贪心动作：更早的步比率都是 0，没必要再走
            if a != greedy[s]:
                break
            w = w / behavior[s, a]
    return float(w)
