"""
多副本并行：每个副本一套独立的表和独立的随机数流，跑完再合并。

比起多个 episode 同时改一张共享表（要加锁），副本更简单，也正好拿来估计
“同样的设置跑很多次，估计值的方差有多大”。
"""
from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from typing import Callable, List, Sequence, Tuple

import numpy as np

from tabular_mc.core.types import RunResult

ReplicaFn = Callable[[np.random.Generator], RunResult]


def spawn_rngs(seed: int, num_replicas: int) -> List[np.random.Generator]:
    # SeedSequence.spawn 保证各副本的随机流互不重叠
    children = np.random.SeedSequence(seed).spawn(int(num_replicas))
    return [np.random.default_rng(child) for child in children]


def run_replicas(run_fn: ReplicaFn, num_replicas: int, seed: int = 0, workers: int = 1) -> List[RunResult]:
    """对每个副本调用 run_fn(rng)。

    workers > 1 时走进程池，这时 run_fn 必须能被 pickle（模块级函数或 functools.partial）。
    """
    rngs = spawn_rngs(seed, num_replicas)
    if int(workers) <= 1:
        return [run_fn(rng) for rng in rngs]

    with ProcessPoolExecutor(max_workers=int(workers)) as pool:
        return list(pool.map(run_fn, rngs))


def merge_replicas(results: Sequence[RunResult]) -> RunResult:
    # 两种更新规则下 C_i * V_i 都正好是 Σ w*g，所以合并就是 Σ C_i V_i / Σ C_i
    # 只合并价值表；控制算法各副本的策略没法这样合并，结果里 policy 为 None
    if not results:
        raise ValueError("至少需要一个副本才能合并。")

    counts = np.sum([r.counts for r in results], axis=0)
    weighted_sum = np.sum([r.counts * r.values for r in results], axis=0)
    # 分母为 0 的位置没有任何有效样本，保留第一个副本的值（也就是初始值）
    values = np.array(results[0].values, dtype=np.float64, copy=True)
    np.divide(weighted_sum, counts, out=values, where=counts != 0)
    return RunResult(values=values, counts=counts)


def history_variance(results: Sequence[RunResult]) -> Tuple[np.ndarray, np.ndarray]:
    # 各副本在同一批检查点上的估计值：返回 (均值, 方差)
    histories = np.stack([r.value_history for r in results], axis=0)
    return histories.mean(axis=0), histories.var(axis=0)
