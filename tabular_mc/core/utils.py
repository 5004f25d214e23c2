import random
from typing import Iterable, Optional

import numpy as np


def set_seed(seed: int):
    # 设随机种子，保证每次跑结果差不多（至少不至于完全随机）
    random.seed(seed)
    np.random.seed(seed)


def resolve_checkpoints(num_episodes: int, sample_checkpoints: Optional[Iterable[int]] = None) -> np.ndarray:
    # 检查点是 1 开始的 episode 编号；不传就是每个 episode 都记
    if sample_checkpoints is None:
        return np.arange(1, int(num_episodes) + 1, dtype=np.int64)

    points = np.unique(np.asarray(list(sample_checkpoints), dtype=np.int64))
    if points.size and (points[0] < 1 or points[-1] > num_episodes):
        raise ValueError(f"检查点必须落在 [1, {num_episodes}] 内，实际范围 [{points[0]}, {points[-1]}]")
    return points


def log_spaced_checkpoints(expmax: int) -> np.ndarray:
    # 1,2,...,9, 10,20,...,90, 100,...  每个数量级内最多按 1000 的步长取点，最后补上 10^expmax
    points = []
    for k in range(int(expmax)):
        i = 10**k
        points.extend(range(i, i * 9 + 1, min(i, 1000)))
    points.append(10 ** int(expmax))
    return np.asarray(points, dtype=np.int64)


def log_spaced_checkpoints_upto(num_episodes: int) -> np.ndarray:
    # 对数网格截到 num_episodes，最后一个点一定是 num_episodes 本身
    num_episodes = int(num_episodes)
    if num_episodes < 1:
        return np.zeros(0, dtype=np.int64)
    # 多取一个数量级再截断，保证 num_episodes 之前的点都在
    points = log_spaced_checkpoints(len(str(num_episodes)))
    points = points[points <= num_episodes]
    if points[-1] != num_episodes:
        points = np.append(points, num_episodes)
    return points
