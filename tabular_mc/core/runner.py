from __future__ import annotations

from typing import Callable, Dict, Iterable, Optional

import numpy as np

from tabular_mc.core.base_agent import BaseAgent
from tabular_mc.core.types import Episode, RunResult
from tabular_mc.core.utils import resolve_checkpoints

EpisodeCallback = Callable[[int, Episode, Dict[str, float]], None]


def run_agent(
    agent: BaseAgent,
    num_episodes: int,
    history_state_id: int = 0,
    sample_checkpoints: Optional[Iterable[int]] = None,
    on_episode: Optional[EpisodeCallback] = None,
) -> RunResult:
    # 所有 driver 共用的主循环：生成一条 episode -> 倒着累加 -> 到检查点就记一下估计值和权重
    num_episodes = int(num_episodes)
    if num_episodes < 0:
        raise ValueError(f"episode 数不能为负：{num_episodes}")

    checkpoints = resolve_checkpoints(num_episodes, sample_checkpoints)
    value_history = np.zeros(checkpoints.shape[0])
    weight_history = np.ones(checkpoints.shape[0])

    k = 0
    for episode_idx in range(1, num_episodes + 1):
        episode = agent.generate_episode()
        stats = agent.update(episode)

        if k < checkpoints.shape[0] and episode_idx == checkpoints[k]:
            value_history[k] = agent.tracked_value(history_state_id)
            weight_history[k] = stats["final_weight"]
            k += 1

        if on_episode is not None:
            on_episode(episode_idx, episode, stats)

    return agent.result(checkpoints, value_history, weight_history)
