"""
Exercise 5.12 的赛道。

- 状态：(位置, 速度)，速度两个分量都在 0..4，除了在起跑线上不能同时为 0
- 动作：速度增量 (dx, dy)，每个分量取 -1/0/+1，共 9 个
- 每一步奖励 -1；路径碰到终点线就结束；冲出赛道就回到随机一个起点、速度清零
- 每一步有 fail_chance 的概率增量失效（当作 (0, 0)）
- max_steps 给 episode 长度设上限，差策略也保证能结束
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import FrozenSet, List, NamedTuple, Optional, Set, Tuple

import numpy as np

from tabular_mc.core.mdp import TabularMDP

Point = Tuple[int, int]

VELOCITIES = [(vx, vy) for vx in range(5) for vy in range(5)]
ACTIONS = [(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1)]


class RaceState(NamedTuple):
    position: Point
    velocity: Point


@dataclass(frozen=True)
class Track:
    start: FrozenSet[Point]
    finish: FrozenSet[Point]
    body: FrozenSet[Point]


def _block(xs, ys) -> Set[Point]:
    return {(x, y) for x in xs for y in ys}


# 书里 Figure 5.5 左边那条赛道
TRACK1 = Track(
    start=frozenset(_block(range(0, 6), [0])),
    finish=frozenset(_block([13], range(26, 32))),
    body=frozenset(
        _block(range(0, 6), range(1, 3))
        | _block(range(-1, 6), range(3, 10))
        | _block(range(-2, 6), range(10, 18))
        | _block(range(-3, 6), range(18, 25))
        | _block(range(-3, 7), [25])
        | _block(range(-3, 13), range(26, 28))
        | _block(range(-2, 13), [28])
        | _block(range(-1, 13), range(29, 31))
        | _block(range(0, 13), [31])
    ),
)


def project_path(position: Point, velocity: Point, action: Point) -> Tuple[Point, Point, Set[Point]]:
    # 往前走一步：返回新位置、新速度，以及这一步扫过的矩形区域
    vx = min(max(velocity[0] + action[0], 0), 4)
    vy = min(max(velocity[1] + action[1], 0), 4)

    # 速度不能两个分量同时为 0
    if vx + vy == 0:
        if (position[0] + position[1]) % 2 == 0:
            vx += 1
        else:
            vy += 1

    new_position = (position[0] + vx, position[1] + vy)
    path = _block(range(position[0], new_position[0] + 1), range(position[1], new_position[1] + 1))
    return new_position, (vx, vy), path


def track_states(track: Track) -> List[RaceState]:
    positions = sorted(track.start | track.body)
    return [RaceState(p, v) for p in positions for v in VELOCITIES]


class RacetrackSimulator:
    def __init__(
        self,
        track: Track = TRACK1,
        rng: Optional[np.random.Generator] = None,
        max_steps: float = math.inf,
        fail_chance: float = 0.1,
    ):
        self.track = track
        self.rng = rng if rng is not None else np.random.default_rng()
        self.max_steps = max_steps
        self.fail_chance = fail_chance
        self._starts = sorted(track.start)

    def random_start(self) -> RaceState:
        return RaceState(self._starts[int(self.rng.integers(len(self._starts)))], (0, 0))

    def step(self, state: RaceState, action: Point) -> Tuple[RaceState, bool]:
        new_position, new_velocity, path = project_path(state.position, state.velocity, action)
        crossed = path & self.track.finish
        if crossed:
            return RaceState(min(crossed), (0, 0)), True
        if path - self.track.body - self.track.start:
            # 冲出赛道：送回起跑线，episode 继续
            return self.random_start(), False
        return RaceState(new_position, new_velocity), False

    def __call__(self, s0: RaceState, a0: Point, action_selector):
        trajectory = [(s0, a0)]
        state, done = self.step(s0, a0)
        rewards = [-1.0]
        n_steps = 1
        while not done and n_steps < self.max_steps:
            action = action_selector(state)
            trajectory.append((state, action))
            applied = action if self.rng.random() > self.fail_chance else (0, 0)
            state, done = self.step(state, applied)
            rewards.append(-1.0)
            n_steps += 1
        return trajectory, rewards


def make_racetrack_mdp(
    track: Track = TRACK1,
    rng: Optional[np.random.Generator] = None,
    max_steps: float = 100_000,
    fail_chance: float = 0.1,
) -> TabularMDP:
    simulator = RacetrackSimulator(track, rng, max_steps, fail_chance)
    return TabularMDP(track_states(track), ACTIONS, simulator.random_start, simulator)
