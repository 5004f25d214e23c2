from dataclasses import dataclass
from typing import Optional

import numpy as np

from tabular_mc.core.mdp import TabularMDP, make_random_policy
from tabular_mc.envs import blackjack, one_state, racetrack


@dataclass
class EnvBundle:
    # 一个环境 + 它默认配套的目标/行为策略 + 默认跟踪的状态
    mdp: TabularMDP
    target_policy: np.ndarray
    behavior_policy: np.ndarray
    history_state: object


def list_envs():
    return ["blackjack", "one_state", "racetrack"]


def make_env(env_id: str, seed: Optional[int] = None, rng: Optional[np.random.Generator] = None) -> EnvBundle:
    # 就做两件事：按 id 建好 MDP + 配上这个环境在书里用的那套策略
    rng = rng if rng is not None else np.random.default_rng(seed)

    if env_id == "blackjack":
        mdp = blackjack.make_blackjack_mdp(rng)
        return EnvBundle(
            mdp=mdp,
            target_policy=blackjack.make_stick_policy(mdp, 20),
            behavior_policy=make_random_policy(mdp),
            # Figure 5.3 里估计的那个状态：点数 13，庄家明牌 2，有可用 A
            history_state=blackjack.BlackjackState(13, 2, True),
        )
    if env_id == "one_state":
        mdp = one_state.make_one_state_mdp(rng)
        return EnvBundle(
            mdp=mdp,
            target_policy=one_state.make_target_policy(mdp),
            behavior_policy=one_state.make_behavior_policy(mdp),
            history_state=one_state.STATE,
        )
    if env_id == "racetrack":
        mdp = racetrack.make_racetrack_mdp(rng=rng)
        uniform = make_random_policy(mdp)
        return EnvBundle(
            mdp=mdp,
            target_policy=uniform,
            behavior_policy=uniform,
            history_state=racetrack.RaceState(min(racetrack.TRACK1.start), (0, 0)),
        )
    raise ValueError(f"未知环境：{env_id}，可用环境：{list_envs()}")
