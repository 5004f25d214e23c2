"""
函数式的调用入口：每个算法一个函数，参数约定一致
(策略, 环境, γ, episode 数, 以及少量命名选项)，返回 RunResult。

内部就是 “建 config -> 建 agent -> run_agent” 三步，方便在脚本和测试里直接调用。
"""
from __future__ import annotations

from typing import Any, Iterable, Optional

import numpy as np

from tabular_mc.algos.mc_epsilon_soft.agent import MCEpsilonSoftAgent, MCEpsilonSoftConfig
from tabular_mc.algos.mc_es.agent import MCESAgent, MCESConfig
from tabular_mc.algos.mc_pred.agent import MCPredictionAgent, MCPredictionConfig
from tabular_mc.algos.off_policy_control.agent import OffPolicyControlAgent, OffPolicyControlConfig
from tabular_mc.algos.off_policy_q.agent import OffPolicyQAgent, OffPolicyQConfig
from tabular_mc.algos.off_policy_v.agent import OffPolicyVAgent, OffPolicyVConfig
from tabular_mc.core.mdp import TabularMDP, check_policy, sample_action
from tabular_mc.core.runner import run_agent
from tabular_mc.core.types import RunResult


def _state_id(mdp: TabularMDP, state: Any) -> int:
    # 不传就默认跟踪第一个状态
    return 0 if state is None else mdp.state_index(state)


def monte_carlo_prediction(
    policy: np.ndarray,
    mdp: TabularMDP,
    gamma: float,
    num_episodes: int = 1000,
    *,
    initial_value: float = 0.0,
    first_visit: bool = False,
    history_state: Any = None,
    sample_checkpoints: Optional[Iterable[int]] = None,
    rng: Optional[np.random.Generator] = None,
) -> RunResult:
    config = MCPredictionConfig(
        gamma=gamma, num_episodes=num_episodes, initial_value=initial_value, first_visit=first_visit
    )
    agent = MCPredictionAgent(mdp, config, target_policy=policy, rng=rng)
    return run_agent(agent, num_episodes, _state_id(mdp, history_state), sample_checkpoints)


def monte_carlo_es(
    mdp: TabularMDP,
    gamma: float,
    num_episodes: int = 1000,
    *,
    policy_init: Optional[np.ndarray] = None,
    initial_value: float = 0.0,
    greedy_temperature: Optional[float] = None,
    history_state: Any = None,
    sample_checkpoints: Optional[Iterable[int]] = None,
    rng: Optional[np.random.Generator] = None,
) -> RunResult:
    config = MCESConfig(
        gamma=gamma,
        num_episodes=num_episodes,
        initial_value=initial_value,
        greedy_temperature=greedy_temperature,
    )
    agent = MCESAgent(mdp, config, target_policy=policy_init, rng=rng)
    return run_agent(agent, num_episodes, _state_id(mdp, history_state), sample_checkpoints)


def monte_carlo_epsilon_soft(
    mdp: TabularMDP,
    gamma: float,
    epsilon: float,
    num_episodes: int = 1000,
    *,
    policy_init: Optional[np.ndarray] = None,
    initial_value: float = 0.0,
    history_state: Any = None,
    sample_checkpoints: Optional[Iterable[int]] = None,
    rng: Optional[np.random.Generator] = None,
) -> RunResult:
    config = MCEpsilonSoftConfig(
        gamma=gamma, num_episodes=num_episodes, initial_value=initial_value, epsilon=epsilon
    )
    agent = MCEpsilonSoftAgent(mdp, config, target_policy=policy_init, rng=rng)
    return run_agent(agent, num_episodes, _state_id(mdp, history_state), sample_checkpoints)


def _off_policy_config(config_cls, mdp, gamma, num_episodes, sample_method, initial_value, fixed_start_state, use_target_for_first_action):
    return config_cls(
        gamma=gamma,
        num_episodes=num_episodes,
        initial_value=initial_value,
        sample_method=getattr(sample_method, "value", sample_method),
        fixed_start_state_index=None if fixed_start_state is None else mdp.state_index(fixed_start_state),
        use_target_for_first_action=use_target_for_first_action,
    )


def off_policy_state_prediction(
    target_policy: np.ndarray,
    behavior_policy: np.ndarray,
    mdp: TabularMDP,
    gamma: float,
    num_episodes: int = 1000,
    *,
    sample_method: str = "ordinary",
    initial_value: float = 0.0,
    fixed_start_state: Any = None,
    use_target_for_first_action: bool = False,
    history_state: Any = None,
    sample_checkpoints: Optional[Iterable[int]] = None,
    rng: Optional[np.random.Generator] = None,
) -> RunResult:
    config = _off_policy_config(
        OffPolicyVConfig, mdp, gamma, num_episodes, sample_method, initial_value,
        fixed_start_state, use_target_for_first_action,
    )
    agent = OffPolicyVAgent(mdp, config, target_policy, behavior_policy, rng)
    if history_state is None:
        history_state = fixed_start_state
    return run_agent(agent, num_episodes, _state_id(mdp, history_state), sample_checkpoints)


def off_policy_action_prediction(
    target_policy: np.ndarray,
    behavior_policy: np.ndarray,
    mdp: TabularMDP,
    gamma: float,
    num_episodes: int = 1000,
    *,
    sample_method: str = "ordinary",
    initial_value: float = 0.0,
    fixed_start_state: Any = None,
    use_target_for_first_action: bool = False,
    history_state: Any = None,
    sample_checkpoints: Optional[Iterable[int]] = None,
    rng: Optional[np.random.Generator] = None,
) -> RunResult:
    config = _off_policy_config(
        OffPolicyQConfig, mdp, gamma, num_episodes, sample_method, initial_value,
        fixed_start_state, use_target_for_first_action,
    )
    agent = OffPolicyQAgent(mdp, config, target_policy, behavior_policy, rng)
    if history_state is None:
        history_state = fixed_start_state
    return run_agent(agent, num_episodes, _state_id(mdp, history_state), sample_checkpoints)


def off_policy_control(
    mdp: TabularMDP,
    gamma: float,
    num_episodes: int = 1000,
    *,
    initial_value: float = 0.0,
    full_ratio: bool = False,
    history_state: Any = None,
    sample_checkpoints: Optional[Iterable[int]] = None,
    rng: Optional[np.random.Generator] = None,
) -> RunResult:
    config = OffPolicyControlConfig(
        gamma=gamma, num_episodes=num_episodes, initial_value=initial_value, full_ratio=full_ratio
    )
    agent = OffPolicyControlAgent(mdp, config, rng=rng)
    return run_agent(agent, num_episodes, _state_id(mdp, history_state), sample_checkpoints)


def estimate_state_returns(
    mdp: TabularMDP,
    policy: np.ndarray,
    state: Any,
    num_episodes: int,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    # 直接从 state 出发按 policy 跑 n 条 episode，记下每条的未折扣回报（拿来当“真值”）
    check_policy(policy, mdp)
    rng = rng if rng is not None else np.random.default_rng()

    def selector(s):
        return mdp.actions[sample_action(policy, mdp.state_index(s), rng)]

    returns = np.zeros(int(num_episodes))
    for i in range(int(num_episodes)):
        a0 = selector(state)
        returns[i] = mdp.simulate(state, a0, selector).episode_return
    return returns
