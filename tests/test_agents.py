import numpy as np
import pytest

from tabular_mc.algos.mc_epsilon_soft.agent import MCEpsilonSoftAgent, MCEpsilonSoftConfig
from tabular_mc.algos.mc_pred.agent import MCPredictionAgent, MCPredictionConfig
from tabular_mc.algos.off_policy_control.agent import OffPolicyControlAgent, OffPolicyControlConfig
from tabular_mc.algos.off_policy_v.agent import OffPolicyVAgent, OffPolicyVConfig
from tabular_mc.core.mdp import TabularMDP
from tabular_mc.envs import one_state
from tabular_mc.envs.blackjack import make_blackjack_mdp


def _one_state():
    mdp = one_state.make_one_state_mdp(np.random.default_rng(0))
    return mdp, one_state.make_target_policy(mdp), one_state.make_behavior_policy(mdp)


def test_prediction_agent_requires_policy():
    mdp, _, _ = _one_state()
    with pytest.raises(ValueError):
        MCPredictionAgent(mdp, MCPredictionConfig())


def test_gamma_out_of_range_is_rejected():
    mdp, target, _ = _one_state()
    with pytest.raises(ValueError):
        MCPredictionAgent(mdp, MCPredictionConfig(gamma=1.5), target)


def test_epsilon_soft_agent_rejects_zero_epsilon():
    mdp, _, _ = _one_state()
    with pytest.raises(ValueError):
        MCEpsilonSoftAgent(mdp, MCEpsilonSoftConfig(epsilon=0.0))


def test_coverage_checked_before_any_episode():
    calls = []

    def simulator(s0, a0, selector):
        calls.append(s0)
        return [(s0, a0)], [0.0]

    mdp = TabularMDP([0], ["left", "right"], lambda: 0, simulator)
    target = np.array([[1.0, 0.0]])
    behavior = np.array([[0.0, 1.0]])
    with pytest.raises(ValueError):
        OffPolicyVAgent(mdp, OffPolicyVConfig(), target, behavior)
    assert calls == []


def test_fixed_start_state_and_target_first_action():
    mdp, target, behavior = _one_state()
    config = OffPolicyVConfig(fixed_start_state_index=0, use_target_for_first_action=True)
    agent = OffPolicyVAgent(mdp, config, target, behavior, np.random.default_rng(1))

    for _ in range(20):
        s0 = agent.start_state()
        assert s0 == one_state.STATE
        assert agent.start_action(s0) == one_state.LEFT

    with pytest.raises(ValueError):
        OffPolicyVAgent(mdp, OffPolicyVConfig(fixed_start_state_index=3), target, behavior)


def test_update_reports_episode_stats():
    mdp, target, behavior = _one_state()
    agent = OffPolicyVAgent(mdp, OffPolicyVConfig(sample_method="weighted"), target, behavior, np.random.default_rng(2))

    episode = agent.generate_episode()
    stats = agent.update(episode)

    assert set(stats) == {"episode_return", "episode_length", "final_weight"}
    assert stats["episode_length"] == len(episode)
    assert stats["final_weight"] >= 0.0


def test_save_and_load_round_trip():
    mdp, target, behavior = _one_state()
    agent = OffPolicyVAgent(mdp, OffPolicyVConfig(), target, behavior, np.random.default_rng(3))
    for _ in range(20):
        agent.update(agent.generate_episode())
    data = agent.save()

    other = OffPolicyVAgent(mdp, OffPolicyVConfig(), target, behavior)
    other.load(data)
    np.testing.assert_array_equal(other.values, agent.values)
    np.testing.assert_array_equal(other.counts, agent.counts)

    with pytest.raises(ValueError):
        other.load({"values": np.zeros(3), "counts": np.zeros(3)})


def test_control_agent_policy_is_one_hot():
    mdp = make_blackjack_mdp(np.random.default_rng(0))
    agent = OffPolicyControlAgent(mdp, OffPolicyControlConfig(), rng=np.random.default_rng(1))
    for _ in range(200):
        agent.update(agent.generate_episode())

    policy = agent.policy
    assert policy.shape == (mdp.num_states, mdp.num_actions)
    np.testing.assert_array_equal(policy.sum(axis=1), 1.0)
    np.testing.assert_array_equal(np.argmax(policy, axis=1), agent.greedy_policy())

    restored = OffPolicyControlAgent(mdp, OffPolicyControlConfig(), rng=np.random.default_rng(2))
    restored.load(agent.save())
    np.testing.assert_array_equal(restored.greedy_policy(), agent.greedy_policy())
    np.testing.assert_array_equal(restored.values, agent.values)


def test_epsilon_soft_greedy_policy_extraction():
    mdp, _, _ = _one_state()
    agent = MCEpsilonSoftAgent(mdp, MCEpsilonSoftConfig(epsilon=0.1), rng=np.random.default_rng(4))
    for _ in range(200):
        agent.update(agent.generate_episode())

    greedy = agent.greedy_policy()
    assert greedy.shape == (1,)
    # left 的回报期望是 1，right 是 0
    assert greedy[0] == mdp.action_index(one_state.LEFT)


def test_control_agent_reads_full_ratio_from_config():
    mdp = make_blackjack_mdp(np.random.default_rng(0))

    assert not OffPolicyControlAgent(mdp, OffPolicyControlConfig()).full_ratio
    assert OffPolicyControlAgent(mdp, OffPolicyControlConfig(full_ratio=True)).full_ratio
