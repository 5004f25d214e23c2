import numpy as np
import pytest

from tabular_mc.algos import create_agent, get_config_class, list_algos, load_config
from tabular_mc.envs.make_env import make_env


def test_factory_lists_expected_algos():
    algos = list_algos()
    for name in ("mc_pred", "mc_es", "mc_epsilon_soft", "off_policy_v", "off_policy_q", "off_policy_control"):
        assert name in algos


def test_default_configs_load_for_each_algo():
    for algo in list_algos():
        config = load_config(algo, None)
        assert isinstance(config, get_config_class(algo))
        assert config.gamma == 1.0
        assert config.num_episodes > 0


def test_factory_can_create_each_algo_smoke():
    for algo in list_algos():
        env = make_env("one_state", seed=0)
        config = load_config(algo, None)
        agent = create_agent(algo, env.mdp, config, env.target_policy, env.behavior_policy, np.random.default_rng(0))
        assert agent is not None

        episode = agent.generate_episode()
        stats = agent.update(episode)
        assert "final_weight" in stats
        assert np.isfinite(agent.tracked_value(0))


def test_load_config_overrides_and_keeps_extra_fields(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text("sample_method: weighted\nnum_episodes: 42\nnote: figure-5.3\n", encoding="utf-8")

    config = load_config("off_policy_v", str(path))

    assert config.sample_method == "weighted"
    assert config.num_episodes == 42
    assert config.gamma == 1.0
    assert config.note == "figure-5.3"
    assert config.to_dict()["note"] == "figure-5.3"


def test_load_config_rejects_non_mapping(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config("mc_pred", str(path))


def test_unknown_algo():
    with pytest.raises(ValueError):
        get_config_class("dqn")
    with pytest.raises(ValueError):
        create_agent("dqn", None, None)
