import numpy as np
import pytest

from tabular_mc.core.accumulator import backward_action_pass, backward_control_pass, backward_state_pass
from tabular_mc.core.importance import OrdinaryImportance, WeightedImportance
from tabular_mc.core.mdp import make_random_policy, sample_action
from tabular_mc.core.types import Episode
from tabular_mc.envs.blackjack import make_blackjack_mdp
from tabular_mc.envs.one_state import make_behavior_policy, make_one_state_mdp, make_target_policy

# 单状态、两个动作：π 永远选 0，b 均匀
TARGET = np.array([[1.0, 0.0]])
BEHAVIOR = np.array([[0.5, 0.5]])


def _episode(action_ids, rewards, state_ids=None):
    state_ids = state_ids if state_ids is not None else [0] * len(action_ids)
    return Episode(
        states=list(state_ids),
        actions=list(action_ids),
        rewards=list(rewards),
        state_ids=list(state_ids),
        action_ids=list(action_ids),
    )


def _sample_episodes(mdp, behavior, rng, n):
    def selector(s):
        return mdp.actions[sample_action(behavior, mdp.state_index(s), rng)]

    episodes = []
    for _ in range(n):
        s0 = mdp.state_init()
        episodes.append(mdp.simulate(s0, selector(s0), selector))
    return episodes


class NonStoppingWeighted(WeightedImportance):
    stops_at_zero_weight = False


def test_discounted_return_is_accumulated_backwards():
    values = np.zeros(2)
    counts = np.zeros(2)
    episode = _episode([0, 0], [1.0, 2.0], state_ids=[0, 1])

    w = backward_state_pass(episode, values, counts, 0.5, OrdinaryImportance())

    assert w == 1.0
    assert values[1] == 2.0
    assert values[0] == 1.0 + 0.5 * 2.0


def test_state_pass_multiplies_weight_before_update():
    values = np.zeros(1)
    counts = np.zeros(1)
    episode = _episode([0, 0], [0.0, 1.0])

    w = backward_state_pass(episode, values, counts, 1.0, OrdinaryImportance(), TARGET, BEHAVIOR)

    # t=1: w=2, 样本 2*1；t=0: w=4, 样本 4*1
    assert w == 4.0
    assert counts[0] == 2.0
    assert values[0] == pytest.approx(3.0)


def test_action_pass_multiplies_weight_after_update():
    values = np.zeros((1, 2))
    counts = np.zeros((1, 2))
    episode = _episode([0, 0], [0.0, 1.0])

    w = backward_action_pass(episode, values, counts, 1.0, OrdinaryImportance(), TARGET, BEHAVIOR)

    # t=1: 样本 1*1；t=0: 样本 2*1
    assert w == 4.0
    assert counts[0, 0] == 2.0
    assert values[0, 0] == pytest.approx(1.5)
    assert values[0, 1] == 0.0


def test_weighted_state_pass_stops_on_off_target_action():
    values = np.zeros(1)
    counts = np.zeros(1)
    episode = _episode([0, 1], [0.0, 1.0])

    w = backward_state_pass(episode, values, counts, 1.0, WeightedImportance(), TARGET, BEHAVIOR)

    assert w == 0.0
    assert counts[0] == 0.0
    assert values[0] == 0.0


def test_ordinary_state_pass_keeps_counting_after_zero_weight():
    values = np.full(1, 3.0)
    counts = np.zeros(1)
    episode = _episode([0, 1], [0.0, 1.0])

    w = backward_state_pass(episode, values, counts, 1.0, OrdinaryImportance(), TARGET, BEHAVIOR)

    assert w == 0.0
    assert counts[0] == 2.0
    assert values[0] == 0.0


def test_weighted_action_pass_updates_last_pair_before_stopping():
    values = np.zeros((1, 2))
    counts = np.zeros((1, 2))
    episode = _episode([0, 1], [0.0, 1.0])

    w = backward_action_pass(episode, values, counts, 1.0, WeightedImportance(), TARGET, BEHAVIOR)

    assert w == 0.0
    assert values[0, 1] == 1.0
    assert counts[0, 1] == 1.0
    assert counts[0, 0] == 0.0


def test_on_update_hook_sees_every_step():
    seen = []
    episode = _episode([0, 0, 0], [0.0, 0.0, 1.0], state_ids=[2, 1, 0])
    backward_action_pass(
        episode, np.zeros((3, 1)), np.zeros((3, 1)), 1.0, OrdinaryImportance(), on_update=seen.append
    )

    assert seen == [0, 1, 2]


def test_off_policy_pass_requires_both_policies():
    with pytest.raises(ValueError):
        backward_state_pass(_episode([0], [1.0]), np.zeros(1), np.zeros(1), 1.0, OrdinaryImportance(), TARGET)
    with pytest.raises(ValueError):
        backward_action_pass(
            _episode([0], [1.0]), np.zeros((1, 2)), np.zeros((1, 2)), 1.0, OrdinaryImportance(), TARGET
        )


def test_weighted_early_stop_matches_full_pass():
    rng = np.random.default_rng(0)
    mdp = make_one_state_mdp(np.random.default_rng(1))
    target = make_target_policy(mdp)
    behavior = make_behavior_policy(mdp)
    episodes = _sample_episodes(mdp, behavior, rng, 300)

    for backward in (backward_state_pass, backward_action_pass):
        shape = (1,) if backward is backward_state_pass else (1, 2)
        v_stop, c_stop = np.zeros(shape), np.zeros(shape)
        v_full, c_full = np.zeros(shape), np.zeros(shape)
        for episode in episodes:
            backward(episode, v_stop, c_stop, 1.0, WeightedImportance(), target, behavior)
            backward(episode, v_full, c_full, 1.0, NonStoppingWeighted(), target, behavior)

        np.testing.assert_array_equal(v_stop, v_full)
        np.testing.assert_array_equal(c_stop, c_full)


def test_control_pass_full_ratio_matches_inverse_behavior():
    rng = np.random.default_rng(3)
    mdp = make_blackjack_mdp(np.random.default_rng(4))
    behavior = make_random_policy(mdp)
    episodes = _sample_episodes(mdp, behavior, rng, 2000)

    greedy0 = rng.integers(mdp.num_actions, size=mdp.num_states)
    q_a, c_a, greedy_a = np.zeros_like(behavior), np.zeros_like(behavior), greedy0.copy()
    q_b, c_b, greedy_b = np.zeros_like(behavior), np.zeros_like(behavior), greedy0.copy()
    for episode in episodes:
        w_a = backward_control_pass(episode, q_a, c_a, greedy_a, behavior, 1.0)
        w_b = backward_control_pass(episode, q_b, c_b, greedy_b, behavior, 1.0, full_ratio=True)
        if w_b > 0:
            assert w_a == w_b

    np.testing.assert_array_equal(q_a, q_b)
    np.testing.assert_array_equal(c_a, c_b)
    np.testing.assert_array_equal(greedy_a, greedy_b)


def test_control_pass_breaks_on_non_greedy_action():
    values = np.zeros((1, 2))
    counts = np.zeros((1, 2))
    greedy = np.array([0])
    episode = _episode([0, 1], [0.0, -1.0])

    w = backward_control_pass(episode, values, counts, greedy, BEHAVIOR, 1.0)

    # 最后一步 Q(s,1) = -1 更新后贪心仍是 0，和轨迹动作 1 不一致，直接停
    assert values[0, 1] == -1.0
    assert counts[0, 1] == 1.0
    assert counts[0, 0] == 0.0
    assert greedy[0] == 0
    assert w == 1.0
