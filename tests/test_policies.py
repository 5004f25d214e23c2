import numpy as np
import pytest

from tabular_mc.core.policies import greedy_actions, make_epsilon_soft_policy, make_greedy_policy
from tabular_mc.core.utils import log_spaced_checkpoints, log_spaced_checkpoints_upto, resolve_checkpoints


def test_greedy_policy_splits_ties():
    np.testing.assert_allclose(make_greedy_policy(np.array([1.0, 3.0, 3.0])), [0.0, 0.5, 0.5])
    np.testing.assert_allclose(make_greedy_policy(np.array([-1.0, 2.0, 0.0])), [0.0, 1.0, 0.0])


def test_greedy_policy_uniform_when_all_equal():
    for c in (None, 1000.0):
        np.testing.assert_allclose(make_greedy_policy(np.full(4, 0.3), c), np.full(4, 0.25))


def test_softmax_greedy_policy_is_nearly_exact():
    v = np.array([0.1, 0.7, 0.7, -0.2])
    probs = make_greedy_policy(v, 1000.0)

    assert probs.sum() == pytest.approx(1.0)
    assert probs[1] == pytest.approx(probs[2])
    np.testing.assert_allclose(probs, make_greedy_policy(v), atol=1e-12)


def test_softmax_greedy_policy_softer_for_small_temperature():
    probs = make_greedy_policy(np.array([0.0, 1.0]), 1.0)

    assert 0.0 < probs[0] < probs[1] < 1.0
    assert probs[1] / probs[0] == pytest.approx(np.e)


def test_epsilon_soft_policy():
    probs = make_epsilon_soft_policy(np.array([0.0, 1.0, 0.0]), 0.3)
    np.testing.assert_allclose(probs, [0.1, 0.8, 0.1])


def test_epsilon_soft_policy_splits_ties():
    probs = make_epsilon_soft_policy(np.array([1.0, 1.0, 0.0]), 0.3)

    np.testing.assert_allclose(probs, [0.45, 0.45, 0.1])
    assert probs.sum() == pytest.approx(1.0)


@pytest.mark.parametrize("epsilon", [-0.1, 1.5])
def test_epsilon_soft_policy_rejects_bad_epsilon(epsilon):
    with pytest.raises(ValueError):
        make_epsilon_soft_policy(np.zeros(2), epsilon)


def test_greedy_actions():
    table = np.array([[0.1, 0.9], [0.6, 0.4], [0.2, 0.8]])
    np.testing.assert_array_equal(greedy_actions(table), [1, 0, 1])


def test_log_spaced_checkpoints():
    np.testing.assert_array_equal(
        log_spaced_checkpoints(2),
        [1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
    )

    points = log_spaced_checkpoints(5)
    # 10^4 这一段步长封顶在 1000
    assert len(points) == 9 * 4 + 81 + 1
    assert points[-1] == 100_000
    assert np.all(np.diff(points) > 0)


def test_resolve_checkpoints():
    np.testing.assert_array_equal(resolve_checkpoints(3), [1, 2, 3])
    np.testing.assert_array_equal(resolve_checkpoints(10, [5, 1, 5]), [1, 5])
    assert resolve_checkpoints(0).size == 0

    with pytest.raises(ValueError):
        resolve_checkpoints(10, [0, 3])
    with pytest.raises(ValueError):
        resolve_checkpoints(10, [11])


def test_log_spaced_checkpoints_upto_ends_at_episode_count():
    np.testing.assert_array_equal(log_spaced_checkpoints_upto(100), log_spaced_checkpoints(2))

    points = log_spaced_checkpoints_upto(2500)
    assert points[-1] == 2500
    assert points[-2] == 2000
    assert 1000 in points
    assert np.all(np.diff(points) > 0)

    np.testing.assert_array_equal(log_spaced_checkpoints_upto(3), [1, 2, 3])
    assert log_spaced_checkpoints_upto(0).size == 0
