import numpy as np
import pytest

from tabular_mc.core.importance import (
    OrdinaryImportance,
    SampleMethod,
    WeightedImportance,
    make_update_rule,
)

SAMPLES = [(2.0, 1.0), (0.0, 5.0), (0.5, -2.0), (4.0, 0.25), (1.0, 3.0)]


def _feed(rule, samples, initial=0.0):
    values = np.full(1, initial)
    counts = np.zeros(1)
    for w, g in samples:
        rule.update(values, counts, 0, g, w)
    return float(values[0]), float(counts[0])


def test_ordinary_is_mean_of_weighted_returns():
    value, count = _feed(OrdinaryImportance(), SAMPLES)
    expected = np.mean([w * g for w, g in SAMPLES])

    assert count == len(SAMPLES)
    assert value == pytest.approx(expected)


def test_weighted_is_ratio_of_sums():
    value, count = _feed(WeightedImportance(), SAMPLES)
    ws = np.array([w for w, _ in SAMPLES])
    gs = np.array([g for _, g in SAMPLES])

    assert count == pytest.approx(ws.sum())
    assert value == pytest.approx((ws * gs).sum() / ws.sum())


def test_weighted_zero_denominator_leaves_estimate_alone():
    value, count = _feed(WeightedImportance(), [(0.0, 7.0), (0.0, -3.0)], initial=0.5)

    assert count == 0.0
    assert value == 0.5


def test_ordinary_counts_zero_weight_visits():
    value, count = _feed(OrdinaryImportance(), [(0.0, 7.0), (0.0, -3.0)], initial=0.5)

    assert count == 2.0
    assert value == 0.0


def test_update_accepts_state_action_keys():
    values = np.zeros((2, 3))
    counts = np.zeros((2, 3))
    rule = WeightedImportance()
    rule.update(values, counts, (1, 2), 4.0, 2.0)

    assert values[1, 2] == 4.0
    assert counts[1, 2] == 2.0
    assert values.sum() == 4.0


def test_make_update_rule():
    assert isinstance(make_update_rule("ordinary"), OrdinaryImportance)
    assert isinstance(make_update_rule("WEIGHTED"), WeightedImportance)
    assert isinstance(make_update_rule(SampleMethod.WEIGHTED), WeightedImportance)

    rule = OrdinaryImportance()
    assert make_update_rule(rule) is rule

    with pytest.raises(ValueError):
        make_update_rule("per-decision")


def test_only_weighted_stops_at_zero_weight():
    assert WeightedImportance.stops_at_zero_weight
    assert not OrdinaryImportance.stops_at_zero_weight
