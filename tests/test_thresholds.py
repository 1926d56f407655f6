"""Tests for manifests/thresholds.py"""

import random

import pytest

from CascadeBot.manifests.thresholds import (
    KNOBS,
    PolicyThresholds,
    ThresholdVector,
)


class TestThresholdVector:
    """Tests for bounds and access."""

    def test_defaults_follow_knob_table(self):
        vector = ThresholdVector.defaults()
        assert vector.as_tuple() == tuple(spec.default for spec in KNOBS)
        assert len(vector) == len(KNOBS)

    def test_get_by_name(self):
        vector = ThresholdVector({"max_soldiers": 12})
        assert vector.get("max_soldiers") == 12
        assert vector[ThresholdVector.index_of("max_soldiers")] == 12

    def test_unknown_knob_raises(self):
        with pytest.raises(KeyError):
            ThresholdVector.defaults().get("max_dragons")

    def test_set_outside_range_raises(self):
        vector = ThresholdVector.defaults()
        i = ThresholdVector.index_of("min_workers")
        with pytest.raises(ValueError):
            vector.set(i, 1)
        with pytest.raises(ValueError):
            vector.set(i, 51)
        # Unchanged after the failed writes
        assert vector.get("min_workers") == 5

    def test_can_hold_matches_spec(self):
        vector = ThresholdVector.defaults()
        i = ThresholdVector.index_of("max_bases")
        assert vector.can_hold(i, 2)
        assert vector.can_hold(i, 4)
        assert not vector.can_hold(i, 1)
        assert not vector.can_hold(i, 5)

    def test_copy_is_independent(self):
        vector = ThresholdVector.defaults()
        clone = vector.copy()
        clone.set(0, 9)
        assert vector[0] == 5
        assert clone != vector

    def test_randomized_stays_in_bounds(self):
        rng = random.Random(7)
        for _ in range(200):
            vector = ThresholdVector.randomized(rng)
            for spec, value in zip(KNOBS, vector):
                assert spec.lower <= value <= spec.upper


class TestPackUnpack:
    """Tests for the scheduler/tuner conversion."""

    def test_unpack_exposes_attributes(self):
        thresholds = ThresholdVector({"min_troops": 4}).unpack()
        assert isinstance(thresholds, PolicyThresholds)
        assert thresholds.min_troops == 4
        assert thresholds.max_workers == 15

    def test_pack_of_unpack_is_identity(self):
        rng = random.Random(11)
        vectors = [ThresholdVector.defaults()] + [ThresholdVector.randomized(rng) for _ in range(50)]
        for vector in vectors:
            assert ThresholdVector.pack(vector.unpack()) == vector

    def test_pack_rejects_out_of_range_thresholds(self):
        thresholds = PolicyThresholds(max_bases=9)
        with pytest.raises(ValueError):
            ThresholdVector.pack(thresholds)
