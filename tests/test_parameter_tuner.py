"""Tests for manifests/parameter_tuner.py"""

import random

import pytest

from CascadeBot.manifests.parameter_tuner import (
    NO_SLOPE,
    ParameterTuner,
    TunerPhase,
    decide_direction,
)
from CascadeBot.manifests.thresholds import KNOBS, ThresholdVector
from CascadeBot.round_stats import MetricSample


@pytest.fixture
def tuner():
    return ParameterTuner(rng=random.Random(5), window=2, stale_wraps=2)


def feed(tuner, vector, *metrics):
    for metric in metrics:
        vector = tuner.tune(vector, metric)
    return vector


class TestDirection:
    """Tests for the probe decision."""

    def test_decide_direction(self):
        assert decide_direction(3, -1) == 1
        assert decide_direction(-1, 3) == -1
        assert decide_direction(0, 0) == -1
        assert decide_direction(0, NO_SLOPE) == 1

    def test_probe_slopes_choose_up(self, tuner):
        vector = ThresholdVector.defaults()
        vector = feed(tuner, vector, 0, 0)   # baseline avg 0
        assert vector.get("min_workers") == 6
        vector = feed(tuner, vector, 3)      # slope_up = +3
        assert vector.get("min_workers") == 4
        vector = feed(tuner, vector, -1)     # slope_down = -1

        assert tuner.state.slope_up == 3
        assert tuner.state.slope_down == -1
        assert tuner.state.direction == 1
        assert tuner.state.phase == TunerPhase.STEP_AND_TEST
        assert vector.get("min_workers") == 6


class TestPhases:
    """Tests for the phase sequence."""

    def test_baseline_does_not_mutate(self, tuner):
        vector = ThresholdVector.defaults()
        after = tuner.tune(vector, 4)
        assert after == vector
        assert tuner.state.phase == TunerPhase.BASELINE
        assert tuner.state.samples_collected == 1

    def test_baseline_average(self, tuner):
        feed(tuner, ThresholdVector.defaults(), 4, 2)
        assert tuner.state.previous_average == 3
        assert tuner.state.baseline_value == 5
        assert tuner.state.phase == TunerPhase.PROBE_UP

    def test_accepts_metric_samples(self, tuner):
        sample = MetricSample(round_number=1, own_troops=6, enemy_troops=2)
        tuner.tune(ThresholdVector.defaults(), sample)
        assert tuner.state.running_average == 4

    def test_rejects_other_metric_types(self, tuner):
        with pytest.raises(TypeError):
            tuner.tune(ThresholdVector.defaults(), 1.5)
        with pytest.raises(TypeError):
            tuner.tune(ThresholdVector.defaults(), "3")
        assert tuner.state.samples_collected == 0

    def test_input_vector_is_not_modified(self, tuner):
        vector = ThresholdVector.defaults()
        feed(tuner, vector, 0, 0)
        assert vector == ThresholdVector.defaults()

    def test_climbs_to_the_peak_then_advances(self, tuner):
        def score(v):
            return -(v.get("min_workers") - 9) ** 2

        vector = ThresholdVector.defaults()
        for _ in range(50):
            vector = tuner.tune(vector, score(vector))
            if tuner.state.dimension_index == 1:
                break

        assert vector.get("min_workers") == 9
        assert tuner.state.phase == TunerPhase.BASELINE

    def test_failed_first_step_reverts_to_baseline(self, tuner):
        vector = ThresholdVector.defaults()
        vector = feed(tuner, vector, 0, 0, 5, -5)   # direction +1, step to 6
        vector = feed(tuner, vector, -1, -1)        # worse than baseline
        assert vector.get("min_workers") == 5
        assert tuner.state.dimension_index == 1


class TestBounds:
    """Tests for knob bounds."""

    def test_probe_up_skipped_at_upper_bound(self, tuner):
        vector = ThresholdVector({"min_workers": 50})
        vector = feed(tuner, vector, 0, 0)
        assert tuner.state.phase == TunerPhase.PROBE_DOWN
        assert tuner.state.slope_up == NO_SLOPE
        assert vector.get("min_workers") == 49

    def test_step_stops_at_bound(self, tuner):
        vector = ThresholdVector({"max_bases": 3})
        index = ThresholdVector.index_of("max_bases")
        tuner.state.dimension_index = index
        vector = feed(tuner, vector, 0, 0, 5, 0)    # up wins → step to 4 (the ceiling)
        assert vector.get("max_bases") == 4
        vector = feed(tuner, vector, 6, 6)          # improves, but 5 is out of range
        assert vector.get("max_bases") == 4
        assert tuner.state.dimension_index == index + 1

    def test_floor_dimension_skips_probe_down(self, tuner):
        vector = ThresholdVector.defaults()
        index = ThresholdVector.index_of("max_refineries")
        tuner.state.dimension_index = index
        vector = feed(tuner, vector, 0, 0, 1)
        assert tuner.state.slope_down == NO_SLOPE
        assert tuner.state.phase == TunerPhase.STEP_AND_TEST
        assert vector.get("max_refineries") == 2

    def test_random_metrics_never_leave_bounds(self):
        rng = random.Random(1234)
        tuner = ParameterTuner(rng=random.Random(99), window=2, stale_wraps=2)
        vector = ThresholdVector.defaults()
        for _ in range(2000):
            vector = tuner.tune(vector, rng.randint(-10, 10))
            for spec, value in zip(KNOBS, vector):
                assert spec.lower <= value <= spec.upper


class TestRestart:
    """Tests for the plateau escape."""

    def test_flat_metric_restarts_after_stale_wraps(self, tuner):
        vector = ThresholdVector.defaults()
        seen_one_stale_wrap = False
        for _ in range(500):
            before = tuner.state.wrap_count
            vector = tuner.tune(vector, 0)
            if before == 0 and tuner.state.wrap_count == 1:
                seen_one_stale_wrap = True
                # A flat objective leaves every knob where it was
                assert vector == ThresholdVector.defaults()
            if tuner.state.restarts:
                break

        assert seen_one_stale_wrap
        assert tuner.state.restarts == 1
        assert tuner.state.dimension_index == 0
        assert tuner.state.phase == TunerPhase.BASELINE
        assert tuner.state.wrap_count == 0
        for spec, value in zip(KNOBS, vector):
            assert spec.lower <= value <= spec.upper

    def test_explicit_restart(self, tuner):
        tuner.state.dimension_index = 4
        vector = tuner.restart()
        assert tuner.state.dimension_index == 0
        assert tuner.state.sweep_origin == vector.as_tuple()
