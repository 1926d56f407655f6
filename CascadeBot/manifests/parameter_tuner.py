"""
ParameterTuner — cross-round coordinate ascent over the ThresholdVector.

The only signal is one noisy integer per round (our troops minus theirs at
round end). The tuner walks the vector one knob at a time with an explicit
phase machine, so it can stop after any round and pick up where it left off.

Phases (per knob)
-----------------
BASELINE       Collect BASELINE_WINDOW rounds at the current value.
               Average = sum / window. No mutation.
PROBE_UP       One round at baseline + 1.  slope_up = metric − baseline avg.
PROBE_DOWN     One round at baseline − 1.  slope_down likewise.
DECIDE         No round consumed. direction = +1 if slope_up > slope_down
               else −1, then step to baseline + direction.
STEP_AND_TEST  Collect BASELINE_WINDOW rounds per step. While the average
               beats the previous one, keep it and step again. On the first
               step that fails to improve, revert it and move on.

Bounds
------
A value is checked against its knob's range BEFORE it is written; nothing
is ever clamped after the fact. A probe that would leave the range is
skipped and its slope counts as −inf. A step that would leave the range
ends the knob with the current value kept.

Escape
------
Moving past the last knob wraps to knob 0. A wrap that finds the vector
identical to the one at the start of the sweep is "stale". After
STALE_WRAPS_BEFORE_RESTART stale wraps in a row, every knob is redrawn
uniformly within its range and the search state starts over.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple, Union

from CascadeBot import config
from CascadeBot.logger import get_logger
from CascadeBot.manifests.thresholds import ThresholdVector
from CascadeBot.round_stats import MetricSample

log = get_logger()

NO_SLOPE: float = -math.inf


class TunerPhase(Enum):
    BASELINE      = auto()
    PROBE_UP      = auto()
    PROBE_DOWN    = auto()
    DECIDE        = auto()
    STEP_AND_TEST = auto()


@dataclass
class SearchState:
    """
    Everything the search needs to resume. Persists for the whole match.

    wrap_count counts consecutive stale wraps (see module docstring).
    previous_average holds the baseline average through the probes and the
    best kept average during step-and-test.
    """
    dimension_index: int = 0
    direction: int = 1
    phase: TunerPhase = TunerPhase.BASELINE
    running_average: float = 0.0
    previous_average: float = 0.0
    samples_collected: int = 0
    wrap_count: int = 0

    sample_sum: float = 0.0
    baseline_value: Optional[int] = None
    slope_up: float = NO_SLOPE
    slope_down: float = NO_SLOPE
    sweep_origin: Optional[Tuple[int, ...]] = None
    restarts: int = 0


def decide_direction(slope_up: float, slope_down: float) -> int:
    """+1 when probing up paid off more than probing down, else −1."""
    return 1 if slope_up > slope_down else -1


class ParameterTuner:
    """
    Call ``tune()`` exactly once per round end with the vector that was in
    effect for that round. It returns the vector to use next round.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        window: int = config.BASELINE_WINDOW,
        stale_wraps: int = config.STALE_WRAPS_BEFORE_RESTART,
    ) -> None:
        if window < 1:
            raise ValueError("window must be at least 1")
        self.rng = rng if rng is not None else random.Random(config.RANDOM_SEED)
        self.window = window
        self.stale_wraps = stale_wraps
        self.state = SearchState()

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #

    def tune(
        self,
        vector: ThresholdVector,
        sample: Union[MetricSample, int],
    ) -> ThresholdVector:
        if isinstance(sample, MetricSample):
            metric = sample.value
        elif isinstance(sample, int):
            metric = sample
        else:
            raise TypeError(f"Expected MetricSample or int, got {type(sample).__name__}")
        vector = vector.copy()
        s = self.state

        if s.sweep_origin is None:
            s.sweep_origin = vector.as_tuple()

        if s.phase == TunerPhase.DECIDE:
            vector = self._decide(vector)

        phase = self.state.phase
        if phase == TunerPhase.BASELINE:
            vector = self._on_baseline(vector, metric)
        elif phase == TunerPhase.PROBE_UP:
            vector = self._on_probe_up(vector, metric)
        elif phase == TunerPhase.PROBE_DOWN:
            vector = self._on_probe_down(vector, metric)
        elif phase == TunerPhase.STEP_AND_TEST:
            vector = self._on_step(vector, metric)

        while self.state.phase == TunerPhase.DECIDE:
            vector = self._decide(vector)

        return vector

    @property
    def knob_name(self) -> str:
        return ThresholdVector.spec(self.state.dimension_index).name

    # ------------------------------------------------------------------ #
    # Sample bookkeeping
    # ------------------------------------------------------------------ #

    def _accumulate(self, metric: float) -> bool:
        """Add one sample; True once the window is full."""
        s = self.state
        s.sample_sum += metric
        s.samples_collected += 1
        s.running_average = s.sample_sum / s.samples_collected
        return s.samples_collected >= self.window

    def _reset_samples(self) -> None:
        s = self.state
        s.sample_sum = 0.0
        s.samples_collected = 0

    # ------------------------------------------------------------------ #
    # Phases
    # ------------------------------------------------------------------ #

    def _on_baseline(self, vector: ThresholdVector, metric: float) -> ThresholdVector:
        s = self.state
        if not self._accumulate(metric):
            return vector

        s.baseline_value = vector[s.dimension_index]
        s.previous_average = s.running_average
        self._reset_samples()
        log.debug(
            "Tuner: %s baseline=%d avg=%.2f",
            self.knob_name, s.baseline_value, s.previous_average,
        )
        return self._begin_probe_up(vector)

    def _begin_probe_up(self, vector: ThresholdVector) -> ThresholdVector:
        s = self.state
        up = s.baseline_value + 1
        if vector.can_hold(s.dimension_index, up):
            vector.set(s.dimension_index, up)
            s.phase = TunerPhase.PROBE_UP
            return vector
        s.slope_up = NO_SLOPE
        return self._begin_probe_down(vector)

    def _on_probe_up(self, vector: ThresholdVector, metric: float) -> ThresholdVector:
        s = self.state
        s.running_average = metric
        s.slope_up = metric - s.previous_average
        return self._begin_probe_down(vector)

    def _begin_probe_down(self, vector: ThresholdVector) -> ThresholdVector:
        s = self.state
        down = s.baseline_value - 1
        if vector.can_hold(s.dimension_index, down):
            vector.set(s.dimension_index, down)
            s.phase = TunerPhase.PROBE_DOWN
            return vector
        s.slope_down = NO_SLOPE
        vector.set(s.dimension_index, s.baseline_value)
        s.phase = TunerPhase.DECIDE
        return vector

    def _on_probe_down(self, vector: ThresholdVector, metric: float) -> ThresholdVector:
        s = self.state
        s.running_average = metric
        s.slope_down = metric - s.previous_average
        s.phase = TunerPhase.DECIDE
        return vector

    def _decide(self, vector: ThresholdVector) -> ThresholdVector:
        s = self.state
        i = s.dimension_index

        if s.slope_up == NO_SLOPE and s.slope_down == NO_SLOPE:
            vector.set(i, s.baseline_value)
            return self._advance(vector)

        s.direction = decide_direction(s.slope_up, s.slope_down)
        step = s.baseline_value + s.direction
        if not vector.can_hold(i, step):
            vector.set(i, s.baseline_value)
            return self._advance(vector)

        log.debug(
            "Tuner: %s slope_up=%.2f slope_down=%.2f → direction %+d",
            self.knob_name, s.slope_up, s.slope_down, s.direction,
        )
        vector.set(i, step)
        self._reset_samples()
        s.phase = TunerPhase.STEP_AND_TEST
        return vector

    def _on_step(self, vector: ThresholdVector, metric: float) -> ThresholdVector:
        s = self.state
        i = s.dimension_index
        if not self._accumulate(metric):
            return vector

        self._reset_samples()
        if s.running_average > s.previous_average:
            s.previous_average = s.running_average
            nxt = vector[i] + s.direction
            if vector.can_hold(i, nxt):
                vector.set(i, nxt)
                return vector
            log.debug("Tuner: %s reached its bound at %d", self.knob_name, vector[i])
            return self._advance(vector)

        # No improvement: go back to the last value that did improve
        vector.set(i, vector[i] - s.direction)
        return self._advance(vector)

    # ------------------------------------------------------------------ #
    # Dimension advancement and restart
    # ------------------------------------------------------------------ #

    def _advance(self, vector: ThresholdVector) -> ThresholdVector:
        s = self.state
        log.debug("Tuner: %s settled at %d", self.knob_name, vector[s.dimension_index])

        s.dimension_index = (s.dimension_index + 1) % len(vector)
        if s.dimension_index == 0:
            vector = self._on_wrap(vector)

        s = self.state
        s.phase = TunerPhase.BASELINE
        s.direction = 1
        s.baseline_value = None
        s.slope_up = NO_SLOPE
        s.slope_down = NO_SLOPE
        self._reset_samples()
        return vector

    def _on_wrap(self, vector: ThresholdVector) -> ThresholdVector:
        s = self.state
        current = vector.as_tuple()
        if current == s.sweep_origin:
            s.wrap_count += 1
        else:
            s.wrap_count = 0
        s.sweep_origin = current

        if s.wrap_count >= self.stale_wraps:
            return self.restart()
        return vector

    def restart(self) -> ThresholdVector:
        """Redraw every knob at random and start the search over."""
        vector = ThresholdVector.randomized(self.rng)
        restarts = self.state.restarts + 1
        self.state = SearchState(sweep_origin=vector.as_tuple(), restarts=restarts)
        log.game_event("TUNER_RESTART", f"#{restarts} → {vector!r}")
        return vector
