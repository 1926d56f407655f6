"""
RoundStatsTracker — end-of-round metric and summary.

Accumulates a few peaks during the round and, at round end, produces the
MetricSample the parameter tuner consumes. The summary is logged as a
ROUND_STATS game event so it is easy to grep alongside the tuner lines.

Tracked statistics
------------------
Peaks (best values at any sampled moment):
  peak_troops    Most own soldiers + archers alive at once.
  peak_workers   Most own workers alive at once.

Metric (the tuner's only input):
  value = own troops − enemy troops, counted from the final snapshot,
  before the host clears the board.

Outcome:
  Result.Victory when value > 0, Result.Defeat when value < 0, else
  Result.Tie. Used only for win counting and logs.

Integration
-----------
    # on_round_start
    self.round_stats.reset()

    # on_tick (self-throttles internally)
    self.round_stats.update(snapshot)

    # on_round_end
    sample = self.round_stats.finalize(snapshot, round_number)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sc2.data import Result

from CascadeBot import config
from CascadeBot.logger import get_logger
from CascadeBot.world.service import UnitRole

if TYPE_CHECKING:
    from CascadeBot.world.snapshot import WorldSnapshot

log = get_logger()


@dataclass(frozen=True)
class MetricSample:
    """Troop differential at the end of one round."""
    round_number: int
    own_troops: int
    enemy_troops: int

    @property
    def value(self) -> int:
        return self.own_troops - self.enemy_troops

    @property
    def outcome(self) -> Result:
        if self.value > 0:
            return Result.Victory
        if self.value < 0:
            return Result.Defeat
        return Result.Tie


class RoundStatsTracker:
    """
    Call update()   every tick (self-throttled).
    Call finalize() once at round end.
    """

    def __init__(self, sample_cadence: int = config.STATS_SAMPLE_CADENCE) -> None:
        self.sample_cadence = sample_cadence
        self.reset()

    def reset(self) -> None:
        self.peak_troops: int = 0
        self.peak_workers: int = 0
        self._last_sample_tick: int = -self.sample_cadence

    # ── Per-tick sampling ─────────────────────────────────────────────────────

    def update(self, snapshot: "WorldSnapshot") -> None:
        """Sample peak values every sample_cadence ticks."""
        if snapshot.tick - self._last_sample_tick < self.sample_cadence:
            return
        self._last_sample_tick = snapshot.tick
        self._sample(snapshot)

    def _sample(self, snapshot: "WorldSnapshot") -> None:
        self.peak_troops = max(self.peak_troops, snapshot.own_troop_count)
        self.peak_workers = max(self.peak_workers, snapshot.own.count(UnitRole.WORKER))

    # ── Finalization ──────────────────────────────────────────────────────────

    def finalize(self, snapshot: "WorldSnapshot", round_number: int) -> MetricSample:
        """Build the round's MetricSample and log the summary."""
        self._sample(snapshot)
        sample = MetricSample(
            round_number=round_number,
            own_troops=snapshot.own_troop_count,
            enemy_troops=snapshot.enemy_troop_count,
        )

        log.game_event(
            "ROUND_STATS",
            (
                f"round={round_number} | metric={sample.value:+d} "
                f"({sample.own_troops} vs {sample.enemy_troops}) | "
                f"outcome={sample.outcome.name} | "
                f"peak_troops={self.peak_troops} peak_workers={self.peak_workers}"
            ),
            tick=snapshot.tick,
        )
        return sample
