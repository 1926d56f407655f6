"""
Policy thresholds — the integer knobs the production scheduler reads and
the parameter tuner searches over.

Two views of the same numbers
-----------------------------
ThresholdVector   Ordered, bounded, index-addressable. The tuner walks it
                  one dimension at a time and it persists for the whole
                  match.
PolicyThresholds  Plain attributes (``t.max_soldiers``) for the scheduler.
                  Rebuilt from the vector at every round start.

    thresholds = vector.unpack()                  # round start
    vector = ThresholdVector.pack(thresholds)     # round end, before tuning

``ThresholdVector.pack(v.unpack()) == v`` for every valid vector.

Bounds
------
Every knob carries an inclusive [lower, upper] range. Unit-count knobs and
the base cap have a floor of 2; barracks and refinery caps have a floor
of 1. Writing a value outside its range raises ValueError — the tuner
checks ``can_hold()`` before it steps, so this only fires on a bug.
"""

from __future__ import annotations

import random
from dataclasses import asdict, dataclass, fields
from typing import Dict, Iterator, Mapping, Optional, Tuple


# ---------------------------------------------------------------------------
# Knob table
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class KnobSpec:
    """One tunable threshold: its default and inclusive bound range."""
    name: str
    default: int
    lower: int
    upper: int

    def contains(self, value: int) -> bool:
        return self.lower <= value <= self.upper


# Order is the tuner's search order.
KNOBS: Tuple[KnobSpec, ...] = (
    KnobSpec("min_workers",     5,  2, 50),
    KnobSpec("max_workers",    15,  2, 50),
    KnobSpec("min_soldiers",    5,  2, 30),
    KnobSpec("max_soldiers",   10,  2, 30),
    KnobSpec("min_archers",     5,  2, 30),
    KnobSpec("max_archers",    10,  2, 30),
    KnobSpec("min_troops",      7,  2, 60),
    KnobSpec("max_troops",     20,  2, 60),
    KnobSpec("max_bases",       2,  2,  4),
    KnobSpec("max_barracks",    2,  1,  5),
    KnobSpec("max_refineries",  1,  1,  3),
)

_KNOB_INDEX: Dict[str, int] = {spec.name: i for i, spec in enumerate(KNOBS)}


# ---------------------------------------------------------------------------
# PolicyThresholds (scheduler view)
# ---------------------------------------------------------------------------

@dataclass
class PolicyThresholds:
    """Live thresholds for the current round."""
    min_workers: int = 5
    max_workers: int = 15
    min_soldiers: int = 5
    max_soldiers: int = 10
    min_archers: int = 5
    max_archers: int = 10
    min_troops: int = 7
    max_troops: int = 20
    max_bases: int = 2
    max_barracks: int = 2
    max_refineries: int = 1


# ---------------------------------------------------------------------------
# ThresholdVector (tuner view)
# ---------------------------------------------------------------------------

class ThresholdVector:
    """
    Fixed-order integer vector over KNOBS with per-dimension bounds.
    """

    def __init__(self, values: Optional[Mapping[str, int]] = None) -> None:
        self._values: list = [spec.default for spec in KNOBS]
        if values:
            for name, value in values.items():
                self.set(self.index_of(name), int(value))

    # ---- Construction ----

    @classmethod
    def defaults(cls) -> "ThresholdVector":
        return cls()

    @classmethod
    def randomized(cls, rng: random.Random) -> "ThresholdVector":
        """Every knob drawn uniformly from its own range."""
        return cls({spec.name: rng.randint(spec.lower, spec.upper) for spec in KNOBS})

    @classmethod
    def pack(cls, thresholds: PolicyThresholds) -> "ThresholdVector":
        """Live thresholds → vector."""
        return cls(asdict(thresholds))

    def unpack(self) -> PolicyThresholds:
        """Vector → live thresholds."""
        return PolicyThresholds(**self.as_dict())

    def copy(self) -> "ThresholdVector":
        clone = ThresholdVector()
        clone._values = list(self._values)
        return clone

    # ---- Access ----

    @staticmethod
    def index_of(name: str) -> int:
        try:
            return _KNOB_INDEX[name]
        except KeyError:
            raise KeyError(f"Unknown threshold knob: {name!r}") from None

    @staticmethod
    def spec(index: int) -> KnobSpec:
        return KNOBS[index]

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, index: int) -> int:
        return self._values[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)

    def get(self, name: str) -> int:
        return self._values[self.index_of(name)]

    def can_hold(self, index: int, value: int) -> bool:
        return KNOBS[index].contains(value)

    def set(self, index: int, value: int) -> None:
        spec = KNOBS[index]
        if not spec.contains(value):
            raise ValueError(
                f"{spec.name}={value} outside [{spec.lower}, {spec.upper}]"
            )
        self._values[index] = value

    def as_dict(self) -> Dict[str, int]:
        return {spec.name: value for spec, value in zip(KNOBS, self._values)}

    def as_tuple(self) -> Tuple[int, ...]:
        return tuple(self._values)

    # ---- Comparison / display ----

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ThresholdVector):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v}" for k, v in self.as_dict().items())
        return f"ThresholdVector({inner})"


def _check_knob_table() -> None:
    names = [f.name for f in fields(PolicyThresholds)]
    if names != [spec.name for spec in KNOBS]:
        raise RuntimeError("PolicyThresholds fields and KNOBS are out of sync")
    for spec in KNOBS:
        if not spec.contains(spec.default):
            raise RuntimeError(f"Default for {spec.name} is outside its range")
        if getattr(PolicyThresholds(), spec.name) != spec.default:
            raise RuntimeError(f"PolicyThresholds default for {spec.name} differs from KNOBS")


_check_knob_table()
