"""
Production machine — the per-tick priority table.

Selects exactly one AgentState every tick from a small fact record
(ProductionInputs) and the live PolicyThresholds. Nothing here talks to the
game world; the ProductionScheduler builds the inputs from a snapshot and
executes whatever state comes back.

Priority table
--------------
Rules are checked in order; the first match wins. There is no weighing
between rules — a higher rule that matches always beats a lower one.

  1. BUILDING_BASE      — no base at all
  2. BUILDING_BARRACKS  — under the barracks cap, a base exists, affordable
  3. WAITING            — under the barracks cap but already holding more
                          troops than half the troop caps (save for barracks)
  4. BUILDING_REFINERY  — under the refinery cap, affordable
  5. BUILDING_WORKER    — below min workers, or troops maxed and room
                          for more workers
  6. BUILDING_SOLDIER   — under the soldier cap, affordable, and fewer than
                          SOLDIER_STREAK_LIMIT soldier ticks in a row
  7. BUILDING_ARCHER    — under the archer cap, affordable
  8. WAITING            — always matches

Execution gates
---------------
Two checks run after a state is picked and only decide whether its command
is sent:

  may_train_troops  BUILDING_SOLDIER / BUILDING_ARCHER train only while
                    soldiers < min_soldiers, archers < min_archers, or a
                    refinery exists (gold is saved for the first refinery)
  should_expand     on the default WAITING rule, a base is built while
                    0 < bases < max_bases and a base is affordable

Attack overlay
--------------
``should_attack()`` is evaluated separately from the table. Whenever we hold
at least ``min_troops`` troops the combat overlay runs, whatever state the
table picked, including back-pressure WAITING.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List

from CascadeBot import config
from CascadeBot.manifests.thresholds import PolicyThresholds
from CascadeBot.world.service import UnitRole

if TYPE_CHECKING:
    from CascadeBot.world.snapshot import WorldSnapshot


class AgentState(Enum):
    BUILDING_BASE     = "BUILDING_BASE"
    BUILDING_BARRACKS = "BUILDING_BARRACKS"
    BUILDING_REFINERY = "BUILDING_REFINERY"
    BUILDING_WORKER   = "BUILDING_WORKER"
    BUILDING_SOLDIER  = "BUILDING_SOLDIER"
    BUILDING_ARCHER   = "BUILDING_ARCHER"
    WAITING           = "WAITING"
    # Reserved. Not produced by the table; WINNING labels the attack overlay
    # in logs, DEFENDING/RECOVERING are kept for later policies.
    WINNING           = "WINNING"
    DEFENDING         = "DEFENDING"
    RECOVERING        = "RECOVERING"


# States that place a structure, and what they place
STRUCTURE_STATES: Dict[AgentState, UnitRole] = {
    AgentState.BUILDING_BASE:     UnitRole.BASE,
    AgentState.BUILDING_BARRACKS: UnitRole.BARRACKS,
    AgentState.BUILDING_REFINERY: UnitRole.REFINERY,
}

# States that train a unit, and (unit, producer role)
TRAINING_STATES: Dict[AgentState, tuple] = {
    AgentState.BUILDING_WORKER:  (UnitRole.WORKER,  UnitRole.BASE),
    AgentState.BUILDING_SOLDIER: (UnitRole.SOLDIER, UnitRole.BARRACKS),
    AgentState.BUILDING_ARCHER:  (UnitRole.ARCHER,  UnitRole.BARRACKS),
}


# ── Inputs ────────────────────────────────────────────────────────────────────

@dataclass
class ProductionInputs:
    """The facts the table reads. All counts are roster sizes for this tick."""
    bases: int = 0
    barracks: int = 0
    refineries: int = 0
    workers: int = 0
    soldiers: int = 0
    archers: int = 0
    gold: int = 0
    costs: Dict[UnitRole, int] = field(default_factory=dict)
    soldier_streak: int = 0

    @property
    def troops(self) -> int:
        return self.soldiers + self.archers

    def can_afford(self, role: UnitRole) -> bool:
        return self.gold >= self.costs.get(role, 0)

    @classmethod
    def from_snapshot(cls, snapshot: "WorldSnapshot", soldier_streak: int = 0) -> "ProductionInputs":
        own = snapshot.own
        service = snapshot.service
        return cls(
            bases=own.count(UnitRole.BASE),
            barracks=own.count(UnitRole.BARRACKS),
            refineries=own.count(UnitRole.REFINERY),
            workers=own.count(UnitRole.WORKER),
            soldiers=own.count(UnitRole.SOLDIER),
            archers=own.count(UnitRole.ARCHER),
            gold=snapshot.gold,
            costs={role: service.cost(role) for role in UnitRole if role != UnitRole.MINE},
            soldier_streak=soldier_streak,
        )


# ── Rule dataclass ────────────────────────────────────────────────────────────

@dataclass
class _ProductionRule:
    """
    One entry in the priority table.

    enter(inputs, thresholds) → True  means this state wins the tick.
    """
    state: AgentState
    enter: Callable[[ProductionInputs, PolicyThresholds], bool]
    label: str = ""


# ── Priority table ────────────────────────────────────────────────────────────

_RULES: List[_ProductionRule] = [
    # ── 1. No base: nothing else works without one ──────────────────────────
    _ProductionRule(
        state=AgentState.BUILDING_BASE,
        enter=lambda i, t: i.bases == 0,
        label="no base",
    ),

    # ── 2. Barracks ─────────────────────────────────────────────────────────
    _ProductionRule(
        state=AgentState.BUILDING_BARRACKS,
        enter=lambda i, t: (
            i.barracks < t.max_barracks
            and i.bases > 0
            and i.can_afford(UnitRole.BARRACKS)
        ),
        label="barracks",
    ),

    # ── 3. Back-pressure ────────────────────────────────────────────────────
    # Barracks wanted but not affordable, and the army is already past half
    # its caps: stop spending on troops until the barracks goes down.
    _ProductionRule(
        state=AgentState.WAITING,
        enter=lambda i, t: (
            i.barracks < t.max_barracks
            and i.troops > (t.max_archers + t.max_soldiers) // 2
        ),
        label="barracks back-pressure",
    ),

    # ── 4. Refinery ─────────────────────────────────────────────────────────
    _ProductionRule(
        state=AgentState.BUILDING_REFINERY,
        enter=lambda i, t: (
            i.refineries < t.max_refineries
            and i.can_afford(UnitRole.REFINERY)
        ),
        label="refinery",
    ),

    # ── 5. Workers ──────────────────────────────────────────────────────────
    _ProductionRule(
        state=AgentState.BUILDING_WORKER,
        enter=lambda i, t: (
            i.workers < t.min_workers
            or (i.troops >= t.max_troops and i.workers < t.max_workers)
        ),
        label="workers",
    ),

    # ── 6. Soldiers (streak-limited so archers get a turn) ──────────────────
    _ProductionRule(
        state=AgentState.BUILDING_SOLDIER,
        enter=lambda i, t: (
            i.soldiers < t.max_soldiers
            and i.can_afford(UnitRole.SOLDIER)
            and i.soldier_streak < config.SOLDIER_STREAK_LIMIT
        ),
        label="soldiers",
    ),

    # ── 7. Archers ──────────────────────────────────────────────────────────
    _ProductionRule(
        state=AgentState.BUILDING_ARCHER,
        enter=lambda i, t: (
            i.archers < t.max_archers
            and i.can_afford(UnitRole.ARCHER)
        ),
        label="archers",
    ),

    # ── 8. Default ──────────────────────────────────────────────────────────
    _ProductionRule(
        state=AgentState.WAITING,
        enter=lambda i, t: True,
        label="default",
    ),
]


def select_state(inputs: ProductionInputs, thresholds: PolicyThresholds) -> AgentState:
    """Return the state of the first rule whose enter() fires."""
    return select_rule(inputs, thresholds).state


def select_rule(inputs: ProductionInputs, thresholds: PolicyThresholds) -> _ProductionRule:
    for rule in _RULES:
        if rule.enter(inputs, thresholds):
            return rule
    return _RULES[-1]


def should_attack(inputs: ProductionInputs, thresholds: PolicyThresholds) -> bool:
    """Attack overlay trigger. Independent of the selected state."""
    return inputs.troops >= thresholds.min_troops


# ── Execution gates ───────────────────────────────────────────────────────────
# Read by the scheduler after the table has picked a state. They never change
# which state wins, only whether that state's command is issued.

DEFAULT_RULE: _ProductionRule = _RULES[-1]


def may_train_troops(inputs: ProductionInputs, thresholds: PolicyThresholds) -> bool:
    """
    Barracks train only while a troop group is under its minimum or a
    refinery already stands. Otherwise gold is held for the first refinery.
    """
    return (
        inputs.soldiers < thresholds.min_soldiers
        or inputs.archers < thresholds.min_archers
        or inputs.refineries > 0
    )


def should_expand(inputs: ProductionInputs, thresholds: PolicyThresholds) -> bool:
    """Spare gold on the default rule goes to another base, below the cap."""
    return 0 < inputs.bases < thresholds.max_bases and inputs.can_afford(UnitRole.BASE)
