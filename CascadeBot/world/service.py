"""
GameWorldService — the contract the decision core consumes.

The game world (rendering, physics, pathfinding, combat resolution,
buildability) lives outside this package. The core only reads rosters and
unit views from it and sends fire-and-forget commands back.

Handles
-------
A unit handle is an opaque ``int`` owned by the world. The core never
creates or destroys units and never assumes a handle is still alive on the
next tick: ``get_unit()`` returns None for a destroyed referent, and every
dereference goes through it immediately before use.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Sequence, Tuple

from sc2.position import Point2


# ---------------------------------------------------------------------------
# Roles and actions
# ---------------------------------------------------------------------------

class UnitRole(Enum):
    WORKER   = auto()
    SOLDIER  = auto()   # melee troop
    ARCHER   = auto()   # ranged troop
    BASE     = auto()
    BARRACKS = auto()
    REFINERY = auto()
    MINE     = auto()   # neutral resource


class UnitAction(Enum):
    IDLE = auto()
    BUSY = auto()


TROOP_ROLES: frozenset = frozenset({UnitRole.SOLDIER, UnitRole.ARCHER})

STRUCTURE_ROLES: frozenset = frozenset({
    UnitRole.BASE,
    UnitRole.BARRACKS,
    UnitRole.REFINERY,
})

# Roles a player owns (everything except the neutral mines)
OWNED_ROLES: Tuple[UnitRole, ...] = (
    UnitRole.WORKER,
    UnitRole.SOLDIER,
    UnitRole.ARCHER,
    UnitRole.BASE,
    UnitRole.BARRACKS,
    UnitRole.REFINERY,
)


# ---------------------------------------------------------------------------
# UnitView
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UnitView:
    """Read-only view of one unit as the world reported it."""
    handle: int
    role: UnitRole
    owner: Optional[int]
    position: Point2
    health: float
    is_built: bool = True
    action: UnitAction = UnitAction.IDLE

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    @property
    def is_idle(self) -> bool:
        return self.action == UnitAction.IDLE


# ---------------------------------------------------------------------------
# Service contract
# ---------------------------------------------------------------------------

class GameWorldService(ABC):
    """
    Everything the core needs from the host game.

    Queries are synchronous and cheap. Commands are fire-and-forget:
    re-issuing an order a unit is already carrying out is a no-op on the
    world's side, so callers do not track in-flight orders.
    """

    # ---- Queries ----

    @property
    @abstractmethod
    def map_size(self) -> Tuple[int, int]:
        """Grid width and height."""

    @abstractmethod
    def unit_handles(self, role: UnitRole, owner: Optional[int] = None) -> Sequence[int]:
        """Handles of every unit of ``role`` owned by ``owner`` (None = neutral)."""

    @abstractmethod
    def get_unit(self, handle: int) -> Optional[UnitView]:
        """Current view of ``handle``, or None if it no longer exists."""

    @abstractmethod
    def enemy_agent_ids(self, agent_id: int) -> Sequence[int]:
        """Ids of the agents opposing ``agent_id``."""

    @abstractmethod
    def is_buildable(self, structure: UnitRole, position: Point2) -> bool:
        """True if a ``structure`` footprint fits at ``position`` right now."""

    @abstractmethod
    def cost(self, role: UnitRole) -> int:
        """Gold cost of building or training ``role``."""

    @abstractmethod
    def gold(self, agent_id: int) -> int:
        """Gold currently banked by ``agent_id``."""

    # ---- Commands ----

    @abstractmethod
    def build(self, worker: UnitView, position: Point2, structure: UnitRole) -> None:
        ...

    @abstractmethod
    def train(self, producer: UnitView, role: UnitRole) -> None:
        ...

    @abstractmethod
    def attack(self, unit: UnitView, target: UnitView) -> None:
        ...

    @abstractmethod
    def move(self, unit: UnitView, position: Point2) -> None:
        ...

    @abstractmethod
    def gather(self, worker: UnitView, mine: UnitView, base: UnitView) -> None:
        ...
