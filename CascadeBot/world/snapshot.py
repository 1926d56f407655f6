# CascadeBot/world/snapshot.py
"""
WorldSnapshot — the once-per-tick roster pull.

Every tick starts by pulling all role rosters for both players from the
game world. The rest of the tick reads rosters only from this object so
decisions never mix counts taken at different moments. Unit views are
still looked up live, because a unit listed in the roster may be destroyed
before we get to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from CascadeBot.world.service import (
    OWNED_ROLES,
    GameWorldService,
    UnitRole,
    UnitView,
)


@dataclass
class RoleRoster:
    """Ordered unit handles per role for a single owner."""
    owner: Optional[int]
    handles: Dict[UnitRole, List[int]] = field(default_factory=dict)

    def of(self, role: UnitRole) -> List[int]:
        return self.handles.get(role, [])

    def count(self, role: UnitRole) -> int:
        return len(self.of(role))

    @property
    def troop_count(self) -> int:
        return self.count(UnitRole.SOLDIER) + self.count(UnitRole.ARCHER)

    @classmethod
    def pull(cls, service: GameWorldService, owner: Optional[int]) -> "RoleRoster":
        roster = cls(owner=owner)
        if owner is None:
            return roster
        for role in OWNED_ROLES:
            roster.handles[role] = list(service.unit_handles(role, owner))
        return roster


@dataclass
class WorldSnapshot:
    """
    Everything the core knows about the world for one tick.

    Build with ``WorldSnapshot.pull()``; never mutate afterwards.
    """
    service: GameWorldService
    agent_id: int
    enemy_id: Optional[int]
    tick: int
    gold: int
    mines: List[int]
    own: RoleRoster
    enemy: RoleRoster

    @classmethod
    def pull(cls, service: GameWorldService, agent_id: int, tick: int = 0) -> "WorldSnapshot":
        enemies = list(service.enemy_agent_ids(agent_id))
        enemy_id = enemies[0] if enemies else None
        return cls(
            service=service,
            agent_id=agent_id,
            enemy_id=enemy_id,
            tick=tick,
            gold=service.gold(agent_id),
            mines=list(service.unit_handles(UnitRole.MINE, None)),
            own=RoleRoster.pull(service, agent_id),
            enemy=RoleRoster.pull(service, enemy_id),
        )

    # --- Lookups ---

    def lookup(self, handle: Optional[int]) -> Optional[UnitView]:
        """Live view of ``handle``; None if missing, destroyed or dead."""
        if handle is None:
            return None
        unit = self.service.get_unit(handle)
        if unit is None or not unit.is_alive:
            return None
        return unit

    def live_units(self, handles: Iterable[int]) -> Iterator[UnitView]:
        for handle in handles:
            unit = self.lookup(handle)
            if unit is not None:
                yield unit

    # --- Convenience counts ---

    @property
    def own_troop_count(self) -> int:
        return self.own.troop_count

    @property
    def enemy_troop_count(self) -> int:
        return self.enemy.troop_count
