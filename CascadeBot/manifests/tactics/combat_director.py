"""
CombatDirector — orders for idle troops while the attack overlay is on.

Each troop group (soldiers, archers) is handled on its own:

  size > GROUP_ATTACK_SIZE    every idle unit attacks a target
  0 < size ≤ GROUP_ATTACK_SIZE  every idle unit moves to the rally point
  size == 0                   nothing

Target selection (per attacking unit):
  1. Nearest enemy troop — archers scanned before soldiers, first scanned
     wins a distance tie
  2. A random enemy base
  3. Nearest enemy worker
  4. A random enemy barracks
  5. A random enemy refinery
  No enemy of any kind → no order.

Busy units are never given a new order; only IDLE units are touched.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, List, Optional

from CascadeBot import config
from CascadeBot.logger import get_logger
from CascadeBot.world.service import UnitRole, UnitView

if TYPE_CHECKING:
    from sc2.position import Point2

    from CascadeBot.construction.build_sites import BuildSiteCache
    from CascadeBot.world.snapshot import WorldSnapshot

log = get_logger()


class CombatDirector:

    GROUPS = (UnitRole.SOLDIER, UnitRole.ARCHER)

    def __init__(
        self,
        build_sites: "BuildSiteCache",
        rng: Optional[random.Random] = None,
        group_attack_size: int = config.GROUP_ATTACK_SIZE,
    ) -> None:
        self.build_sites = build_sites
        self.rng = rng if rng is not None else random.Random(config.RANDOM_SEED)
        self.group_attack_size = group_attack_size

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #

    def direct(self, snapshot: "WorldSnapshot") -> int:
        """Order every troop group. Returns the number of orders issued."""
        return sum(self.direct_group(snapshot, role) for role in self.GROUPS)

    def direct_group(self, snapshot: "WorldSnapshot", role: UnitRole) -> int:
        handles = snapshot.own.of(role)
        if len(handles) > self.group_attack_size:
            return self._attack_with(snapshot, handles)
        if handles:
            return self._rally(snapshot, handles)
        return 0

    # ------------------------------------------------------------------ #
    # Attack
    # ------------------------------------------------------------------ #

    def _attack_with(self, snapshot: "WorldSnapshot", handles: List[int]) -> int:
        issued = 0
        for unit in snapshot.live_units(handles):
            if not unit.is_idle:
                continue
            target = self.choose_target(snapshot, unit)
            if target is None:
                # Nothing left to hit; the same holds for the rest of the group
                break
            snapshot.service.attack(unit, target)
            log.command("ATTACK", unit.handle, f"{target.role.name}#{target.handle}", tick=snapshot.tick)
            issued += 1
        return issued

    def choose_target(self, snapshot: "WorldSnapshot", unit: UnitView) -> Optional[UnitView]:
        enemy = snapshot.enemy

        troops = list(snapshot.live_units(enemy.of(UnitRole.ARCHER)))
        troops += snapshot.live_units(enemy.of(UnitRole.SOLDIER))
        if troops:
            return self._nearest(unit, troops)

        bases = list(snapshot.live_units(enemy.of(UnitRole.BASE)))
        if bases:
            return self.rng.choice(bases)

        workers = list(snapshot.live_units(enemy.of(UnitRole.WORKER)))
        if workers:
            return self._nearest(unit, workers)

        for role in (UnitRole.BARRACKS, UnitRole.REFINERY):
            structures = list(snapshot.live_units(enemy.of(role)))
            if structures:
                return self.rng.choice(structures)

        return None

    @staticmethod
    def _nearest(unit: UnitView, candidates: List[UnitView]) -> UnitView:
        # min() keeps the first of equal keys, so scan order breaks ties
        return min(candidates, key=lambda c: unit.position.distance_to(c.position))

    # ------------------------------------------------------------------ #
    # Rally
    # ------------------------------------------------------------------ #

    def rally_point(self, snapshot: "WorldSnapshot") -> Optional["Point2"]:
        return self.build_sites.first_admissible(snapshot.service, UnitRole.BASE)

    def _rally(self, snapshot: "WorldSnapshot", handles: List[int]) -> int:
        point = self.rally_point(snapshot)
        if point is None:
            return 0
        issued = 0
        for unit in snapshot.live_units(handles):
            if not unit.is_idle:
                continue
            snapshot.service.move(unit, point)
            log.command("MOVE", unit.handle, f"rally({point.x:.0f},{point.y:.0f})", tick=snapshot.tick)
            issued += 1
        return issued
