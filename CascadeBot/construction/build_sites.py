"""
BuildSiteCache — pre-computed build coordinates for 3x3 structures.

Design philosophy
-----------------
We do NOT decide buildability ourselves; the game world does. Scanning the
whole map through ``is_buildable`` is too slow to do every tick, so once per
round we scan it and keep every admissible coordinate. Bases, barracks and
refineries all share the same 3x3 footprint, so one cache serves all three.

Buildability changes during a round (our own structures, enemy structures,
units standing on a tile), so every consumer re-checks a cached position
with the world before using it.

Usage
-----
    sites = BuildSiteCache()
    sites.rebuild(service)                   # once per round

    pos = sites.nearest_to(service, UnitRole.BARRACKS, anchor=mine.position)
    if pos is not None:
        service.build(worker, pos, UnitRole.BARRACKS)

    rally = sites.first_admissible(service, UnitRole.BASE)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

import numpy as np
from sc2.position import Point2

from CascadeBot.logger import get_logger
from CascadeBot.world.service import UnitRole

if TYPE_CHECKING:
    from CascadeBot.world.service import GameWorldService

log = get_logger()


class BuildSiteCache:
    """
    Admissible build positions in map scan order (x-major, then y).

    One instance lives on the bot and is rebuilt in ``on_round_start``.
    """

    def __init__(self) -> None:
        self._positions: np.ndarray = np.empty((0, 2), dtype=np.int64)

    def __len__(self) -> int:
        return int(self._positions.shape[0])

    @property
    def positions(self) -> List[Point2]:
        return [Point2((int(x), int(y))) for x, y in self._positions]

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def rebuild(self, service: "GameWorldService", structure: UnitRole = UnitRole.BASE) -> int:
        """Scan the whole map and keep every buildable coordinate."""
        width, height = service.map_size
        found = [
            (x, y)
            for x in range(width)
            for y in range(height)
            if service.is_buildable(structure, Point2((x, y)))
        ]
        if found:
            self._positions = np.array(found, dtype=np.int64)
        else:
            self._positions = np.empty((0, 2), dtype=np.int64)

        log.info(
            "BuildSiteCache: %d admissible positions on a %dx%d map",
            len(found), width, height,
        )
        return len(found)

    # ------------------------------------------------------------------
    # Queries (re-validated against the world)
    # ------------------------------------------------------------------

    def _admissible_mask(self, service: "GameWorldService", structure: UnitRole) -> np.ndarray:
        return np.fromiter(
            (
                service.is_buildable(structure, Point2((int(x), int(y))))
                for x, y in self._positions
            ),
            dtype=bool,
            count=len(self),
        )

    def first_admissible(
        self,
        service: "GameWorldService",
        structure: UnitRole = UnitRole.BASE,
    ) -> Optional[Point2]:
        """First cached position that is still buildable, in scan order."""
        for x, y in self._positions:
            pos = Point2((int(x), int(y)))
            if service.is_buildable(structure, pos):
                return pos
        return None

    def nearest_to(
        self,
        service: "GameWorldService",
        structure: UnitRole,
        anchor: Optional[Point2],
    ) -> Optional[Point2]:
        """
        Still-buildable position with the smallest squared grid distance to
        ``anchor``. Ties go to the first position in scan order. Without an
        anchor this is ``first_admissible``.
        """
        if anchor is None:
            return self.first_admissible(service, structure)
        if not len(self):
            return None

        candidates = self._positions[self._admissible_mask(service, structure)]
        if not candidates.shape[0]:
            return None

        delta = candidates - np.array([anchor.x, anchor.y], dtype=np.float64)
        squared = np.einsum("ij,ij->i", delta, delta)
        x, y = candidates[int(np.argmin(squared))]
        return Point2((int(x), int(y)))
