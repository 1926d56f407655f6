"""
CascadeBot.world — the game-world contract and the per-tick snapshot.

Public API
----------
    from CascadeBot.world import (
        GameWorldService,
        UnitRole,
        UnitAction,
        UnitView,
        RoleRoster,
        WorldSnapshot,
    )
"""

from CascadeBot.world.service import (
    GameWorldService,
    UnitAction,
    UnitRole,
    UnitView,
)
from CascadeBot.world.snapshot import RoleRoster, WorldSnapshot

__all__ = [
    "GameWorldService",
    "UnitAction",
    "UnitRole",
    "UnitView",
    "RoleRoster",
    "WorldSnapshot",
]
