"""Shared fixtures: an in-memory game world that records every command."""

import dataclasses
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
from sc2.position import Point2

from CascadeBot.agent_context import AgentContext
from CascadeBot.world.service import (
    STRUCTURE_ROLES,
    GameWorldService,
    UnitAction,
    UnitRole,
    UnitView,
)


ME = 1
ENEMY = 2

DEFAULT_COSTS = {
    UnitRole.WORKER: 50,
    UnitRole.SOLDIER: 50,
    UnitRole.ARCHER: 100,
    UnitRole.BASE: 150,
    UnitRole.BARRACKS: 200,
    UnitRole.REFINERY: 100,
    UnitRole.MINE: 0,
}


class FakeWorld(GameWorldService):
    """
    Minimal world: units in insertion order, a grid where any tile holding
    a structure or mine is unbuildable, and a command log. A commanded unit
    turns BUSY immediately.
    """

    def __init__(self, width: int = 10, height: int = 10, costs: Optional[Dict] = None):
        self.width = width
        self.height = height
        self.costs = dict(DEFAULT_COSTS if costs is None else costs)
        self.units: Dict[int, UnitView] = {}
        self.gold_by_agent: Dict[int, int] = {ME: 0, ENEMY: 0}
        self.agents: List[int] = [ME, ENEMY]
        self.blocked: set = set()
        self.commands: List[Tuple] = []
        self._next_handle = 100

    # ---- Setup helpers ----

    def add(
        self,
        role: UnitRole,
        owner: Optional[int],
        x: float = 0,
        y: float = 0,
        health: float = 10,
        built: bool = True,
        action: UnitAction = UnitAction.IDLE,
    ) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self.units[handle] = UnitView(
            handle=handle,
            role=role,
            owner=owner,
            position=Point2((x, y)),
            health=health,
            is_built=built,
            action=action,
        )
        return handle

    def add_many(self, role: UnitRole, owner: Optional[int], n: int, **kwargs) -> List[int]:
        return [self.add(role, owner, **kwargs) for _ in range(n)]

    def kill(self, handle: int) -> None:
        self.units.pop(handle, None)

    def update(self, handle: int, **changes) -> None:
        self.units[handle] = dataclasses.replace(self.units[handle], **changes)

    def idle_all(self) -> None:
        for handle in list(self.units):
            self.update(handle, action=UnitAction.IDLE)

    def sent(self, kind: str) -> List[Tuple]:
        return [c for c in self.commands if c[0] == kind]

    # ---- Queries ----

    @property
    def map_size(self) -> Tuple[int, int]:
        return self.width, self.height

    def unit_handles(self, role: UnitRole, owner: Optional[int] = None) -> Sequence[int]:
        return [h for h, u in self.units.items() if u.role == role and u.owner == owner]

    def get_unit(self, handle: int) -> Optional[UnitView]:
        return self.units.get(handle)

    def enemy_agent_ids(self, agent_id: int) -> Sequence[int]:
        return [a for a in self.agents if a != agent_id]

    def is_buildable(self, structure: UnitRole, position: Point2) -> bool:
        x, y = int(position[0]), int(position[1])
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        if (x, y) in self.blocked:
            return False
        for u in self.units.values():
            if u.role in STRUCTURE_ROLES or u.role == UnitRole.MINE:
                if (int(u.position.x), int(u.position.y)) == (x, y):
                    return False
        return True

    def cost(self, role: UnitRole) -> int:
        return self.costs[role]

    def gold(self, agent_id: int) -> int:
        return self.gold_by_agent.get(agent_id, 0)

    # ---- Commands ----

    def _busy(self, unit: UnitView) -> None:
        if unit.handle in self.units:
            self.update(unit.handle, action=UnitAction.BUSY)

    def build(self, worker, position, structure):
        self.commands.append(("build", worker.handle, Point2(position), structure))
        self._busy(worker)

    def train(self, producer, role):
        self.commands.append(("train", producer.handle, role))
        self._busy(producer)

    def attack(self, unit, target):
        self.commands.append(("attack", unit.handle, target.handle))
        self._busy(unit)

    def move(self, unit, position):
        self.commands.append(("move", unit.handle, Point2(position)))
        self._busy(unit)

    def gather(self, worker, mine, base):
        self.commands.append(("gather", worker.handle, mine.handle, base.handle))
        self._busy(worker)


@pytest.fixture
def world():
    return FakeWorld()


@pytest.fixture
def context():
    ctx = AgentContext(agent_id=ME)
    ctx.reset_round()
    return ctx
