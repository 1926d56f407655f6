"""Tests for manifests/tactics/combat_director.py"""

import random

import pytest
from sc2.position import Point2

from CascadeBot.construction.build_sites import BuildSiteCache
from CascadeBot.manifests.tactics.combat_director import CombatDirector
from CascadeBot.world.service import UnitAction, UnitRole
from CascadeBot.world.snapshot import WorldSnapshot

from conftest import ENEMY, ME


@pytest.fixture
def sites():
    return BuildSiteCache()


@pytest.fixture
def director(sites):
    return CombatDirector(sites, rng=random.Random(3))


def direct(world, director):
    return director.direct(WorldSnapshot.pull(world, ME, 1))


class TestGroupSizes:
    """Tests for attack-vs-rally by group size."""

    @pytest.mark.parametrize("size", [0, 1, 2, 3])
    def test_small_groups_never_attack(self, world, director, sites, size):
        world.add_many(UnitRole.SOLDIER, ME, size, x=5, y=5)
        world.add(UnitRole.SOLDIER, ENEMY, 6, 6)
        sites.rebuild(world)
        direct(world, director)
        assert world.sent("attack") == []
        assert len(world.sent("move")) == size

    def test_small_group_rallies_to_first_site(self, world, director, sites):
        world.blocked.add((0, 0))
        sites.rebuild(world)
        world.add_many(UnitRole.ARCHER, ME, 2, x=5, y=5)
        direct(world, director)
        assert {m[2] for m in world.sent("move")} == {Point2((0, 1))}

    def test_no_rally_point_no_orders(self, world, director):
        world.add_many(UnitRole.ARCHER, ME, 2, x=5, y=5)
        assert direct(world, director) == 0
        assert world.commands == []

    def test_large_group_one_order_per_idle_unit(self, world, director):
        idle = world.add_many(UnitRole.SOLDIER, ME, 4, x=5, y=5)
        busy = world.add(UnitRole.SOLDIER, ME, 5, 5, action=UnitAction.BUSY)
        world.add(UnitRole.BASE, ENEMY, 9, 9)

        assert direct(world, director) == 4
        attackers = [a[1] for a in world.sent("attack")]
        assert attackers == idle
        assert busy not in attackers

    def test_large_group_without_enemies_issues_nothing(self, world, director):
        world.add_many(UnitRole.SOLDIER, ME, 5)
        assert direct(world, director) == 0
        assert world.commands == []

    def test_groups_are_independent(self, world, director, sites):
        sites.rebuild(world)
        world.add_many(UnitRole.SOLDIER, ME, 4, x=5, y=5)
        world.add_many(UnitRole.ARCHER, ME, 2, x=5, y=5)
        world.add(UnitRole.WORKER, ENEMY, 1, 1)
        direct(world, director)
        assert len(world.sent("attack")) == 4
        assert len(world.sent("move")) == 2


class TestTargetPriority:
    """Tests for target selection order."""

    def _attacker(self, world):
        world.add_many(UnitRole.SOLDIER, ME, 4, x=0, y=0)
        return WorldSnapshot.pull(world, ME, 1)

    def test_nearest_enemy_troop(self, world, director):
        world.add(UnitRole.SOLDIER, ENEMY, 9, 9)
        near = world.add(UnitRole.SOLDIER, ENEMY, 2, 2)
        world.add(UnitRole.BASE, ENEMY, 1, 1)
        snapshot = self._attacker(world)
        unit = snapshot.lookup(snapshot.own.of(UnitRole.SOLDIER)[0])
        assert director.choose_target(snapshot, unit).handle == near

    def test_archer_scanned_first_on_tie(self, world, director):
        world.add(UnitRole.SOLDIER, ENEMY, 3, 0)
        archer = world.add(UnitRole.ARCHER, ENEMY, 0, 3)
        snapshot = self._attacker(world)
        unit = snapshot.lookup(snapshot.own.of(UnitRole.SOLDIER)[0])
        assert director.choose_target(snapshot, unit).handle == archer

    def test_base_before_workers(self, world, director):
        world.add(UnitRole.WORKER, ENEMY, 1, 1)
        base = world.add(UnitRole.BASE, ENEMY, 9, 9)
        snapshot = self._attacker(world)
        unit = snapshot.lookup(snapshot.own.of(UnitRole.SOLDIER)[0])
        assert director.choose_target(snapshot, unit).handle == base

    def test_random_base_among_several(self, world, director):
        bases = {world.add(UnitRole.BASE, ENEMY, 9, y) for y in range(3)}
        snapshot = self._attacker(world)
        unit = snapshot.lookup(snapshot.own.of(UnitRole.SOLDIER)[0])
        picks = {director.choose_target(snapshot, unit).handle for _ in range(50)}
        assert picks <= bases
        assert len(picks) > 1

    def test_nearest_worker_before_barracks(self, world, director):
        world.add(UnitRole.BARRACKS, ENEMY, 1, 1)
        world.add(UnitRole.WORKER, ENEMY, 8, 8)
        near = world.add(UnitRole.WORKER, ENEMY, 4, 4)
        snapshot = self._attacker(world)
        unit = snapshot.lookup(snapshot.own.of(UnitRole.SOLDIER)[0])
        assert director.choose_target(snapshot, unit).handle == near

    def test_barracks_before_refinery(self, world, director):
        world.add(UnitRole.REFINERY, ENEMY, 1, 1)
        barracks = world.add(UnitRole.BARRACKS, ENEMY, 8, 8)
        snapshot = self._attacker(world)
        unit = snapshot.lookup(snapshot.own.of(UnitRole.SOLDIER)[0])
        assert director.choose_target(snapshot, unit).handle == barracks

    def test_refinery_last(self, world, director):
        refinery = world.add(UnitRole.REFINERY, ENEMY, 1, 1)
        snapshot = self._attacker(world)
        unit = snapshot.lookup(snapshot.own.of(UnitRole.SOLDIER)[0])
        assert director.choose_target(snapshot, unit).handle == refinery

    def test_dead_enemies_are_ignored(self, world, director):
        world.add(UnitRole.SOLDIER, ENEMY, 1, 1, health=0)
        worker = world.add(UnitRole.WORKER, ENEMY, 7, 7)
        snapshot = self._attacker(world)
        unit = snapshot.lookup(snapshot.own.of(UnitRole.SOLDIER)[0])
        assert director.choose_target(snapshot, unit).handle == worker
