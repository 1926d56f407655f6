"""
ProductionScheduler — turns the selected AgentState into commands.

Per tick, in this order:

1. Re-resolve the primary base and primary mine (cross-tick references are
   never trusted without a fresh existence check).
2. Ask the production machine for this tick's state.
3. Execute it:
     structure states  → at most ONE build command, at the cached site
                         nearest the primary mine
     training states   → one train command per eligible producer
                         (alive, built, idle) while gold and the cap allow
     barracks training → only while may_train_troops() allows it
     default WAITING   → one BASE build when should_expand() allows it
     other WAITING     → nothing
4. Send every idle worker to gather, whatever the state, except a worker
   that was handed a build order this tick.

The combat overlay is not run from here; the bot decides that from the
same inputs via ``should_attack()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Collection, Optional

from CascadeBot.logger import get_logger
from CascadeBot.manifests.production_machine import (
    DEFAULT_RULE,
    STRUCTURE_STATES,
    TRAINING_STATES,
    AgentState,
    ProductionInputs,
    may_train_troops,
    select_rule,
    should_expand,
)
from CascadeBot.world.service import UnitRole, UnitView

if TYPE_CHECKING:
    from sc2.position import Point2

    from CascadeBot.agent_context import AgentContext
    from CascadeBot.construction.build_sites import BuildSiteCache
    from CascadeBot.world.snapshot import WorldSnapshot

log = get_logger()


class ProductionScheduler:
    """
    Stateless apart from the shared BuildSiteCache; all per-agent state is
    read from and written to the AgentContext passed into ``step()``.
    """

    def __init__(self, build_sites: "BuildSiteCache") -> None:
        self.build_sites = build_sites

    # ------------------------------------------------------------------ #
    # Tick entry point
    # ------------------------------------------------------------------ #

    def step(self, snapshot: "WorldSnapshot", context: "AgentContext") -> ProductionInputs:
        """Run one scheduler tick. Returns the inputs the table was fed."""
        self.resolve_primary_base(snapshot, context)
        self.resolve_primary_mine(snapshot, context)

        inputs = ProductionInputs.from_snapshot(snapshot, context.soldier_streak)
        rule = select_rule(inputs, context.thresholds)
        self._change_state(context, rule.state, rule.label, snapshot.tick)

        if rule.state == AgentState.BUILDING_SOLDIER:
            context.soldier_streak += 1
        elif rule.state == AgentState.BUILDING_ARCHER:
            context.soldier_streak = 0

        builder = None
        if rule.state in STRUCTURE_STATES:
            builder = self.build_structure(snapshot, context, STRUCTURE_STATES[rule.state])
        elif rule.state in TRAINING_STATES:
            unit_role, producer_role = TRAINING_STATES[rule.state]
            if producer_role != UnitRole.BARRACKS or may_train_troops(inputs, context.thresholds):
                self.train_units(snapshot, context, unit_role, producer_role)
        elif rule is DEFAULT_RULE and should_expand(inputs, context.thresholds):
            builder = self.build_structure(snapshot, context, UnitRole.BASE)

        # The host may only flip the builder to busy next step
        self.assign_gatherers(snapshot, context, exclude=() if builder is None else (builder,))
        return inputs

    def _change_state(
        self,
        context: "AgentContext",
        new_state: AgentState,
        reason: str,
        tick: int,
    ) -> None:
        if new_state == context.state:
            return
        log.game_event(
            "STATE",
            f"{context.state.value} → {new_state.value} ({reason})",
            tick=tick,
        )
        context.state = new_state

    # ------------------------------------------------------------------ #
    # Primary base / mine
    # ------------------------------------------------------------------ #

    def resolve_primary_base(self, snapshot: "WorldSnapshot", context: "AgentContext") -> Optional[UnitView]:
        """Keep the previous primary base while it is owned and alive."""
        bases = snapshot.own.of(UnitRole.BASE)

        if context.primary_base in bases:
            base = snapshot.lookup(context.primary_base)
            if base is not None:
                return base

        base = next(snapshot.live_units(bases), None)
        context.primary_base = base.handle if base is not None else None
        return base

    def resolve_primary_mine(self, snapshot: "WorldSnapshot", context: "AgentContext") -> Optional[UnitView]:
        """
        Full rescan every tick: nearest live mine to the primary base, or to
        the first live worker when there is no base.
        """
        anchor = snapshot.lookup(context.primary_base)
        if anchor is None:
            anchor = next(snapshot.live_units(snapshot.own.of(UnitRole.WORKER)), None)

        mine = None
        if anchor is not None:
            mines = list(snapshot.live_units(snapshot.mines))
            if mines:
                mine = min(mines, key=lambda m: anchor.position.distance_to(m.position))

        context.primary_mine = mine.handle if mine is not None else None
        return mine

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def build_structure(
        self,
        snapshot: "WorldSnapshot",
        context: "AgentContext",
        structure: UnitRole,
    ) -> Optional[int]:
        """Issue at most one build command for ``structure``. Returns the builder."""
        service = snapshot.service
        tick = snapshot.tick

        if structure == UnitRole.BASE and snapshot.own.count(UnitRole.BASE) >= context.thresholds.max_bases:
            return None
        if snapshot.gold < service.cost(structure):
            return None

        site = self._choose_site(snapshot, context, structure)
        if site is None:
            log.debug("No admissible site for %s", structure.name, tick=tick)
            return None

        worker = next(snapshot.live_units(snapshot.own.of(UnitRole.WORKER)), None)
        if worker is None:
            log.debug("No live worker to build %s", structure.name, tick=tick)
            return None

        service.build(worker, site, structure)
        log.command("BUILD", worker.handle, f"{structure.name}@({site.x:.0f},{site.y:.0f})", tick=tick)
        return worker.handle

    def _choose_site(
        self,
        snapshot: "WorldSnapshot",
        context: "AgentContext",
        structure: UnitRole,
    ) -> Optional["Point2"]:
        mine = snapshot.lookup(context.primary_mine)
        anchor = mine.position if mine is not None else None
        return self.build_sites.nearest_to(snapshot.service, structure, anchor)

    def train_units(
        self,
        snapshot: "WorldSnapshot",
        context: "AgentContext",
        unit_role: UnitRole,
        producer_role: UnitRole,
    ) -> int:
        """One train command per eligible producer. Returns commands issued."""
        service = snapshot.service
        cost = service.cost(unit_role)
        budget = snapshot.gold
        room = self._room_for(snapshot, context, unit_role)
        issued = 0

        for handle in snapshot.own.of(producer_role):
            if issued >= room or budget < cost:
                break
            producer = snapshot.lookup(handle)
            if producer is None or not producer.is_built or not producer.is_idle:
                continue
            service.train(producer, unit_role)
            log.command("TRAIN", producer.handle, unit_role.name, tick=snapshot.tick)
            budget -= cost
            issued += 1

        return issued

    @staticmethod
    def _room_for(snapshot: "WorldSnapshot", context: "AgentContext", unit_role: UnitRole) -> int:
        t = context.thresholds
        cap = {
            UnitRole.WORKER:  t.max_workers,
            UnitRole.SOLDIER: t.max_soldiers,
            UnitRole.ARCHER:  t.max_archers,
        }[unit_role]
        # min_workers may be tuned above max_workers; the worker rule still
        # fires on it, so honour whichever is larger.
        if unit_role == UnitRole.WORKER:
            cap = max(cap, t.min_workers)
        return max(0, cap - snapshot.own.count(unit_role))

    def assign_gatherers(
        self,
        snapshot: "WorldSnapshot",
        context: "AgentContext",
        exclude: Collection[int] = (),
    ) -> int:
        """Order every idle worker not in ``exclude`` to gather. Returns orders issued."""
        base = snapshot.lookup(context.primary_base)
        mine = snapshot.lookup(context.primary_mine)
        if base is None or mine is None:
            return 0

        issued = 0
        for worker in snapshot.live_units(snapshot.own.of(UnitRole.WORKER)):
            if not worker.is_idle or worker.handle in exclude:
                continue
            snapshot.service.gather(worker, mine, base)
            issued += 1

        if issued:
            log.debug("Gather: %d idle workers → mine %d", issued, mine.handle, tick=snapshot.tick)
        return issued
