"""
Cascade Bot - Main Agent Class

The host calls four hooks:
- on_match_start  identity only; nothing is reset
- on_round_start  clear per-round state, rebuild build sites, unpack knobs
- on_tick         one snapshot → production scheduler → combat overlay
- on_round_end    metric → pack knobs → tune → record (errors logged, not raised)

Round boundary ordering
-----------------------
on_round_end packs the thresholds that were actually in effect BEFORE the
tuner runs, and the tuner's output only becomes live at the NEXT
on_round_start (unpack). Never reorder these steps.
"""

from __future__ import annotations

import random
from typing import Optional

from CascadeBot import config
from CascadeBot.agent_context import AgentContext, RoundRecord
from CascadeBot.construction.build_sites import BuildSiteCache
from CascadeBot.logger import get_logger
from CascadeBot.manifests.parameter_tuner import ParameterTuner
from CascadeBot.manifests.production_machine import AgentState, should_attack
from CascadeBot.manifests.production_scheduler import ProductionScheduler
from CascadeBot.manifests.tactics.combat_director import CombatDirector
from CascadeBot.manifests.thresholds import ThresholdVector
from CascadeBot.round_stats import MetricSample, RoundStatsTracker
from CascadeBot.world.service import GameWorldService, UnitRole
from CascadeBot.world.snapshot import WorldSnapshot


log = get_logger()


class CascadeBot:
    """
    One agent. Owns its AgentContext for the whole match and mutates it
    only from its own hooks.
    """

    def __init__(
        self,
        service: GameWorldService,
        agent_id: int,
        name: str = config.BOT_NAME,
        seed: Optional[int] = config.RANDOM_SEED,
        initial_vector: Optional[ThresholdVector] = None,
    ) -> None:
        self.service = service
        self.rng = random.Random(seed)

        self.context = AgentContext(agent_id=agent_id, name=name)
        if initial_vector is not None:
            self.context.search_vector = initial_vector.copy()

        self.build_sites = BuildSiteCache()
        self.scheduler = ProductionScheduler(self.build_sites)
        self.combat = CombatDirector(self.build_sites, rng=self.rng)
        self.tuner = ParameterTuner(rng=self.rng)
        self.round_stats = RoundStatsTracker()

        self.snapshot: Optional[WorldSnapshot] = None
        self.attack_overlay_active: bool = False

    # ------------------------------------------------------------------ #
    # Lifecycle hooks
    # ------------------------------------------------------------------ #

    def on_match_start(self) -> None:
        """Identity only — search state and knobs carry on untouched."""
        ctx = self.context
        enemies = list(self.service.enemy_agent_ids(ctx.agent_id))
        ctx.enemy_id = enemies[0] if enemies else None
        if ctx.enemy_id is None:
            log.warning("No enemy agent for agent %d; enemy roster stays empty", ctx.agent_id)
        log.game_event(
            "MATCH_START",
            f"{ctx.name} (agent {ctx.agent_id}) vs agent {ctx.enemy_id}",
        )

    def on_round_start(self) -> None:
        ctx = self.context
        ctx.reset_round()
        self.snapshot = None
        self.attack_overlay_active = False
        self.round_stats.reset()
        self.build_sites.rebuild(self.service, UnitRole.BASE)

        log.game_event(
            "ROUND_START",
            f"round={ctx.round_number} | {ctx.search_vector!r}",
            tick=ctx.tick,
        )

    def on_tick(self) -> None:
        """One simulation step. Never raises into the host."""
        ctx = self.context
        ctx.tick += 1
        try:
            self._tick()
        except Exception as e:
            log.exception("Tick failed: %s", e, tick=ctx.tick)

    def _tick(self) -> None:
        ctx = self.context
        snapshot = WorldSnapshot.pull(self.service, ctx.agent_id, ctx.tick)
        self.snapshot = snapshot

        inputs = self.scheduler.step(snapshot, ctx)

        overlay = should_attack(inputs, ctx.thresholds)
        if overlay != self.attack_overlay_active:
            log.game_event(
                AgentState.WINNING.value,
                f"overlay {'on' if overlay else 'off'} | troops={inputs.troops} "
                f"min_troops={ctx.thresholds.min_troops}",
                tick=ctx.tick,
            )
            self.attack_overlay_active = overlay
        if overlay:
            self.combat.direct(snapshot)

        self.round_stats.update(snapshot)

    def on_round_end(self) -> Optional[MetricSample]:
        """
        Score the round and tune the knobs for the next one. Never raises into
        the host; on failure the search vector is left as it was and None is
        returned.
        """
        ctx = self.context
        try:
            return self._end_round()
        except Exception as e:
            log.exception("Round end failed: %s", e, tick=ctx.tick)
            return None

    def _end_round(self) -> MetricSample:
        ctx = self.context
        snapshot = WorldSnapshot.pull(self.service, ctx.agent_id, ctx.tick)
        sample = self.round_stats.finalize(snapshot, ctx.round_number)
        if sample.value > 0:
            ctx.wins += 1

        # 1. pack what was actually used this round
        used = ThresholdVector.pack(ctx.thresholds)
        # 2. tune
        ctx.search_vector = self.tuner.tune(used, sample)
        # 3. record; unpacking waits for the next on_round_start
        ctx.history.append(
            RoundRecord(
                round_number=ctx.round_number,
                metric=sample.value,
                vector=ctx.search_vector.as_tuple(),
            )
        )

        log.tuner(self.tuner.state, round_number=ctx.round_number)
        log.game_event(
            "ROUND_END",
            f"round={ctx.round_number} | metric={sample.value:+d} | wins={ctx.wins} | "
            f"next={ctx.search_vector!r}",
            tick=ctx.tick,
        )
        return sample
