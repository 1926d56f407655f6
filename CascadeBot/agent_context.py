"""
AgentContext — everything one agent carries between ticks and rounds.

Lifetime
--------
  created      when the bot is constructed (match start)
  reset_round  at every round start: per-round counters and cross-tick
               references are cleared; the search vector is kept
  mutated      by the agent's own on_tick only
  tuned        at round end (search_vector replaced by the tuner's output)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from CascadeBot.manifests.production_machine import AgentState
from CascadeBot.manifests.thresholds import PolicyThresholds, ThresholdVector


@dataclass
class RoundRecord:
    """What a finished round produced: its metric and the vector tuned from it."""
    round_number: int
    metric: int
    vector: Tuple[int, ...]


@dataclass
class AgentContext:
    agent_id: int
    name: str = ""
    enemy_id: Optional[int] = None

    # ── Per-match ──────────────────────────────────────────────────────────
    search_vector: ThresholdVector = field(default_factory=ThresholdVector.defaults)
    round_number: int = 0
    wins: int = 0
    history: List[RoundRecord] = field(default_factory=list)

    # ── Per-round ──────────────────────────────────────────────────────────
    thresholds: PolicyThresholds = field(default_factory=PolicyThresholds)
    state: AgentState = AgentState.WAITING
    soldier_streak: int = 0
    tick: int = 0

    # Only cross-tick unit references; revalidated every tick
    primary_base: Optional[int] = None
    primary_mine: Optional[int] = None

    def reset_round(self) -> None:
        self.round_number += 1
        self.thresholds = self.search_vector.unpack()
        self.state = AgentState.WAITING
        self.soldier_streak = 0
        self.tick = 0
        self.primary_base = None
        self.primary_mine = None
