"""
Lotus — lotus/fallback.py
Handcrafted fallback: (life_stage, tier) index and the resolution chain.
========================================================================
Version:     0.4 (Procedural Situations)
Stack:       Python 3.12 | Pydantic v2 | stdlib logging
Status:      Production-ready.

Resolution chain (first non-empty lookup wins)
----------------------------------------------
  1. tier-specific events for (stage, tier)
  2. generic events for (stage, tier)
  3. generic events for each earlier stage at the same tier, most recent first
  4. the diagnostic "No Event Found!" event (never fails)

The chosen event's options are filtered by the player's requirements. An event
left without options is still returned; only step 4 guarantees a choice.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple

from lotus.data_loader import EventData, EventOption, EventOutcome
from lotus.player import PlayerState, meets_requirements, tier_name

logger = logging.getLogger(__name__)

DIAGNOSTIC_TITLE: str = "No Event Found!"

@dataclass(frozen=True)
class IndexBucket:
    tier_specific: Tuple[int, ...] = ()
    generic: Tuple[int, ...] = ()

_EMPTY_BUCKET = IndexBucket()

class EventIndex:
    """Immutable (life_stage, tier) -> IndexBucket lookup over the handcrafted event list."""

    def __init__(self, buckets: Dict[Tuple[int, int], IndexBucket]):
        self._buckets = dict(buckets)

    @classmethod
    def build(cls, events: Sequence[EventData]) -> "EventIndex":
        specific: Dict[Tuple[int, int], List[int]] = {}
        generic: Dict[Tuple[int, int], List[int]] = {}
        for i, event in enumerate(events):
            target = generic if event.is_generic else specific
            for tier in range(event.min_tier, event.max_tier + 1):
                target.setdefault((event.life_stage, tier), []).append(i)

        keys = set(specific) | set(generic)
        buckets = {
            key: IndexBucket(tuple(specific.get(key, [])), tuple(generic.get(key, [])))
            for key in keys
        }
        logger.debug("Built fallback index over %d events, %d keys", len(events), len(buckets))
        return cls(buckets)

    def bucket(self, life_stage: int, tier: int) -> IndexBucket:
        return self._buckets.get((life_stage, tier), _EMPTY_BUCKET)

# ============================================================
# LOOKUP CHAIN
# ============================================================

Lookup = Callable[[EventIndex, int, int], Tuple[int, ...]]

def _tier_specific(index: EventIndex, life_stage: int, tier: int) -> Tuple[int, ...]:
    return index.bucket(life_stage, tier).tier_specific

def _generic(index: EventIndex, life_stage: int, tier: int) -> Tuple[int, ...]:
    return index.bucket(life_stage, tier).generic

def _earlier_generic(index: EventIndex, life_stage: int, tier: int) -> Tuple[int, ...]:
    for stage in range(life_stage - 1, -1, -1):
        found = index.bucket(stage, tier).generic
        if found:
            logger.debug("Fallback reached back to life stage %d", stage)
            return found
    return ()

FALLBACK_CHAIN: Tuple[Tuple[str, Lookup], ...] = (
    ("tier_specific", _tier_specific),
    ("generic", _generic),
    ("earlier_generic", _earlier_generic),
)

def diagnostic_event(player: PlayerState) -> EventData:
    """Terminal fallback: always well-formed, always one harmless option."""
    return EventData(
        title=DIAGNOSTIC_TITLE,
        description=(
            f"No event is authored for life stage {player.life_stage} "
            f"at tier {tier_name(player.tier)}. Nothing happens this turn."
        ),
        options=[
            EventOption(
                text="Continue.",
                success_outcome=EventOutcome(),
                success_result="Life goes on.",
            )
        ],
        min_tier=player.tier,
        max_tier=player.tier,
        is_generic=True,
        life_stage=player.life_stage,
    )

def resolve_fallback(
    player: PlayerState,
    events: Sequence[EventData],
    index: EventIndex,
    rng: random.Random,
) -> EventData:
    """Picks a handcrafted event for the player, or the diagnostic event when none exists."""
    for step, lookup in FALLBACK_CHAIN:
        candidates = lookup(index, player.life_stage, player.tier)
        if not candidates:
            continue
        chosen = events[rng.choice(candidates)]
        options = [o for o in chosen.options if meets_requirements(o.requirements, player.stats)]
        logger.info(
            "Fallback (%s) chose '%s' with %d/%d options available",
            step, chosen.title, len(options), len(chosen.options),
        )
        return chosen.model_copy(update={"options": options})

    logger.warning(
        "No handcrafted event for life stage %d, tier %d; returning diagnostic event",
        player.life_stage, player.tier,
    )
    return diagnostic_event(player)
