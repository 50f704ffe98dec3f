"""
Lotus  lotus/procedural/generator.py
Procedural Event Generator: filter, weight, draw and assemble a situation into an event.
========================================================================================
Version:     0.4 (Procedural Situations)
Stack:       Python 3.12 | Pydantic v2 | stdlib logging
Status:      Production-ready.

Architecture notes
------------------
- generate() is referentially transparent for a fixed rng stream: it reads the
  PlayerState snapshot and never records history. The session that owns the
  player pushes the drawn domain and id afterwards.
- Every None return is an expected miss ("nothing procedural right now") and
  is logged at info level. The caller falls back to handcrafted content.

Draw order per call (matters for seeded reproducibility)
---------------------------------------------------------
  1. wildcard roll
  2. weighted situation draw
  3. description fragments, then one draw per placeholder present
  4. per surviving choice: choice text, then outcome variance

Design Variables (override via GeneratorConfig)
-----------------------------------------------
  WILDCARD_PROBABILITY    0.10    chance the recent-domain filter is skipped
  RECENT_DOMAIN_WINDOW    2       how many recent domains are excluded
  TIER_TOLERANCE          1       situations one tier away remain eligible
  EXACT_TIER_BONUS        2.0     weight multiplier, tier inside range
  EXACT_STAGE_BONUS       2.0     weight multiplier, life stage inside range
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from lotus.data_loader import (
    ChoiceArchetype,
    EventData,
    EventOption,
    SituationLibrary,
    SituationTemplate,
)
from lotus.narrative import NarrativeGenerator
from lotus.player import PlayerState, meets_requirements
from lotus.procedural.risk_calculator import calculate_risk
from lotus.procedural.stat_calculator import calculate_failure_stats, calculate_stats
from lotus.procedural.text_assembly import assemble_choice_text, assemble_description

logger = logging.getLogger(__name__)

# ============================================================
# DESIGN VARIABLE DEFAULTS
# ============================================================

WILDCARD_PROBABILITY: float = 0.10
RECENT_DOMAIN_WINDOW: int = 2
TIER_TOLERANCE: int = 1
EXACT_TIER_BONUS: float = 2.0
EXACT_STAGE_BONUS: float = 2.0

class GeneratorConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    wildcard_probability: float = Field(default=WILDCARD_PROBABILITY, ge=0.0, le=1.0)
    recent_domain_window: int = Field(default=RECENT_DOMAIN_WINDOW, ge=0)
    tier_tolerance: int = Field(default=TIER_TOLERANCE, ge=0)
    exact_tier_bonus: float = EXACT_TIER_BONUS
    exact_stage_bonus: float = EXACT_STAGE_BONUS

DEFAULT_CONFIG = GeneratorConfig()

# ============================================================
# FILTERING
# ============================================================

def tier_in_tolerance(situation: SituationTemplate, tier: int, tolerance: int = TIER_TOLERANCE) -> bool:
    low = max(tier - tolerance, 0)
    return situation.tier_min <= tier + tolerance and situation.tier_max >= low

def stage_in_tolerance(situation: SituationTemplate, life_stage: int) -> bool:
    """Current or immediately preceding life stage only, never a future one."""
    low = max(life_stage - 1, 1)
    return situation.life_stage_min <= life_stage and situation.life_stage_max >= low

def filter_situations(
    situations: List[SituationTemplate],
    player: PlayerState,
    allow_wildcard: bool,
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> List[SituationTemplate]:
    """Keeps situations eligible by tier, life stage, encounter history and (unless wildcard) recent domain."""
    recent = player.recent_domains[:config.recent_domain_window]
    rejected = {"tier": 0, "life_stage": 0, "encountered": 0, "recent_domain": 0}

    candidates = []
    for s in situations:
        if not tier_in_tolerance(s, player.tier, config.tier_tolerance):
            rejected["tier"] += 1
            continue
        if not stage_in_tolerance(s, player.life_stage):
            rejected["life_stage"] += 1
            continue
        if s.id in player.encountered_ids:
            rejected["encountered"] += 1
            continue
        if not allow_wildcard and s.domain in recent:
            rejected["recent_domain"] += 1
            continue
        candidates.append(s)

    logger.debug(
        "Filtered %d situations (tier=%d, stage=%d, wildcard=%s): rejected %s, %d remain",
        len(situations), player.tier, player.life_stage, allow_wildcard, rejected, len(candidates),
    )
    return candidates

def selection_weight(situation: SituationTemplate, player: PlayerState, config: GeneratorConfig = DEFAULT_CONFIG) -> float:
    weight = 1.0
    if situation.tier_min <= player.tier <= situation.tier_max:
        weight *= config.exact_tier_bonus
    if situation.life_stage_min <= player.life_stage <= situation.life_stage_max:
        weight *= config.exact_stage_bonus
    return weight

def select_situation(
    candidates: List[SituationTemplate],
    player: PlayerState,
    rng: random.Random,
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> Optional[SituationTemplate]:
    """Weighted draw favouring exact tier/stage matches. None if the weights are unusable."""
    if not candidates:
        return None
    weights = [selection_weight(s, player, config) for s in candidates]
    if any(w < 0 for w in weights) or sum(weights) <= 0:
        logger.info("Weighted selection unavailable: non-positive weights %s", weights)
        return None
    return rng.choices(candidates, weights=weights, k=1)[0]

# ============================================================
# ASSEMBLY
# ============================================================

def build_title(situation: SituationTemplate) -> str:
    return f"{situation.domain.label} - {situation.severity.label} Severity"

def build_option(
    choice: ChoiceArchetype,
    situation: SituationTemplate,
    player: PlayerState,
    rng: random.Random,
) -> EventOption:
    text = assemble_choice_text(choice.text_fragments, rng)
    success = calculate_stats(choice.base_stats, player.tier, situation.severity, rng)
    failure = calculate_failure_stats(success)
    risk = calculate_risk(situation.base_risk, choice.risk_modifier, choice.requirements, player.stats.as_mapping())

    return EventOption(
        text=text,
        requirements=dict(choice.requirements),
        risk_chance=risk,
        success_outcome=success,
        success_result=NarrativeGenerator.success_result(choice.archetype, success),
        failure_outcome=failure,
        failure_result=NarrativeGenerator.failure_result(choice.archetype),
    )

def generate(
    player: PlayerState,
    library: SituationLibrary,
    rng: random.Random,
    config: GeneratorConfig = DEFAULT_CONFIG,
) -> Optional[EventData]:
    """
    Attempts one procedural event for the player. Returns None when no situation
    qualifies or when the drawn situation offers the player no eligible choice.
    """
    allow_wildcard = rng.random() < config.wildcard_probability
    if allow_wildcard:
        logger.info("Wildcard draw: recent-domain filter suspended")

    candidates = filter_situations(library.all_situations(), player, allow_wildcard, config)
    if not candidates:
        logger.info("No procedural situation eligible (tier=%d, stage=%d)", player.tier, player.life_stage)
        return None

    situation = select_situation(candidates, player, rng, config)
    if situation is None:
        return None

    logger.info(
        "Selected situation '%s' (domain=%s, tier=%d-%d, stage=%d-%d)",
        situation.id, situation.domain.value,
        situation.tier_min, situation.tier_max,
        situation.life_stage_min, situation.life_stage_max,
    )

    description = assemble_description(situation.fragments, library.variables, player.tier, rng)
    title = build_title(situation)

    available = [c for c in situation.choices if meets_requirements(c.requirements, player.stats)]
    if not available:
        logger.info(
            "Situation '%s' has no choice the player qualifies for (%d authored)",
            situation.id, len(situation.choices),
        )
        return None

    logger.debug("Choices available for '%s': %d/%d", situation.id, len(available), len(situation.choices))
    options = [build_option(c, situation, player, rng) for c in available]

    return EventData(
        title=title,
        description=description,
        options=options,
        min_tier=situation.tier_min,
        max_tier=situation.tier_max,
        is_generic=False,
        life_stage=player.life_stage,
        procedural_id=situation.id,
        procedural_domain=situation.domain.value,
    )
