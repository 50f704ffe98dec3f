"""
Lotus — lotus/session.py
EventDirector: per-session owner of the player entity, the rng and encounter history.
=====================================================================================
Version:     0.4 (Procedural Situations)
Stack:       Python 3.12 | python-tcod-ecs | stdlib logging
Status:      Integration entry point for the presentation layer.

Architecture notes
------------------
- next_event() is the public generation boundary. It never returns None:
  procedural generation first, handcrafted fallback second, diagnostic last.
- History bookkeeping (recent domains, encountered ids) happens here, after a
  procedural draw, on the player's EncounterHistory component. Each director
  owns its registry so sessions stay isolated.
- Library and fallback index are read-only once the director is built.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional, Sequence

import tcod.ecs

from lotus.bus import (
    EventBus,
    GameNotice,
    EVT_EVENT_GENERATED,
    EVT_FALLBACK_USED,
    EVT_OPTION_RESOLVED,
)
from lotus.data_loader import (
    EventData,
    EventDomain,
    EventOption,
    EventOutcome,
    SituationLibrary,
    get_handcrafted_events,
    get_situation_library,
)
from lotus.ecs.components import (
    EncounterHistory,
    Guanxi,
    LifeStage,
    PlayerIdentity,
    Resources,
    Standing,
)
from lotus.fallback import EventIndex, resolve_fallback
from lotus.narrative import NarrativeGenerator
from lotus.player import LIFE_STAGE_COUNT, TIER_COUNT, PlayerState, PlayerStats
from lotus.procedural.generator import DEFAULT_CONFIG, GeneratorConfig, generate

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class OptionResolution:
    option: EventOption
    succeeded: bool
    outcome: EventOutcome
    result_text: str

class EventDirector:
    """
    Wires the situation library, handcrafted fallback and a player entity.
    Pass library/handcrafted explicitly in tests; defaults load bundled content.
    """
    def __init__(
        self,
        library: Optional[SituationLibrary] = None,
        handcrafted: Optional[Sequence[EventData]] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        config: GeneratorConfig = DEFAULT_CONFIG,
        bus: Optional[EventBus] = None,
    ):
        self.library = library if library is not None else get_situation_library()
        self.handcrafted = list(handcrafted) if handcrafted is not None else get_handcrafted_events()
        self.index = EventIndex.build(self.handcrafted)
        self.rng = rng if rng is not None else random.Random(seed)
        self.config = config
        self.bus = bus if bus is not None else EventBus()
        self.registry = tcod.ecs.Registry()

    def spawn_player(self, name: str = "Citizen", tier: int = 2, life_stage: int = 1) -> tcod.ecs.Entity:
        """Creates the player entity with the standard starting stats."""
        if not 0 <= tier < TIER_COUNT:
            raise ValueError(f"Tier {tier} out of range (0..{TIER_COUNT - 1})")
        if not 1 <= life_stage <= LIFE_STAGE_COUNT:
            raise ValueError(f"Life stage {life_stage} out of range (1..{LIFE_STAGE_COUNT})")
        player = self.registry.new_entity()
        player.components[PlayerIdentity] = PlayerIdentity(name=name)
        player.components[Standing] = Standing(tier=tier)
        player.components[LifeStage] = LifeStage(stage=life_stage)
        player.components[Resources] = Resources()
        player.components[Guanxi] = Guanxi()
        player.components[EncounterHistory] = EncounterHistory()
        return player

    def get_player(self) -> Optional[tcod.ecs.Entity]:
        for entity in self.registry.Q.all_of(components=[PlayerIdentity]):
            if entity.components[PlayerIdentity].is_player:
                return entity
        return None

    def snapshot(self, player: tcod.ecs.Entity) -> PlayerState:
        standing = player.components[Standing]
        resources = player.components[Resources]
        guanxi = player.components[Guanxi]
        history = player.components[EncounterHistory]
        return PlayerState(
            tier=standing.tier,
            life_stage=player.components[LifeStage].stage,
            stats=PlayerStats(
                social_credit_score=standing.social_credit_score,
                finances=resources.finances,
                career_level=resources.career_level,
                guanxi_family=guanxi.family,
                guanxi_network=guanxi.network,
                guanxi_party=guanxi.party,
            ),
            recent_domains=tuple(history.recent_domains),
            encountered_ids=frozenset(history.encountered_ids),
        )

    def next_event(self, player: tcod.ecs.Entity) -> EventData:
        """Procedural event if one qualifies, otherwise a handcrafted or diagnostic one."""
        state = self.snapshot(player)
        name = player.components[PlayerIdentity].name

        event = generate(state, self.library, self.rng, self.config)
        if event is not None:
            player.components[EncounterHistory].record(EventDomain(event.procedural_domain), event.procedural_id)
            self.bus.emit(GameNotice(
                event_key=EVT_EVENT_GENERATED,
                source=name,
                data={"title": event.title, "situation_id": event.procedural_id, "domain": event.procedural_domain},
            ))
            return event

        event = resolve_fallback(state, self.handcrafted, self.index, self.rng)
        self.bus.emit(GameNotice(
            event_key=EVT_FALLBACK_USED,
            source=name,
            data={"title": event.title, "tier": state.tier, "life_stage": state.life_stage},
        ))
        return event

    def resolve_option(self, player: tcod.ecs.Entity, event: EventData, option_index: int) -> OptionResolution:
        """Rolls the option's risk, applies the resulting outcome to the player and reports it."""
        if not 0 <= option_index < len(event.options):
            raise ValueError(f"Option {option_index} out of range for '{event.title}' ({len(event.options)} options)")
        option = event.options[option_index]

        failed = option.can_fail and self.rng.randrange(100) < option.risk_chance
        if failed:
            outcome, text = option.failure_outcome, option.failure_result
        else:
            outcome, text = option.success_outcome, option.success_result

        self.apply_outcome(player, outcome)
        summary = NarrativeGenerator.outcome_summary(outcome)
        logger.info("Resolved '%s' option %d: %s (%s)", event.title, option_index, "failure" if failed else "success", summary)

        self.bus.emit(GameNotice(
            event_key=EVT_OPTION_RESOLVED,
            source=player.components[PlayerIdentity].name,
            data={"title": event.title, "choice": option.text, "succeeded": not failed, "summary": summary},
        ))
        return OptionResolution(option=option, succeeded=not failed, outcome=outcome, result_text=text)

    def apply_outcome(self, player: tcod.ecs.Entity, outcome: EventOutcome) -> None:
        """Adds the deltas to the player's components. Career level and guanxi never go below zero."""
        standing = player.components[Standing]
        resources = player.components[Resources]
        guanxi = player.components[Guanxi]

        standing.social_credit_score += outcome.scs_change
        resources.finances += outcome.finance_change
        resources.career_level = max(0, resources.career_level + outcome.career_level_change)
        guanxi.family = max(0, guanxi.family + outcome.guanxi_family_change)
        guanxi.network = max(0, guanxi.network + outcome.guanxi_network_change)
        guanxi.party = max(0, guanxi.party + outcome.guanxi_party_change)
