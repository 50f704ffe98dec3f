from unittest.mock import patch

import pytest
from lotus.bus import EVT_EVENT_GENERATED, EVT_FALLBACK_USED, EVT_OPTION_RESOLVED
from lotus.data_loader import EventData, EventDomain, EventOption, EventOutcome
from lotus.ecs.components import EncounterHistory, Guanxi, LifeStage, Resources, Standing
from lotus.fallback import DIAGNOSTIC_TITLE
from lotus.procedural.generator import GeneratorConfig
from lotus.session import EventDirector

NO_WILDCARD = GeneratorConfig(wildcard_probability=0.0)

HANDCRAFTED = [
    EventData(
        title="Handcrafted",
        description="A handwritten event.",
        options=[EventOption(text="Fine.", success_outcome=EventOutcome(scs_change=2))],
        min_tier=0,
        max_tier=4,
        is_generic=True,
        life_stage=1,
    )
]

RISKY = EventData(
    title="Risky",
    description="Tread carefully.",
    options=[
        EventOption(
            text="Gamble.",
            risk_chance=95,
            success_outcome=EventOutcome(scs_change=10, guanxi_party_change=1),
            success_result="It worked.",
            failure_outcome=EventOutcome(scs_change=-15, guanxi_family_change=-5),
            failure_result="It backfired.",
        )
    ],
)

@pytest.fixture
def director(make_situation, make_library):
    library = make_library([make_situation(id="only", domain="work", life_stage_min=1, life_stage_max=1)])
    return EventDirector(library=library, handcrafted=HANDCRAFTED, seed=7, config=NO_WILDCARD)

def test_spawn_player_defaults(director):
    player = director.spawn_player(name="Li Wei")
    assert director.get_player() == player

    state = director.snapshot(player)
    assert state.tier == 2
    assert state.life_stage == 1
    assert state.stats.social_credit_score == 550
    assert state.stats.finances == 1000
    assert state.stats.career_level == 1
    assert (state.stats.guanxi_family, state.stats.guanxi_network, state.stats.guanxi_party) == (1, 1, 0)
    assert state.recent_domains == ()
    assert state.encountered_ids == frozenset()

def test_procedural_event_records_history(director):
    player = director.spawn_player()
    event = director.next_event(player)

    assert event.procedural_id == "only"
    history = player.components[EncounterHistory]
    assert list(history.recent_domains) == [EventDomain.WORK]
    assert history.encountered_ids == {"only"}

def test_falls_back_once_situation_encountered(director):
    player = director.spawn_player()
    director.next_event(player)

    event = director.next_event(player)
    assert event.title == "Handcrafted"
    assert event.procedural_id is None
    # fallback leaves history alone
    assert list(player.components[EncounterHistory].recent_domains) == [EventDomain.WORK]

def test_next_event_never_none_without_content(make_library):
    director = EventDirector(library=make_library([]), handcrafted=[], seed=1)
    player = director.spawn_player(tier=4, life_stage=4)
    assert director.next_event(player).title == DIAGNOSTIC_TITLE

def test_recent_domains_most_recent_first():
    history = EncounterHistory()
    for i, domain in enumerate([EventDomain.WORK, EventDomain.FAMILY, EventDomain.PARTY]):
        history.record(domain, f"s{i}")
    assert list(history.recent_domains)[:2] == [EventDomain.PARTY, EventDomain.FAMILY]

def test_recent_domains_bounded():
    history = EncounterHistory()
    for i in range(20):
        history.record(EventDomain.PUBLIC, f"s{i}")
    assert len(history.recent_domains) == 5
    assert len(history.encountered_ids) == 20

def test_resolve_success_applies_outcome(director):
    player = director.spawn_player()
    with patch.object(director.rng, "randrange", return_value=99):
        result = director.resolve_option(player, RISKY, 0)

    assert result.succeeded
    assert result.result_text == "It worked."
    assert player.components[Standing].social_credit_score == 560
    assert player.components[Guanxi].party == 1

def test_resolve_failure_applies_failure_outcome(director):
    player = director.spawn_player()
    with patch.object(director.rng, "randrange", return_value=0):
        result = director.resolve_option(player, RISKY, 0)

    assert not result.succeeded
    assert result.result_text == "It backfired."
    assert player.components[Standing].social_credit_score == 535
    # guanxi floors at zero
    assert player.components[Guanxi].family == 0

def test_riskless_option_always_succeeds(director):
    player = director.spawn_player()
    for _ in range(50):
        assert director.resolve_option(player, HANDCRAFTED[0], 0).succeeded
    assert player.components[Standing].social_credit_score == 650

def test_resolve_out_of_range(director):
    player = director.spawn_player()
    with pytest.raises(ValueError):
        director.resolve_option(player, RISKY, 3)

def test_bus_notifications(director):
    received = []
    director.bus.subscribe("*", received.append)
    player = director.spawn_player()

    event = director.next_event(player)
    director.resolve_option(player, event, 0)
    director.next_event(player)

    assert [n.event_key for n in received] == [EVT_EVENT_GENERATED, EVT_OPTION_RESOLVED, EVT_FALLBACK_USED]
    assert received[0].data["situation_id"] == "only"

def test_sessions_are_isolated(make_situation, make_library):
    library = make_library([make_situation(id="only", life_stage_min=1, life_stage_max=1)])
    a = EventDirector(library=library, handcrafted=HANDCRAFTED, seed=1, config=NO_WILDCARD)
    b = EventDirector(library=library, handcrafted=HANDCRAFTED, seed=1, config=NO_WILDCARD)
    pa, pb = a.spawn_player(), b.spawn_player()

    assert a.next_event(pa).procedural_id == "only"
    assert b.next_event(pb).procedural_id == "only"

def test_life_stage_and_career_floor(director):
    player = director.spawn_player(life_stage=3)
    assert player.components[LifeStage].stage == 3
    director.apply_outcome(player, EventOutcome(career_level_change=-10, finance_change=-2000))
    assert player.components[Resources].career_level == 0
    assert player.components[Resources].finances == -1000

def test_default_content_session():
    director = EventDirector(seed=2024)
    player = director.spawn_player()
    for _ in range(8):
        event = director.next_event(player)
        assert event.title
        assert event.description

@pytest.mark.parametrize("tier, life_stage", [(-1, 1), (5, 1), (2, 0), (2, 5)])
def test_spawn_rejects_out_of_range_standing(director, tier, life_stage):
    with pytest.raises(ValueError):
        director.spawn_player(tier=tier, life_stage=life_stage)
    assert director.get_player() is None

def test_spawn_accepts_extremes(director):
    player = director.spawn_player(tier=0, life_stage=4)
    assert director.snapshot(player).tier == 0

def test_unsubscribed_listener_stops_receiving(director):
    class Journal:
        def __init__(self):
            self.titles = []

        def record(self, notice):
            self.titles.append(notice.data["title"])

    journal = Journal()
    director.bus.subscribe(EVT_OPTION_RESOLVED, journal.record)
    player = director.spawn_player()
    director.resolve_option(player, HANDCRAFTED[0], 0)
    director.bus.unsubscribe(EVT_OPTION_RESOLVED, journal.record)
    director.resolve_option(player, HANDCRAFTED[0], 0)

    assert journal.titles == ["Handcrafted"]
