import random

import pytest
from lotus.data_loader import EventData, EventOption, EventOutcome
from lotus.fallback import DIAGNOSTIC_TITLE, EventIndex, diagnostic_event, resolve_fallback

def handcrafted(title, life_stage, min_tier=0, max_tier=4, is_generic=False, options=None):
    if options is None:
        options = [EventOption(text="Accept.", success_outcome=EventOutcome(scs_change=1))]
    return EventData(
        title=title,
        description=f"{title} description.",
        options=options,
        min_tier=min_tier,
        max_tier=max_tier,
        is_generic=is_generic,
        life_stage=life_stage,
    )

def resolve(events, player, seed=0):
    return resolve_fallback(player, events, EventIndex.build(events), random.Random(seed))

def test_index_spans_every_tier_in_range():
    events = [handcrafted("Specific", 2, min_tier=1, max_tier=3), handcrafted("Generic", 2, is_generic=True)]
    index = EventIndex.build(events)

    assert index.bucket(2, 1).tier_specific == (0,)
    assert index.bucket(2, 3).tier_specific == (0,)
    assert index.bucket(2, 4).tier_specific == ()
    assert index.bucket(2, 4).generic == (1,)
    assert index.bucket(3, 2).generic == ()

def test_tier_specific_preferred_over_generic(make_player):
    events = [handcrafted("Generic", 2, is_generic=True), handcrafted("Specific", 2, min_tier=2, max_tier=2)]
    for seed in range(20):
        assert resolve(events, make_player(tier=2, life_stage=2), seed).title == "Specific"

def test_generic_used_when_no_specific(make_player):
    events = [handcrafted("Generic", 2, is_generic=True), handcrafted("Other tier", 2, min_tier=4, max_tier=4)]
    assert resolve(events, make_player(tier=2, life_stage=2)).title == "Generic"

def test_earlier_stage_scanned_most_recent_first(make_player):
    events = [
        handcrafted("Stage one", 1, is_generic=True),
        handcrafted("Stage two", 2, is_generic=True),
        handcrafted("Stage one specific", 1, min_tier=2, max_tier=2),
    ]
    for seed in range(20):
        assert resolve(events, make_player(tier=2, life_stage=3), seed).title == "Stage two"

def test_earlier_stage_only_generic(make_player):
    events = [handcrafted("Stage one specific", 1, min_tier=2, max_tier=2)]
    assert resolve(events, make_player(tier=2, life_stage=3)).title == DIAGNOSTIC_TITLE

def test_future_stages_never_used(make_player):
    events = [handcrafted("Later", 4, is_generic=True)]
    assert resolve(events, make_player(tier=2, life_stage=2)).title == DIAGNOSTIC_TITLE

def test_earlier_stage_returns_one_of_candidates(make_player):
    events = [
        handcrafted("A", 1, is_generic=True),
        handcrafted("B", 1, is_generic=True),
        handcrafted("Wrong tier", 1, is_generic=True, min_tier=0, max_tier=0),
    ]
    seen = {resolve(events, make_player(tier=3, life_stage=4), seed).title for seed in range(50)}
    assert seen == {"A", "B"}

def test_options_filtered_by_requirements(make_player):
    options = [
        EventOption(text="Open to all."),
        EventOption(text="Needs family.", requirements={"guanxi_family": 3}),
    ]
    events = [handcrafted("Choice", 2, is_generic=True, options=options)]
    event = resolve(events, make_player(tier=2, life_stage=2, guanxi_family=1))
    assert [o.text for o in event.options] == ["Open to all."]
    # source list is untouched
    assert len(events[0].options) == 2

def test_event_without_eligible_options_still_returned(make_player):
    options = [EventOption(text="Needs party.", requirements={"guanxi_party": 5})]
    events = [handcrafted("Locked", 2, is_generic=True, options=options)]
    event = resolve(events, make_player(tier=2, life_stage=2))
    assert event.title == "Locked"
    assert event.options == []

@pytest.mark.parametrize("tier", range(5))
@pytest.mark.parametrize("life_stage", range(1, 5))
def test_diagnostic_event_is_well_formed(tier, life_stage, make_player):
    event = resolve([], make_player(tier=tier, life_stage=life_stage))
    assert event.title == DIAGNOSTIC_TITLE
    assert len(event.options) == 1
    assert event.options[0].risk_chance == 0
    assert event.options[0].success_outcome.is_zero()
    assert event.procedural_id is None

def test_diagnostic_names_tier(make_player):
    event = diagnostic_event(make_player(tier=0, life_stage=3))
    assert "D (Blacklisted)" in event.description
    assert "life stage 3" in event.description
