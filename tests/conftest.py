import pytest
from lotus.data_loader import SituationTemplate, SituationLibrary, VariableLibraries
from lotus.player import PlayerState, PlayerStats

def _situation(**overrides) -> SituationTemplate:
    data = {
        "id": "s1",
        "domain": "work",
        "tier_min": 1,
        "tier_max": 3,
        "life_stage_min": 1,
        "life_stage_max": 2,
        "severity": "medium",
        "base_risk": 20,
        "fragments": {"openings": ["Open."], "conflicts": ["Conflict."], "stakes": ["Stakes."]},
        "choices": [{"archetype": "conform", "text_fragments": ["Comply."], "scs_change": 10}],
    }
    data.update(overrides)
    return SituationTemplate.model_validate(data)

def _library(situations, variables=None) -> SituationLibrary:
    by_domain = {}
    for s in situations:
        by_domain.setdefault(s.domain, []).append(s)
    return SituationLibrary(by_domain=by_domain, variables=variables or VariableLibraries())

def _player(tier=2, life_stage=2, recent=(), encountered=(), **stats) -> PlayerState:
    return PlayerState(
        tier=tier,
        life_stage=life_stage,
        stats=PlayerStats(**stats),
        recent_domains=tuple(recent),
        encountered_ids=frozenset(encountered),
    )

@pytest.fixture
def make_situation():
    return _situation

@pytest.fixture
def make_library():
    return _library

@pytest.fixture
def make_player():
    return _player
