"""
Lotus — lotus/data_loader.py
Content loaders for TOML situation templates and handcrafted events, powered by Pydantic.
=========================================================================================
Version:     0.4 (Procedural Situations)
Stack:       Python 3.12 | Pydantic v2 | tomllib
Status:      Core data validation and loading layer.

Malformed content is fatal at load time: every parse or validation failure
is re-raised as ContentLoadError naming the offending file. Authored schemas
forbid unknown keys, so a misspelt field fails instead of taking its default.
"""

from __future__ import annotations

import logging
import tomllib
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any

from pydantic import BaseModel, Field, ConfigDict, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

# ================================================================================
# ENUMERATIONS
# ================================================================================

class EventDomain(str, Enum):
    FAMILY = "family"
    WORK = "work"
    PUBLIC = "public"
    PARTY = "party"

    @property
    def label(self) -> str:
        return self.value.capitalize()

class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def label(self) -> str:
        return self.value.capitalize()

class ChoiceType(str, Enum):
    CONFORM = "conform"
    RESIST = "resist"
    MANIPULATE = "manipulate"
    IGNORE = "ignore"

# Player stats a requirement may name. Anything else is ignored.
REQUIREMENT_STATS = (
    "social_credit_score",
    "finances",
    "career_level",
    "guanxi_family",
    "guanxi_network",
    "guanxi_party",
)

# ================================================================================
# SCHEMAS: PROCEDURAL
# ================================================================================

class StatProfile(BaseModel):
    """Six signed stat deltas. Shared by procedural templates and resolved outcomes."""
    model_config = ConfigDict(frozen=True, extra="forbid")
    scs_change: int = 0
    finance_change: int = 0
    career_level_change: int = 0
    guanxi_family_change: int = 0
    guanxi_network_change: int = 0
    guanxi_party_change: int = 0

    def deltas(self) -> Dict[str, int]:
        return self.model_dump()

    def is_zero(self) -> bool:
        return not any(self.deltas().values())

# Resolved outcomes carry the same six deltas.
EventOutcome = StatProfile

class NarrativeFragments(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")
    openings: List[str] = Field(min_length=1)
    conflicts: List[str] = Field(min_length=1)
    stakes: List[str] = Field(min_length=1)

class ChoiceArchetype(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")
    archetype: ChoiceType
    text_fragments: List[str] = Field(min_length=1)
    base_stats: StatProfile = Field(default_factory=StatProfile)
    risk_modifier: int = 0
    requirements: Dict[str, int] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _lift_flat_stats(cls, data: Any) -> Any:
        # Authored TOML lists the deltas inline next to the archetype.
        if isinstance(data, dict) and "base_stats" not in data:
            stat_keys = StatProfile.model_fields.keys()
            flat = {k: v for k, v in data.items() if k in stat_keys}
            if flat:
                data = {k: v for k, v in data.items() if k not in stat_keys}
                data["base_stats"] = flat
        return data

class SituationTemplate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")
    id: str
    domain: EventDomain
    tier_min: int = Field(ge=0)
    tier_max: int = Field(ge=0)
    life_stage_min: int = Field(ge=1)
    life_stage_max: int = Field(ge=1)
    severity: Severity
    base_risk: int = Field(ge=0, le=100)
    fragments: NarrativeFragments
    choices: List[ChoiceArchetype] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_ranges(self) -> "SituationTemplate":
        if self.tier_min > self.tier_max:
            raise ValueError(f"tier_min > tier_max in situation '{self.id}'")
        if self.life_stage_min > self.life_stage_max:
            raise ValueError(f"life_stage_min > life_stage_max in situation '{self.id}'")
        return self

class SituationCollectionDef(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")
    situations: List[SituationTemplate] = Field(default_factory=list)

class VariableLibraries(BaseModel):
    """
    Word lists for {placeholder} substitution.

    Every top-level list in variables.toml becomes an entry of word_lists;
    colleague_descriptors is the single tier-keyed table.
    """
    model_config = ConfigDict(frozen=True)
    colleague_descriptors: Dict[str, List[str]] = Field(default_factory=dict)
    word_lists: Dict[str, List[str]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_word_lists(cls, data: Any) -> Any:
        if isinstance(data, dict) and "word_lists" not in data:
            lists = {k: v for k, v in data.items() if k != "colleague_descriptors"}
            data = {
                "colleague_descriptors": data.get("colleague_descriptors", {}),
                "word_lists": lists,
            }
        return data

    @field_validator("colleague_descriptors", mode="before")
    @classmethod
    def _stringify_tier_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): v for k, v in value.items()}
        return value

class SituationLibrary(BaseModel):
    model_config = ConfigDict(frozen=True)
    by_domain: Dict[EventDomain, List[SituationTemplate]] = Field(default_factory=dict)
    variables: VariableLibraries = Field(default_factory=VariableLibraries)

    def all_situations(self) -> List[SituationTemplate]:
        """Flattens the per-domain lists in domain declaration order."""
        return [s for domain in EventDomain for s in self.by_domain.get(domain, [])]

# ================================================================================
# SCHEMAS: RESOLVED EVENTS
# ================================================================================

class EventOption(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")
    text: str
    requirements: Dict[str, int] = Field(default_factory=dict)
    risk_chance: int = Field(default=0, ge=0, le=100)
    success_outcome: EventOutcome = Field(default_factory=EventOutcome)
    success_result: str = ""
    failure_outcome: Optional[EventOutcome] = None
    failure_result: str = ""

    @property
    def can_fail(self) -> bool:
        return self.risk_chance > 0 and self.failure_outcome is not None

class EventData(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")
    title: str
    description: str
    options: List[EventOption] = Field(default_factory=list)
    min_tier: int = 0
    max_tier: int = 4
    is_generic: bool = False
    life_stage: int = 1
    procedural_id: Optional[str] = None
    procedural_domain: Optional[str] = None

class EventCollectionDef(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")
    events: List[EventData] = Field(default_factory=list)

# ================================================================================
# ERRORS
# ================================================================================

class ContentLoadError(Exception):
    """Authored content is missing, unparsable or fails validation."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to load {path}: {reason}")
        self.path = path
        self.reason = reason

# ================================================================================
# LOADERS & CACHE
# ================================================================================

_SITUATION_LIBRARY_CACHE: Optional[SituationLibrary] = None
_HANDCRAFTED_CACHE: Optional[List[EventData]] = None

DATA_DIR = Path(__file__).parent.parent / "data"
PROCEDURAL_DIR = DATA_DIR / "procedural"
HANDCRAFTED_PATH = DATA_DIR / "events" / "handcrafted.toml"

def _read_toml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ContentLoadError(path, "file not found")
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ContentLoadError(path, f"invalid TOML ({exc})") from exc

def _validate(model: type[BaseModel], data: Dict[str, Any], path: Path) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ContentLoadError(path, str(exc)) from exc

def load_situation_library(directory: Path = PROCEDURAL_DIR) -> SituationLibrary:
    """
    Loads <domain>_events.toml for every domain plus variables.toml.
    A missing domain file is an authoring gap, not an error: the domain is empty.
    """
    by_domain: Dict[EventDomain, List[SituationTemplate]] = {}
    for domain in EventDomain:
        path = directory / f"{domain.value}_events.toml"
        if not path.exists():
            logger.info("No situation file for domain '%s' at %s", domain.value, path)
            by_domain[domain] = []
            continue
        collection = _validate(SituationCollectionDef, _read_toml(path), path)
        for situation in collection.situations:
            if situation.domain is not domain:
                raise ContentLoadError(path, f"situation '{situation.id}' declares domain '{situation.domain.value}'")
        by_domain[domain] = list(collection.situations)

    seen: Dict[str, EventDomain] = {}
    for domain, situations in by_domain.items():
        for situation in situations:
            if situation.id in seen:
                raise ContentLoadError(directory, f"duplicate situation id '{situation.id}'")
            seen[situation.id] = domain

    variables_path = directory / "variables.toml"
    variables = _validate(VariableLibraries, _read_toml(variables_path), variables_path)

    library = SituationLibrary(by_domain=by_domain, variables=variables)
    logger.info("Loaded %d situations across %d domains", len(seen), len(by_domain))
    return library

def get_situation_library() -> SituationLibrary:
    """Loads the bundled situation library. Cached globally."""
    global _SITUATION_LIBRARY_CACHE
    if _SITUATION_LIBRARY_CACHE is not None:
        return _SITUATION_LIBRARY_CACHE

    _SITUATION_LIBRARY_CACHE = load_situation_library(PROCEDURAL_DIR)
    return _SITUATION_LIBRARY_CACHE

def load_handcrafted_events(path: Path = HANDCRAFTED_PATH) -> List[EventData]:
    """Loads the handcrafted fallback event list from a TOML [[events]] file."""
    collection = _validate(EventCollectionDef, _read_toml(path), path)
    logger.info("Loaded %d handcrafted events from %s", len(collection.events), path)
    return list(collection.events)

def get_handcrafted_events() -> List[EventData]:
    """Loads the bundled handcrafted events. Cached globally."""
    global _HANDCRAFTED_CACHE
    if _HANDCRAFTED_CACHE is not None:
        return _HANDCRAFTED_CACHE

    _HANDCRAFTED_CACHE = load_handcrafted_events(HANDCRAFTED_PATH)
    return _HANDCRAFTED_CACHE
