"""
Lotus — lotus/player.py
PlayerState: the immutable snapshot the generators read.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Tuple

from lotus.data_loader import EventDomain, REQUIREMENT_STATS

TIER_COUNT: int = 5
LIFE_STAGE_COUNT: int = 4
TIER_NAMES: Tuple[str, ...] = (
    "D (Blacklisted)",
    "C (Warning)",
    "B (Standard)",
    "A (Trusted)",
    "A+ (Exemplary)",
)

def tier_name(tier: int) -> str:
    if 0 <= tier < len(TIER_NAMES):
        return TIER_NAMES[tier]
    return "?"

@dataclass(frozen=True)
class PlayerStats:
    social_credit_score: int = 0
    finances: int = 0
    career_level: int = 0
    guanxi_family: int = 0
    guanxi_network: int = 0
    guanxi_party: int = 0

    def as_mapping(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in REQUIREMENT_STATS}

@dataclass(frozen=True)
class PlayerState:
    """
    tier:             0 (D) .. 4 (A+)
    life_stage:       1 .. 4
    recent_domains:   most recent first
    encountered_ids:  situation ids already drawn this session
    """
    tier: int
    life_stage: int
    stats: PlayerStats = field(default_factory=PlayerStats)
    recent_domains: Tuple[EventDomain, ...] = ()
    encountered_ids: FrozenSet[str] = frozenset()

def meets_requirements(requirements: Mapping[str, int], stats: PlayerStats) -> bool:
    """True when every recognized requirement is met or exceeded. Unknown stat names never block."""
    values = stats.as_mapping()
    for stat_name, required in requirements.items():
        if stat_name in values and values[stat_name] < required:
            return False
    return True
