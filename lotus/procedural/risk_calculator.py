"""
Lotus — lotus/procedural/risk_calculator.py
Failure probability for a procedural choice.
"""

from __future__ import annotations
from typing import Mapping

RISK_FLOOR: int = 0
RISK_CEILING: int = 95      # no choice is ever a guaranteed failure
RISK_PER_GAP_POINT: int = 5

def requirement_gap(requirements: Mapping[str, int], player_stats: Mapping[str, int]) -> int:
    """
    Total shortfall of the player against a requirement table.
    Stats the player does not expose count as satisfied; surplus never offsets a shortfall.
    """
    gap = 0
    for stat_name, required in requirements.items():
        if stat_name not in player_stats:
            continue
        gap += max(0, required - player_stats[stat_name])
    return gap

def calculate_risk(
    base_risk: int,
    risk_modifier: int,
    requirements: Mapping[str, int],
    player_stats: Mapping[str, int],
) -> int:
    """
    Return the failure chance (0-95) for a choice.
    Formula: clamp(base_risk + gap * RISK_PER_GAP_POINT + risk_modifier, 0, 95)
    """
    risk = base_risk + requirement_gap(requirements, player_stats) * RISK_PER_GAP_POINT
    risk += risk_modifier
    return max(RISK_FLOOR, min(RISK_CEILING, risk))
