"""
Lotus  lotus/procedural/stat_calculator.py
Outcome synthesis: scales a choice's base deltas by tier, severity and variance.
===============================================================================
Version:     0.4 (Procedural Situations)
Stack:       Python 3.12 | Pydantic v2
Status:      Production-ready.

Design Variables
----------------
  TIER_MULTIPLIER_STEP     1.5          multiplier = (tier + 1) * step
  SEVERITY_MULTIPLIERS     0.5/1.0/2.0  low / medium / high
  VARIANCE_RANGE           0.8..1.2     one draw per outcome, shared by all six deltas
  FAILURE_AMPLIFICATION    3/2          failure = -(success * 3 / 2), truncated
"""

from __future__ import annotations

import random
from typing import Dict, Tuple

from lotus.data_loader import Severity, StatProfile

TIER_MULTIPLIER_STEP: float = 1.5
SEVERITY_MULTIPLIERS: Dict[Severity, float] = {
    Severity.LOW: 0.5,
    Severity.MEDIUM: 1.0,
    Severity.HIGH: 2.0,
}
VARIANCE_RANGE: Tuple[float, float] = (0.8, 1.2)
FAILURE_AMPLIFICATION: Tuple[int, int] = (3, 2)

def tier_multiplier(tier: int) -> float:
    return (tier + 1) * TIER_MULTIPLIER_STEP

def severity_multiplier(severity: Severity) -> float:
    return SEVERITY_MULTIPLIERS[severity]

def calculate_stats(base: StatProfile, tier: int, severity: Severity, rng: random.Random) -> StatProfile:
    """Scales every base delta by a single multiplier, truncating each toward zero."""
    variance = rng.uniform(*VARIANCE_RANGE)
    multiplier = tier_multiplier(tier) * severity_multiplier(severity) * variance
    return StatProfile(**{name: int(value * multiplier) for name, value in base.deltas().items()})

def _amplify_and_invert(value: int) -> int:
    num, den = FAILURE_AMPLIFICATION
    magnitude = abs(value) * num // den
    return -magnitude if value > 0 else magnitude

def calculate_failure_stats(success: StatProfile) -> StatProfile:
    """Failure is the success profile sign-flipped and amplified by half again."""
    return StatProfile(**{name: _amplify_and_invert(value) for name, value in success.deltas().items()})
