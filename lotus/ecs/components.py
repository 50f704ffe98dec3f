"""
Lotus — lotus/ecs/components.py
ECS Component Definitions for python-tcod-ecs.
==============================================
Version:     0.2  (Procedural Situations)
Stack:       Python 3.12 | python-tcod-ecs
Status:      Production-ready.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Set

from lotus.data_loader import EventDomain

RECENT_DOMAIN_CAPACITY: int = 5   # generator reads the first 2; the rest is headroom

@dataclass
class PlayerIdentity:
    name: str
    is_player: bool = True

@dataclass
class Standing:
    tier: int = 2                       # 0 (D) .. 4 (A+)
    social_credit_score: int = 550

@dataclass
class LifeStage:
    stage: int = 1                      # 1 .. 4

@dataclass
class Resources:
    finances: int = 1000
    career_level: int = 1

@dataclass
class Guanxi:
    family: int = 1
    network: int = 1
    party: int = 0

@dataclass
class EncounterHistory:
    recent_domains: Deque[EventDomain] = field(default_factory=lambda: deque(maxlen=RECENT_DOMAIN_CAPACITY))
    encountered_ids: Set[str] = field(default_factory=set)

    def record(self, domain: EventDomain, situation_id: str) -> None:
        """Most recent domain goes to the front; the oldest falls off."""
        self.recent_domains.appendleft(domain)
        self.encountered_ids.add(situation_id)
