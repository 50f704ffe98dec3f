"""
Lotus — lotus/procedural/text_assembly.py
Description and choice text assembly with {placeholder} substitution.
"""

from __future__ import annotations

import logging
import random
import re
from typing import List, Optional

from lotus.data_loader import NarrativeFragments, VariableLibraries

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{([a-z_][a-z0-9_]*)\}")

# The one placeholder resolved against the tier-keyed descriptor table.
TIERED_PLACEHOLDER: str = "colleague_descriptor"
DEFAULT_DESCRIPTOR_TIER: str = "2"

# Placeholders whose word list is stored under a different name.
PLACEHOLDER_ALIASES = {
    "excuse": "excuse_library",
    "relationship_type": "relationship_types",
}

def assemble_description(
    fragments: NarrativeFragments,
    variables: VariableLibraries,
    player_tier: int,
    rng: random.Random,
) -> str:
    """One opening, one conflict and one stake, space-joined, then substituted."""
    opening = rng.choice(fragments.openings)
    conflict = rng.choice(fragments.conflicts)
    stakes = rng.choice(fragments.stakes)
    text = f"{opening} {conflict} {stakes}"
    return substitute_variables(text, variables, player_tier, rng)

def assemble_choice_text(text_fragments: List[str], rng: random.Random) -> str:
    return rng.choice(text_fragments)

def _word_list_for(token: str, variables: VariableLibraries, player_tier: int) -> Optional[List[str]]:
    if token == TIERED_PLACEHOLDER:
        descriptors = variables.colleague_descriptors
        return descriptors.get(str(player_tier)) or descriptors.get(DEFAULT_DESCRIPTOR_TIER)
    return variables.word_lists.get(PLACEHOLDER_ALIASES.get(token, token))

def substitute_variables(text: str, variables: VariableLibraries, player_tier: int, rng: random.Random) -> str:
    """
    Replaces each distinct {token} in the text with one random pick from its list.
    Tokens are visited in order of first appearance; every occurrence of a token
    receives the same pick. Tokens without a usable list stay in the text.
    """
    tokens = list(dict.fromkeys(PLACEHOLDER_PATTERN.findall(text)))
    for token in tokens:
        words = _word_list_for(token, variables, player_tier)
        if not words:
            logger.debug("Leaving placeholder {%s} unresolved: no word list", token)
            continue
        text = text.replace("{" + token + "}", rng.choice(words))
    return text
