"""
Lotus — lotus/narrative.py
NarrativeGenerator: result texts for procedural choices and readable outcome summaries.
"""

from typing import Dict, Any, List
from lotus.data_loader import ChoiceType, StatProfile

# Display order and labels for the six outcome deltas.
OUTCOME_LABELS: Dict[str, str] = {
    "scs_change": "Social Credit",
    "finance_change": "Finances",
    "career_level_change": "Career Level",
    "guanxi_family_change": "Family Guanxi",
    "guanxi_network_change": "Network Guanxi",
    "guanxi_party_change": "Party Guanxi",
}

class NarrativeGenerator:
    @staticmethod
    def success_result(archetype: ChoiceType, outcome: StatProfile) -> str:
        """Result line for a choice that did not backfire. Tone follows the social-credit delta."""
        verdict = "Things went well." if outcome.scs_change > 0 else "There were consequences."
        return f"You chose to {archetype.value}. {verdict}"

    @staticmethod
    def failure_result(archetype: ChoiceType) -> str:
        return f"You chose to {archetype.value}, but it backfired. Things didn't go as planned."

    @staticmethod
    def outcome_summary(outcome: StatProfile) -> str:
        """e.g. 'Social Credit +15, Finances -10'. Zero deltas are omitted."""
        parts: List[str] = []
        for field_name, label in OUTCOME_LABELS.items():
            value = getattr(outcome, field_name)
            if value:
                parts.append(f"{label} {value:+d}")
        return ", ".join(parts) if parts else "No change"

    @staticmethod
    def resolution_to_text(entry: Dict[str, Any]) -> str:
        """Translates an option-resolution payload (as emitted on the bus) into a log line."""
        title = entry.get("title", "an event")
        choice = entry.get("choice", "something")
        summary = entry.get("summary", "No change")

        if entry.get("succeeded", True):
            return f"In '{title}' you chose '{choice}': {summary}."
        return f"In '{title}' your choice '{choice}' backfired: {summary}."
