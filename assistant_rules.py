"""
Keyword rule table for the farming assistant.

Rules are evaluated in declaration order and the first rule whose predicate
matches wins, so reordering RULES changes which advice a message receives.
"""
from dataclasses import dataclass
from typing import Sequence, Tuple


FALLBACK_RESPONSE = (
    "I apologize, but I need more specific information to provide accurate advice. "
    "Could you please provide more details about your farming question?"
)


@dataclass(frozen=True)
class Rule:
    keywords: Tuple[str, ...]
    response: str

    def matches(self, text: str) -> bool:
        """True if any keyword occurs in the already lower-cased text"""
        return any(keyword in text for keyword in self.keywords)


RULES: Tuple[Rule, ...] = (
    Rule(
        keywords=("plant", "sow", "seed"),
        response=(
            "The best time to plant depends on your local climate and the specific crop. "
            "Make sure to check soil temperature and moisture levels before planting."
        ),
    ),
    Rule(
        keywords=("water", "irrigation", "moisture"),
        response=(
            "Water your crops early in the morning to reduce evaporation. "
            "Use mulch to retain moisture and prevent weed growth."
        ),
    ),
    Rule(
        keywords=("pest", "insect", "bug"),
        response=(
            "Consider using natural pest control methods like companion planting or "
            "introducing beneficial insects. Monitor your crops regularly for early detection."
        ),
    ),
    Rule(
        keywords=("fertilizer", "nutrient", "feed"),
        response=(
            "Choose organic fertilizers for sustainable farming. Apply them during the "
            "growing season, following recommended rates for your specific crops."
        ),
    ),
)


def classify(message: str, rules: Sequence[Rule] = RULES) -> str:
    """Return the response of the first rule matching the message, or the fallback"""
    lowered = message.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.response
    return FALLBACK_RESPONSE
