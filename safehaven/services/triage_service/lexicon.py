"""Trigger phrase lexicon for risk tier classification.

Phrases are lowercase substrings. Matching is deliberately coarse: a
phrase embedded inside an unrelated word still matches. The same phrase
may appear under several tiers ("hopeless" is both crisis and
depression); classification always resolves to the highest tier.
"""
from dataclasses import dataclass
from typing import FrozenSet, Tuple

from safehaven.shared.models import RiskTier

LEXICON_VERSION = "2024.09.01"


@dataclass(frozen=True)
class LexiconEntry:
    """Phrase set for one lexicon-backed tier."""
    tier: RiskTier
    phrases: FrozenSet[str]

    def __post_init__(self):
        if self.tier is RiskTier.GENERAL:
            raise ValueError("GENERAL is the fallback tier and has no phrases")
        if not self.phrases:
            raise ValueError(f"Lexicon entry for {self.tier.value} has no phrases")
        for phrase in self.phrases:
            if not phrase.strip():
                raise ValueError(f"Blank phrase in {self.tier.value} lexicon")
            if phrase != phrase.lower():
                raise ValueError(f"Lexicon phrase must be lowercase: {phrase!r}")

    def matches(self, lowered_text: str) -> Tuple[str, ...]:
        """Return phrases found in already lower-cased text, sorted."""
        return tuple(sorted(p for p in self.phrases if p in lowered_text))


# Self-harm and hopelessness language - surfaces emergency resources
CRISIS_PHRASES: FrozenSet[str] = frozenset({
    "kill myself",
    "end it all",
    "don't want to live",
    "suicide",
    "hurt myself",
    "no point",
    "give up",
    "hopeless",
    "worthless",
})

DEPRESSION_PHRASES: FrozenSet[str] = frozenset({
    "depressed",
    "sad all the time",
    "hopeless",
    "empty",
    "numb",
    "can't go on",
    "tired of life",
    "nothing matters",
})

DISTRESS_PHRASES: FrozenSet[str] = frozenset({
    "anxious",
    "scared",
    "terrified",
    "panicking",
    "overwhelmed",
    "frustrated",
    "angry",
    "can't cope",
    "stressed",
})

# Ordered by tier priority, highest first
LEXICON: Tuple[LexiconEntry, ...] = (
    LexiconEntry(RiskTier.CRISIS, CRISIS_PHRASES),
    LexiconEntry(RiskTier.DEPRESSION, DEPRESSION_PHRASES),
    LexiconEntry(RiskTier.DISTRESS, DISTRESS_PHRASES),
)
