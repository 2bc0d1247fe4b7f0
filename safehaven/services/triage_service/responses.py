"""Scripted response catalog and selector.

The catalog is static configuration: every tier, GENERAL included, maps
to a non-empty ordered list of candidate replies. The selector picks one
uniformly at random from an injected random source so tests can make the
choice deterministic.
"""
import logging
import random
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

from safehaven.shared.models import RiskTier

logger = logging.getLogger(__name__)


RESPONSES: Mapping[RiskTier, Tuple[str, ...]] = MappingProxyType({
    RiskTier.CRISIS: (
        "I hear you, and I'm really concerned about you. You're not alone, "
        "and there are people who want to help. Would you like me to share "
        "some crisis support numbers?",
        "Thank you for trusting me with how you're feeling. Your life has "
        "value. Please consider reaching out to a crisis counselor who can "
        "provide immediate support.",
    ),
    RiskTier.DEPRESSION: (
        "I hear you. You're not alone in feeling this way. It's okay to have "
        "these feelings - they don't define you.",
        "That sounds really difficult. Your feelings are valid, and it's brave "
        "of you to share them. Would you like me to guide you through some "
        "gentle coping techniques?",
        "I'm here with you. Depression can make everything feel overwhelming, "
        "but small steps can help. Would you like to try a grounding exercise "
        "together?",
    ),
    RiskTier.DISTRESS: (
        "That sounds really tough. Your feelings are completely valid. Do you "
        "want me to guide you through some stress relief steps?",
        "I can hear how difficult this is for you. Let's take this one moment "
        "at a time. Would some calming techniques help right now?",
        "You're dealing with a lot. It's normal to feel overwhelmed. Would you "
        "like to try some breathing exercises or talk through what's on your "
        "mind?",
    ),
    RiskTier.GENERAL: (
        "Thank you for sharing with me. I'm here to listen. How can I best "
        "support you right now?",
        "I hear you. What would feel most helpful to you in this moment?",
        "You've taken a positive step by reaching out. What's on your mind "
        "today?",
    ),
})


class ResponseCatalog:
    """Immutable mapping of RiskTier to candidate replies.

    Validated on construction so a lookup for any tier can never fail.
    """

    def __init__(self, responses: Optional[Mapping[RiskTier, Sequence[str]]] = None):
        """Initialize and validate the catalog.

        Args:
            responses: Candidate replies per tier (defaults to RESPONSES)

        Raises:
            ValueError: If a tier is missing, empty, or has a blank reply
        """
        source = RESPONSES if responses is None else responses
        candidates = {}
        for tier in RiskTier:
            replies = tuple(source.get(tier, ()))
            if not replies:
                raise ValueError(f"Response catalog has no replies for {tier.value}")
            if any(not reply.strip() for reply in replies):
                raise ValueError(f"Response catalog has a blank reply for {tier.value}")
            candidates[tier] = replies
        self._candidates = MappingProxyType(candidates)

    def candidates(self, tier: RiskTier) -> Tuple[str, ...]:
        """Return the ordered candidate replies for a tier."""
        return self._candidates[tier]

    def fallback(self) -> str:
        """Reply used when a turn cannot be triaged normally."""
        return self._candidates[RiskTier.GENERAL][0]

    def __len__(self) -> int:
        return sum(len(replies) for replies in self._candidates.values())


class ResponseSelector:
    """Uniformly picks one catalog reply for a tier."""

    def __init__(
        self,
        catalog: Optional[ResponseCatalog] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize selector.

        Args:
            catalog: Catalog to draw from (defaults to the static catalog)
            rng: Random source; anything with a choice() method works.
                Defaults to a fresh random.Random.
        """
        self.catalog = ResponseCatalog() if catalog is None else catalog
        self._rng = rng or random.Random()

    def select(self, tier: RiskTier) -> str:
        """Return one reply for tier, verbatim from the catalog."""
        reply = self._rng.choice(self.catalog.candidates(tier))
        logger.debug(
            "TRIAGE_RESPONSE_SELECTED",
            extra={
                "tier": tier.value,
                "candidate_index": self.catalog.candidates(tier).index(reply),
            }
        )
        return reply
