"""Risk tier classifier - keyword substring matching.

Cheap, explainable triage without a model dependency. Every message is
lower-cased and checked against each tier's phrase set in priority order;
the first tier with any match wins, otherwise the message is GENERAL.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple

from safehaven.shared.models import RiskTier
from safehaven.shared.utils import fingerprint_text
from .lexicon import LEXICON, LEXICON_VERSION, LexiconEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationResult:
    """Result of classifying one message.

    Immutable - classification results cannot be modified after creation.
    matched_phrases lists only the phrases of the winning tier.
    """
    tier: RiskTier
    matched_phrases: Tuple[str, ...] = field(default_factory=tuple)
    lexicon_version: str = ""

    @property
    def is_crisis(self) -> bool:
        return self.tier is RiskTier.CRISIS

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "tier": self.tier.value,
            "matched_phrases": list(self.matched_phrases),
            "lexicon_version": self.lexicon_version,
        }


class TriageClassifier:
    """Maps message text to exactly one RiskTier.

    Deterministic: identical input always yields the identical tier.
    Callers must not pass blank text; the session filters it out first.
    """

    def __init__(
        self,
        lexicon: Optional[Iterable[LexiconEntry]] = None,
        lexicon_version: str = LEXICON_VERSION,
    ):
        """Initialize classifier with a lexicon.

        Args:
            lexicon: Lexicon entries, one per tier (defaults to LEXICON).
                Order does not matter; entries are sorted by tier priority.
            lexicon_version: Version tag attached to every result

        Raises:
            ValueError: If two entries share a tier
        """
        entries = tuple(LEXICON if lexicon is None else lexicon)
        tiers = [entry.tier for entry in entries]
        if len(set(tiers)) != len(tiers):
            raise ValueError("Lexicon has more than one entry for a tier")

        by_tier = {entry.tier: entry for entry in entries}
        self._entries = tuple(
            by_tier[tier] for tier in RiskTier.by_priority() if tier in by_tier
        )
        self.lexicon_version = lexicon_version

        logger.info(
            "TRIAGE_CLASSIFIER_INITIALIZED",
            extra={
                "lexicon_version": lexicon_version,
                "tier_order": [e.tier.value for e in self._entries],
                "phrase_count": sum(len(e.phrases) for e in self._entries),
            }
        )

    def classify(self, text: str) -> RiskTier:
        """Return the highest-priority tier whose lexicon matches text."""
        return self.classify_with_matches(text).tier

    def classify_with_matches(self, text: str) -> ClassificationResult:
        """Classify text and report which phrases decided the tier.

        Args:
            text: Raw message text (non-blank)

        Returns:
            ClassificationResult with the winning tier and its matches

        Logs:
            - TRIAGE_CLASSIFIED_CRISIS: If crisis phrases matched (warning)
            - TRIAGE_CLASSIFIED: For every other outcome (debug)
        """
        lowered = text.lower()

        for entry in self._entries:
            matches = entry.matches(lowered)
            if matches:
                return self._result(entry.tier, matches, text)

        return self._result(RiskTier.GENERAL, (), text)

    def _result(
        self,
        tier: RiskTier,
        matches: Tuple[str, ...],
        text: str,
    ) -> ClassificationResult:
        log_extra = {
            "tier": tier.value,
            "match_count": len(matches),
            "text_fingerprint": fingerprint_text(text),
            "text_length": len(text),
            "lexicon_version": self.lexicon_version,
        }
        if tier is RiskTier.CRISIS:
            logger.warning("TRIAGE_CLASSIFIED_CRISIS", extra=log_extra)
        else:
            logger.debug("TRIAGE_CLASSIFIED", extra=log_extra)

        return ClassificationResult(
            tier=tier,
            matched_phrases=matches,
            lexicon_version=self.lexicon_version,
        )
