"""Quick prompts - pre-authored topic buttons that bypass classification.

The presentation layer only offers labels from this table, so an unknown
label is a configuration bug and is reported, never silently ignored.
"""
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class UnknownQuickPromptError(LookupError):
    """Raised when a quick-prompt label is not in the configured table."""

    def __init__(self, label: str, known_labels: Iterable[str] = ()):
        self.label = label
        self.known_labels = tuple(known_labels)
        super().__init__(
            f"Unknown quick prompt {label!r}; known: {', '.join(self.known_labels)}"
        )


@dataclass(frozen=True)
class QuickPrompt:
    """A named topic with a fixed scripted reply."""
    label: str
    scripted_response: str
    follow_up_topics: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.label.strip():
            raise ValueError("Quick prompt label must not be blank")
        if not self.scripted_response.strip():
            raise ValueError(f"Quick prompt {self.label!r} has a blank response")

    @property
    def key(self) -> str:
        return normalize_label(self.label)

    @property
    def trigger_text(self) -> str:
        """Synthetic user entry text recorded when the prompt is chosen."""
        return f"I need help with {self.label.lower()}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "label": self.label,
            "trigger_text": self.trigger_text,
            "scripted_response": self.scripted_response,
            "follow_up_topics": list(self.follow_up_topics),
        }


def normalize_label(label: str) -> str:
    return " ".join(label.split()).lower()


QUICK_PROMPTS: Tuple[QuickPrompt, ...] = (
    QuickPrompt(
        label="Relaxation",
        scripted_response=(
            "Let's try some gentle breathing together. Breathe in slowly for "
            "4 counts... hold for 4... and out for 6. You're doing great."
        ),
        follow_up_topics=("Deep breathing", "Guided imagery", "Progressive relaxation"),
    ),
    QuickPrompt(
        label="Motivation",
        scripted_response=(
            "You've already taken a brave step by reaching out. One small step "
            "forward is still progress. You matter, and your feelings are valid."
        ),
        follow_up_topics=("Daily affirmations", "Goal setting", "Success reminders"),
    ),
    QuickPrompt(
        label="Talk to Someone",
        scripted_response=(
            "Sometimes talking to a professional can really help. Would you "
            "like me to share some trusted helpline numbers or local support "
            "centers?"
        ),
        follow_up_topics=("Emergency contacts", "Counselor referrals", "Support groups"),
    ),
)


class QuickPromptTable:
    """Lookup of quick prompts by label.

    Labels match case-insensitively with surrounding and repeated
    whitespace ignored, so "relaxation" finds "Relaxation".
    """

    def __init__(self, prompts: Optional[Iterable[QuickPrompt]] = None):
        by_key: Dict[str, QuickPrompt] = {}
        for prompt in QUICK_PROMPTS if prompts is None else prompts:
            if prompt.key in by_key:
                raise ValueError(f"Duplicate quick prompt label: {prompt.label!r}")
            by_key[prompt.key] = prompt
        self._prompts: Mapping[str, QuickPrompt] = MappingProxyType(by_key)

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(p.label for p in self._prompts.values())

    def lookup(self, label: str) -> QuickPrompt:
        """Return the quick prompt for label.

        Args:
            label: Label offered by the presentation layer

        Returns:
            Matching QuickPrompt

        Raises:
            UnknownQuickPromptError: If no prompt has that label
        """
        prompt = self._prompts.get(normalize_label(label))
        if prompt is None:
            logger.error(
                "QUICK_PROMPT_UNKNOWN_LABEL",
                extra={"label": label, "known_labels": list(self.labels)}
            )
            raise UnknownQuickPromptError(label, self.labels)
        return prompt

    def __iter__(self):
        return iter(self._prompts.values())

    def __len__(self) -> int:
        return len(self._prompts)


_DEFAULT_TABLE = QuickPromptTable()


def lookup_quick_prompt(label: str) -> QuickPrompt:
    """Look up a label in the static quick-prompt table."""
    return _DEFAULT_TABLE.lookup(label)
