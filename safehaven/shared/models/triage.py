"""Risk tier and transcript domain models.

This file defines the core enums and data structures shared by the
triage engine and the services that render its output.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator
import uuid


class RiskTier(Enum):
    """Classification outcome for a single message.

    Totally ordered by escalation priority:
    crisis > depression > distress > general.
    """
    CRISIS = "crisis"
    DEPRESSION = "depression"
    DISTRESS = "distress"
    GENERAL = "general"      # Fallback when no lexicon phrase matches

    @property
    def priority(self) -> int:
        """Escalation priority, higher wins."""
        return _PRIORITY[self]

    @classmethod
    def by_priority(cls) -> Iterator["RiskTier"]:
        """Yield the lexicon-backed tiers, highest priority first.

        GENERAL is excluded since it is never matched, only fallen back to.
        """
        for tier in sorted(cls, key=lambda t: t.priority, reverse=True):
            if tier is not cls.GENERAL:
                yield tier


_PRIORITY = {
    RiskTier.CRISIS: 3,
    RiskTier.DEPRESSION: 2,
    RiskTier.DISTRESS: 1,
    RiskTier.GENERAL: 0,
}


class Author(Enum):
    """Who wrote a transcript entry."""
    USER = "user"
    AGENT = "agent"


def new_entry_id() -> str:
    return f"msg_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class TranscriptEntry:
    """One message in a triage session transcript.

    Immutable - entries are never edited or removed once appended.
    """
    text: str
    author: Author
    id: str = field(default_factory=new_entry_id)
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_user(self) -> bool:
        return self.author is Author.USER

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "text": self.text,
            "author": self.author.value,
            "created_at": self.created_at.isoformat() + "Z",
        }
