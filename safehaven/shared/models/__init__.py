"""Shared domain models for the SafeHaven triage engine."""
from .triage import (
    RiskTier,
    Author,
    TranscriptEntry,
    new_entry_id,
)

__all__ = [
    "RiskTier",
    "Author",
    "TranscriptEntry",
    "new_entry_id",
]
