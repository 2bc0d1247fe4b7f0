"""Shared utilities for the SafeHaven triage engine."""
from .pii import fingerprint_text

__all__ = ["fingerprint_text"]
