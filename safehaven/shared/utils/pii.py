"""Log-safe handling of user message text.

Messages from people in distress are sensitive. Application logs never
carry the raw text, only a short fingerprint and the length, which is
enough to correlate log lines for a single message.
"""
import hashlib

FINGERPRINT_LENGTH = 16


def fingerprint_text(text: str) -> str:
    """Return a short, non-reversible digest of message text for logging.

    Args:
        text: Raw message text

    Returns:
        First FINGERPRINT_LENGTH hex chars of the SHA-256 digest

    Example:
        >>> fingerprint_text("hello")
        '2cf24dba5fb0a30e'
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
