"""Triage session - orchestrates one support conversation.

State machine:

    IDLE --submit_message / submit_quick_prompt--> COMPOSING
    COMPOSING --scheduled reply appended--> IDLE

At most one reply is pending at a time. The user entry is appended
synchronously; the agent entry is appended by a scheduled callback after
the configured delay. Submissions while COMPOSING are ignored, not
queued, so replies always follow the order of accepted messages.

Teardown (close) cancels the pending reply. A callback that still fires
afterwards sees a dead session and drops the reply without error.
"""
import logging
import random
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import uuid

from safehaven.shared.models import Author, RiskTier, TranscriptEntry
from safehaven.shared.utils import fingerprint_text
from safehaven.services.emergency_directory import EmergencyPanel, panel_for_tier
from .classifier import ClassificationResult, TriageClassifier
from .config import TriageConfig
from .quick_prompts import QuickPromptTable
from .responses import ResponseCatalog, ResponseSelector
from .scheduler import ClockScheduler, ScheduledCall, Scheduler

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Turn state of a triage session."""
    IDLE = "idle"              # No reply pending, input accepted
    COMPOSING = "composing"    # Agent reply scheduled, input ignored


class TriageSession:
    """One support conversation: transcript plus composing state.

    The session exclusively owns its transcript. Nothing is persisted;
    the transcript is discarded with the session.
    """

    def __init__(
        self,
        config: Optional[TriageConfig] = None,
        scheduler: Optional[Scheduler] = None,
        classifier: Optional[TriageClassifier] = None,
        selector: Optional[ResponseSelector] = None,
        quick_prompts: Optional[QuickPromptTable] = None,
        session_id: Optional[str] = None,
    ):
        """Initialize session and seed the transcript with the greeting.

        Args:
            config: Delays, greeting and lexicon version
            scheduler: Runs the delayed reply (defaults to ClockScheduler)
            classifier: Message classifier
            selector: Reply selector for classified messages
            quick_prompts: Table of quick prompts offered as buttons
            session_id: Identifier for logs and hosts (generated if omitted)
        """
        self.session_id = session_id or f"sess_{uuid.uuid4().hex[:12]}"
        self.config = config or TriageConfig()
        self._scheduler = scheduler or ClockScheduler()
        self._classifier = classifier or TriageClassifier(
            lexicon_version=self.config.lexicon_version,
        )
        self._selector = selector or ResponseSelector()
        self._quick_prompts = QuickPromptTable() if quick_prompts is None else quick_prompts

        self._transcript: List[TranscriptEntry] = [
            TranscriptEntry(text=self.config.greeting, author=Author.AGENT)
        ]
        self._state = SessionState.IDLE
        self._pending: Optional[ScheduledCall] = None
        self._live = True
        self.last_classification: Optional[ClassificationResult] = None

        logger.info(
            "TRIAGE_SESSION_CREATED",
            extra={
                "session_id": self.session_id,
                "lexicon_version": self.config.lexicon_version,
                "reply_delay_seconds": self.config.reply_delay_seconds,
            }
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_live(self) -> bool:
        return self._live

    @property
    def last_tier(self) -> Optional[RiskTier]:
        """Tier of the latest classified message; quick prompts don't count."""
        if self.last_classification is None:
            return None
        return self.last_classification.tier

    def is_composing(self) -> bool:
        return self._state is SessionState.COMPOSING

    def get_transcript(self) -> Tuple[TranscriptEntry, ...]:
        """Return an ordered snapshot of the transcript."""
        return tuple(self._transcript)

    def emergency_panel(self) -> EmergencyPanel:
        """Emergency resources, emphasized after a crisis message."""
        return panel_for_tier(self.last_tier)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "session_id": self.session_id,
            "state": self._state.value,
            "composing": self.is_composing(),
            "last_tier": self.last_tier.value if self.last_tier else None,
            "transcript": [entry.to_dict() for entry in self._transcript],
            "emergency": self.emergency_panel().to_dict(),
        }

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def submit_message(self, text: str) -> bool:
        """Submit free text from the user.

        Blank text, a pending reply or a closed session make this a
        silent no-op: nothing is appended and nothing is raised.

        Args:
            text: Message typed by the user

        Returns:
            True if the turn was accepted, False if it was ignored

        Raises:
            Whatever the scheduler raises; the session is back to IDLE

        Logs:
            - TRIAGE_SUBMISSION_IGNORED: On any silent rejection (warning)
            - TRIAGE_TURN_ACCEPTED: Once the user entry is appended
        """
        if not self._accepting("message"):
            return False
        if not text or not text.strip():
            self._log_ignored("message", "blank_text")
            return False

        self._append(text, Author.USER)
        reply = self._triage(text)
        self._schedule_reply(reply, self.config.reply_delay_seconds)

        logger.info(
            "TRIAGE_TURN_ACCEPTED",
            extra={
                "session_id": self.session_id,
                "turn_kind": "message",
                "tier": self.last_tier.value,
                "text_fingerprint": fingerprint_text(text),
                "text_length": len(text),
            }
        )
        return True

    def submit_quick_prompt(self, label: str) -> bool:
        """Submit a quick-prompt button; never consults the classifier.

        Args:
            label: Quick prompt label offered by the presentation layer

        Returns:
            True if the turn was accepted, False if it was ignored

        Raises:
            UnknownQuickPromptError: If label is not configured. Checked
                before any state, so a bad label is always reported.
        """
        prompt = self._quick_prompts.lookup(label)
        if not self._accepting("quick_prompt"):
            return False

        self._append(prompt.trigger_text, Author.USER)
        self._schedule_reply(
            prompt.scripted_response,
            self.config.quick_prompt_delay_seconds,
        )

        logger.info(
            "TRIAGE_TURN_ACCEPTED",
            extra={
                "session_id": self.session_id,
                "turn_kind": "quick_prompt",
                "label": prompt.label,
            }
        )
        return True

    def close(self) -> None:
        """Tear the session down and cancel any pending reply.

        Idempotent. The transcript stays readable but never changes again.
        """
        if not self._live:
            return
        self._live = False
        had_pending = self._pending is not None
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._state = SessionState.IDLE

        logger.info(
            "TRIAGE_SESSION_CLOSED",
            extra={
                "session_id": self.session_id,
                "entry_count": len(self._transcript),
                "cancelled_pending_reply": had_pending,
            }
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _accepting(self, turn_kind: str) -> bool:
        if not self._live:
            self._log_ignored(turn_kind, "session_closed")
            return False
        if self._state is SessionState.COMPOSING:
            self._log_ignored(turn_kind, "already_composing")
            return False
        return True

    def _log_ignored(self, turn_kind: str, reason: str) -> None:
        logger.warning(
            "TRIAGE_SUBMISSION_IGNORED",
            extra={
                "session_id": self.session_id,
                "turn_kind": turn_kind,
                "reason": reason,
            }
        )

    def _append(self, text: str, author: Author) -> TranscriptEntry:
        entry = TranscriptEntry(text=text, author=author)
        self._transcript.append(entry)
        return entry

    def _triage(self, text: str) -> str:
        """Classify text and pick a reply, degrading to GENERAL on failure."""
        try:
            result = self._classifier.classify_with_matches(text)
            reply = self._selector.select(result.tier)
        except Exception as e:
            # Never surface an error in the transcript
            logger.error(
                "TRIAGE_TURN_DEGRADED",
                extra={
                    "session_id": self.session_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "action": "DEFAULTING_TO_GENERAL",
                }
            )
            result = ClassificationResult(
                tier=RiskTier.GENERAL,
                lexicon_version=self.config.lexicon_version,
            )
            reply = self._selector.catalog.fallback()

        self.last_classification = result
        return reply

    def _schedule_reply(self, reply: str, delay_seconds: float) -> None:
        self._state = SessionState.COMPOSING
        try:
            call = self._scheduler.after(delay_seconds, lambda: self._deliver(reply))
        except Exception as e:
            # No reply can arrive, so the session must accept input again
            self._state = SessionState.IDLE
            self._pending = None
            logger.error(
                "TRIAGE_REPLY_SCHEDULE_FAILED",
                extra={
                    "session_id": self.session_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "action": "RESET_TO_IDLE",
                }
            )
            raise
        # A scheduler may run the callback before after() returns
        self._pending = call if call.pending else None

    def _deliver(self, reply: str) -> None:
        if not self._live:
            logger.info(
                "TRIAGE_REPLY_DROPPED",
                extra={"session_id": self.session_id, "reason": "session_closed"}
            )
            return

        self._append(reply, Author.AGENT)
        self._state = SessionState.IDLE
        self._pending = None

        logger.info(
            "TRIAGE_REPLY_DELIVERED",
            extra={
                "session_id": self.session_id,
                "entry_count": len(self._transcript),
            }
        )


def create_session(
    config: Optional[TriageConfig] = None,
    scheduler: Optional[Scheduler] = None,
    rng: Optional[random.Random] = None,
    catalog: Optional[ResponseCatalog] = None,
) -> TriageSession:
    """Create a triage session wired with the static configuration.

    Args:
        config: Session configuration (defaults to TriageConfig())
        scheduler: Scheduler for delayed replies
        rng: Random source for reply selection; seed it for determinism
        catalog: Response catalog (defaults to the static catalog)

    Returns:
        New TriageSession seeded with the greeting
    """
    return TriageSession(
        config=config,
        scheduler=scheduler,
        selector=ResponseSelector(catalog=catalog, rng=rng),
    )
