"""Tests for quick-prompt lookup."""
import pytest

from safehaven.services.triage_service.quick_prompts import (
    QUICK_PROMPTS,
    QuickPrompt,
    QuickPromptTable,
    UnknownQuickPromptError,
    lookup_quick_prompt,
)


class TestLookup:

    def test_known_labels(self):
        table = QuickPromptTable()
        assert table.labels == ("Relaxation", "Motivation", "Talk to Someone")
        assert len(table) == 3

    def test_lookup_is_case_insensitive(self):
        assert lookup_quick_prompt("relaxation").label == "Relaxation"
        assert lookup_quick_prompt("  TALK  to someone ").label == "Talk to Someone"

    def test_unknown_label_raises(self):
        with pytest.raises(UnknownQuickPromptError) as exc_info:
            lookup_quick_prompt("meditation")

        assert exc_info.value.label == "meditation"
        assert "Relaxation" in exc_info.value.known_labels

    def test_unknown_label_is_lookup_error(self):
        with pytest.raises(LookupError):
            lookup_quick_prompt("")

    def test_duplicate_labels_rejected(self):
        with pytest.raises(ValueError):
            QuickPromptTable([QUICK_PROMPTS[0], QuickPrompt("relaxation", "Breathe.")])

    def test_custom_table(self):
        table = QuickPromptTable([QuickPrompt("Sleep", "Let's wind down.")])
        assert table.lookup("sleep").scripted_response == "Let's wind down."
        with pytest.raises(UnknownQuickPromptError):
            table.lookup("Relaxation")


class TestQuickPrompt:

    def test_trigger_text_names_topic(self):
        assert lookup_quick_prompt("Relaxation").trigger_text == "I need help with relaxation"

    def test_every_prompt_has_follow_ups(self):
        for prompt in QUICK_PROMPTS:
            assert len(prompt.follow_up_topics) == 3

    def test_follow_ups_may_be_empty(self):
        assert QuickPrompt("Sleep", "Let's wind down.").follow_up_topics == ()

    def test_blank_response_rejected(self):
        with pytest.raises(ValueError):
            QuickPrompt("Sleep", " ")

    def test_to_dict(self):
        data = lookup_quick_prompt("Motivation").to_dict()
        assert data["label"] == "Motivation"
        assert data["trigger_text"] == "I need help with motivation"
        assert data["follow_up_topics"] == [
            "Daily affirmations", "Goal setting", "Success reminders",
        ]
