"""SafeHaven services.

- triage_service: keyword triage, scripted replies, session state machine
- emergency_directory: static crisis contacts surfaced on crisis messages
"""
