"""SafeHaven support triage engine."""
