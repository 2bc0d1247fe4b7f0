"""Models and utilities shared across SafeHaven services."""
