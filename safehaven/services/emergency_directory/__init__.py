"""Emergency Resource Directory: static crisis contacts.

Components:
- directory.py: EmergencyResource records and the tier-aware panel view

Usage:
    from safehaven.services.emergency_directory import panel_for_tier
    panel = panel_for_tier(RiskTier.CRISIS)
    panel.emphasized  # True
"""

from .directory import (
    EMERGENCY_RESOURCES,
    EmergencyPanel,
    EmergencyResource,
    list_resources,
    panel_for_tier,
)

__all__ = [
    "EMERGENCY_RESOURCES",
    "EmergencyPanel",
    "EmergencyResource",
    "list_resources",
    "panel_for_tier",
]
