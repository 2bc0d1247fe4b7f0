"""Emergency resource directory.

Static contacts always available to the presentation layer. The engine
never dials anything; it only flags when the panel should be emphasized,
which happens when the latest message was classified as crisis.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from safehaven.shared.models import RiskTier


@dataclass(frozen=True)
class EmergencyResource:
    """A named contact the user can call."""
    name: str
    dial_target: str
    description: str

    def __post_init__(self):
        for attr in ("name", "dial_target", "description"):
            if not getattr(self, attr).strip():
                raise ValueError(f"Emergency resource {attr} must not be blank")
        if not re.search(r"\d", self.dial_target):
            raise ValueError(f"Dial target has no digits: {self.dial_target!r}")

    @property
    def dial_uri(self) -> str:
        """tel: link for the dial target, keeping only digits, + and dashes."""
        return "tel:" + re.sub(r"[^\d+\-]", "", self.dial_target)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "dial_target": self.dial_target,
            "dial_uri": self.dial_uri,
            "description": self.description,
        }


EMERGENCY_RESOURCES: Tuple[EmergencyResource, ...] = (
    EmergencyResource(
        name="National Crisis Helpline",
        dial_target="988",
        description="24/7 crisis support",
    ),
    EmergencyResource(
        name="Women's Safety Helpline",
        dial_target="1091",
        description="Immediate help for women",
    ),
    EmergencyResource(
        name="Domestic Violence Hotline",
        dial_target="1800-799-7233",
        description="Confidential support",
    ),
)


@dataclass(frozen=True)
class EmergencyPanel:
    """Directory view handed to the presentation layer."""
    resources: Tuple[EmergencyResource, ...]
    emphasized: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "emphasized": self.emphasized,
            "resources": [r.to_dict() for r in self.resources],
        }


def list_resources() -> Tuple[EmergencyResource, ...]:
    return EMERGENCY_RESOURCES


def panel_for_tier(tier: Optional[RiskTier]) -> EmergencyPanel:
    """Return the directory, emphasized only for the crisis tier.

    Args:
        tier: Tier of the latest classified message, or None if none yet
    """
    return EmergencyPanel(
        resources=EMERGENCY_RESOURCES,
        emphasized=tier is RiskTier.CRISIS,
    )
