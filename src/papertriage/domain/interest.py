from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

MIN_WEIGHT = 0.1
MAX_WEIGHT = 2.0
DEFAULT_WEIGHT = 1.0
APPROVAL_STEP = 0.1
SKIP_STEP = 0.05


class InterestType(str, Enum):
    MANUAL = "manual"
    LEARNED = "learned"


def clamp_weight(weight: float) -> float:
    # Rounded so repeated +0.1 / -0.05 steps land exactly on the bounds.
    return round(min(MAX_WEIGHT, max(MIN_WEIGHT, float(weight))), 4)


@dataclass
class InterestEntry:
    """One weighted topic of the interest profile."""

    label: str
    weight: float = DEFAULT_WEIGHT
    type: InterestType = InterestType.MANUAL
    id: Optional[int] = None

    @property
    def match_key(self) -> str:
        return self.label.strip().lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "weight": self.weight,
            "type": self.type.value,
        }
