from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

Number = Union[int, float]


@dataclass(frozen=True)
class CostLine:
    """One priced dimension of a resource (e.g. Firestore standard reads)."""

    key: str
    label: str
    used: Number
    paid: Number
    unit: str
    unit_price: float
    cost: float
    free_allowance: Optional[Number] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "used": self.used,
            "paid": self.paid,
            "unit": self.unit,
            "unit_price": self.unit_price,
            "cost": self.cost,
            "free_allowance": self.free_allowance,
        }


@dataclass(frozen=True)
class ResourceCost:
    resource: str
    cost: float
    lines: List[CostLine] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource": self.resource,
            "cost": self.cost,
            "lines": [line.to_dict() for line in self.lines],
        }
