from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .base import ChargeModel
from .cloud_run import CloudRunChargeModel
from .firestore import FirestoreChargeModel
from .hosting import HostingChargeModel
from .storage import StorageChargeModel


@dataclass
class ChargeModelRegistry:
    """Charge models by resource name, in registration order."""

    models: Dict[str, ChargeModel] = field(default_factory=dict)

    def register(self, model: ChargeModel) -> None:
        if model.resource in self.models:
            raise ValueError(f"Charge model for '{model.resource}' is already registered")
        self.models[model.resource] = model

    def get(self, resource: str) -> Optional[ChargeModel]:
        return self.models.get(resource)

    def all(self) -> List[ChargeModel]:
        return list(self.models.values())


def build_default_registry(free_tier_database_id: Optional[str] = None) -> ChargeModelRegistry:
    """Every metered resource the guardrail watches."""

    reg = ChargeModelRegistry()
    reg.register(FirestoreChargeModel(free_tier_database_id))
    reg.register(HostingChargeModel())
    reg.register(StorageChargeModel())
    reg.register(CloudRunChargeModel())
    return reg
