from .base import BaseChargeModel, ChargeModel
from .cloud_run import CloudRunChargeModel
from .firestore import FirestoreChargeModel
from .hosting import HostingChargeModel
from .registry import ChargeModelRegistry, build_default_registry
from .storage import StorageChargeModel
from .types import CostLine, ResourceCost

__all__ = [
    "BaseChargeModel",
    "ChargeModel",
    "ChargeModelRegistry",
    "build_default_registry",
    "CloudRunChargeModel",
    "FirestoreChargeModel",
    "HostingChargeModel",
    "StorageChargeModel",
    "CostLine",
    "ResourceCost",
]
