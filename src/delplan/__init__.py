"""Plan hierarchical deletions of files, packages, modules and declarations."""

from __future__ import annotations

__version__ = "0.1.0"

from delplan.config import PlannerConfig
from delplan.models import (
    AccessorPair,
    Cancelled,
    LogicalSymbol,
    OrderedPlan,
    PhysicalResource,
    WorkingSet,
)
from delplan.planner import has_subpackages_to_delete, is_applicable, plan
from delplan.queries import ConfirmationOracle

__all__ = [
    "AccessorPair",
    "Cancelled",
    "ConfirmationOracle",
    "LogicalSymbol",
    "OrderedPlan",
    "PhysicalResource",
    "PlannerConfig",
    "WorkingSet",
    "has_subpackages_to_delete",
    "is_applicable",
    "plan",
]
