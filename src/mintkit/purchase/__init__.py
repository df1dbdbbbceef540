from __future__ import annotations

from .cost import CostCalculator
from .eligibility import EligibilityChecker
from .models import (
    UNLIMITED,
    BuyerLimit,
    CostBreakdown,
    EligibilityResult,
    GasBuffer,
    Order,
    OrderStatus,
    PreparedPurchase,
    ProductStatus,
    PurchaseObserver,
    Receipt,
    SaleState,
    StepKind,
    TransactionStep,
)
from .orchestrator import PurchaseOrchestrator
from .planner import PurchaseCall, StepPlanner

__all__ = [
    "UNLIMITED",
    "BuyerLimit",
    "CostBreakdown",
    "CostCalculator",
    "EligibilityChecker",
    "EligibilityResult",
    "GasBuffer",
    "Order",
    "OrderStatus",
    "PreparedPurchase",
    "ProductStatus",
    "PurchaseCall",
    "PurchaseObserver",
    "PurchaseOrchestrator",
    "Receipt",
    "SaleState",
    "StepKind",
    "StepPlanner",
    "TransactionStep",
]
