"""Purchase on-chain products through a uniform prepare / execute interface."""

from __future__ import annotations

from .client import Client, create_client
from .errors import ErrorCode, MintkitError, StepExecutionFailedError
from .money import Money
from .purchase import GasBuffer, Order, PreparedPurchase, PurchaseObserver
from .settings import ClientSettings

__all__ = [
    "Client",
    "ClientSettings",
    "ErrorCode",
    "GasBuffer",
    "MintkitError",
    "Money",
    "Order",
    "PreparedPurchase",
    "PurchaseObserver",
    "StepExecutionFailedError",
    "create_client",
]
