"""saga-orders — order placement, credit reservation and outcome saga."""

from __future__ import annotations

from .bootstrap import (
    InvocationResult,
    OrderSagaApp,
    Services,
    configure_logging,
    open_services,
)
from .commands import CreateOrder, HandleReservationOutcome, ReserveCredit
from .credit import ICreditDecisionService, RandomCreditDecisionService
from .domain import Order, OrderStatus, Transaction, TransactionKind
from .events import OrderPlaced, ReservationOutcome
from .handlers import (
    CreateOrderHandler,
    HandleReservationOutcomeHandler,
    ReserveCreditHandler,
)
from .settings import OrderSagaSettings

__all__: list[str] = [
    "CreateOrder",
    "CreateOrderHandler",
    "HandleReservationOutcome",
    "HandleReservationOutcomeHandler",
    "ICreditDecisionService",
    "InvocationResult",
    "Order",
    "OrderPlaced",
    "OrderSagaApp",
    "OrderSagaSettings",
    "OrderStatus",
    "RandomCreditDecisionService",
    "ReservationOutcome",
    "ReserveCredit",
    "ReserveCreditHandler",
    "Services",
    "Transaction",
    "TransactionKind",
    "configure_logging",
    "open_services",
]
