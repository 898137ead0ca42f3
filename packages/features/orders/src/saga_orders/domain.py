"""Order and Transaction entities and the order lifecycle state machine."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

from pydantic import Field

from saga_outbox_core.domain.entity import Entity
from saga_outbox_core.primitives.exceptions import InvariantViolationError


class OrderStatus(str, Enum):
    """PENDING until the credit step answers, then CREATED or REJECTED for good."""

    PENDING = "PENDING"
    CREATED = "CREATED"
    REJECTED = "REJECTED"


class TransactionKind(str, Enum):
    INCOME = "INCOME"
    OUTCOME = "OUTCOME"


class Order(Entity):
    """
    An order placed by a customer.

    Created PENDING.  The reservation-outcome step moves it to CREATED or
    REJECTED exactly once; both are terminal.
    """

    updatable_fields: ClassVar[tuple[str, ...]] = ("status",)

    amount: float = Field(gt=0)
    customer_id: str
    status: OrderStatus = OrderStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status is not OrderStatus.PENDING

    def confirm(self) -> None:
        self._leave_pending(OrderStatus.CREATED)

    def reject(self) -> None:
        self._leave_pending(OrderStatus.REJECTED)

    def resolve(self, is_credit_reserved: bool) -> None:
        if is_credit_reserved:
            self.confirm()
        else:
            self.reject()

    def _leave_pending(self, target: OrderStatus) -> None:
        if self.is_terminal:
            raise InvariantViolationError(
                f"Order {self.id} is already {self.status.value}, "
                f"cannot move to {target.value}"
            )
        self.status = target


class Transaction(Entity):
    """Credit movement for an order.  Written once, never updated."""

    amount: float = Field(gt=0)
    customer_id: str
    order_id: str
    kind: TransactionKind
