"""The three saga steps.

Each handler is bound to one unit of work and commits it exactly once.
Steps never call each other; the credit step and the outcome step are
coupled only through the ``ReservationOutcome`` event.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from saga_outbox_core.primitives.id_generator import UUID4Generator

from .domain import Order, OrderStatus, Transaction, TransactionKind
from .events import OrderPlaced, ReservationOutcome

if TYPE_CHECKING:
    from saga_outbox_core.outbox.writer import IntegrationEventOutbox
    from saga_outbox_core.primitives.id_generator import IIDGenerator
    from saga_outbox_core.repository import Repository
    from saga_outbox_core.unit_of_work import UnitOfWork

    from .commands import CreateOrder, HandleReservationOutcome, ReserveCredit
    from .credit import ICreditDecisionService

logger = logging.getLogger("saga_orders.handlers")


class CreateOrderHandler:
    """Stores a PENDING order and announces it with ``OrderPlaced``."""

    def __init__(
        self,
        uow: UnitOfWork,
        orders: Repository[Order],
        outbox: IntegrationEventOutbox,
        *,
        id_generator: IIDGenerator | None = None,
    ) -> None:
        self._uow = uow
        self._orders = orders
        self._outbox = outbox
        self._ids = id_generator or UUID4Generator()

    async def handle(self, command: CreateOrder) -> Order:
        order = Order(
            id=self._ids.next_id(),
            amount=command.amount,
            customer_id=command.customer_id,
            status=OrderStatus.PENDING,
        )
        self._orders.add(order)
        self._outbox.add(
            OrderPlaced(
                amount=order.amount,
                order_id=order.id,
                customer_id=order.customer_id,
            )
        )
        await self._uow.commit()
        logger.info("Order created %s", order.model_dump_json())
        return order


class ReserveCreditHandler:
    """Asks the credit service, records the debit if granted, always reports back."""

    def __init__(
        self,
        uow: UnitOfWork,
        transactions: Repository[Transaction],
        outbox: IntegrationEventOutbox,
        credit: ICreditDecisionService,
        *,
        id_generator: IIDGenerator | None = None,
    ) -> None:
        self._uow = uow
        self._transactions = transactions
        self._outbox = outbox
        self._credit = credit
        self._ids = id_generator or UUID4Generator()

    async def handle(self, command: ReserveCredit) -> bool:
        is_credit_reserved = await self._credit.reserve(
            command.customer_id, command.amount
        )

        if is_credit_reserved:
            self._transactions.add(
                Transaction(
                    id=self._ids.next_id(),
                    amount=command.amount,
                    customer_id=command.customer_id,
                    order_id=command.order_id,
                    kind=TransactionKind.OUTCOME,
                )
            )
            logger.info(
                "Transaction created; reserved credit %s for order %s",
                command.amount,
                command.order_id,
            )
        else:
            logger.warning(
                "Customer %s doesn't have enough credit; required %s",
                command.customer_id,
                command.amount,
            )

        self._outbox.add(
            ReservationOutcome(
                is_credit_reserved=is_credit_reserved,
                order_id=command.order_id,
            )
        )
        await self._uow.commit()
        return is_credit_reserved


class HandleReservationOutcomeHandler:
    """
    Moves the order to its terminal state.

    * Unknown order: logged, nothing written, returns ``None``.
    * Order already in the requested state (redelivered event): logged,
      nothing written, returns the order as stored.
    * Order in the *other* terminal state: ``InvariantViolationError``.
    """

    def __init__(self, uow: UnitOfWork, orders: Repository[Order]) -> None:
        self._uow = uow
        self._orders = orders

    async def handle(self, command: HandleReservationOutcome) -> Order | None:
        logger.info("Reading info for order %s", command.order_id)
        order = await self._orders.get(command.order_id)
        if order is None:
            logger.warning(
                "Order %s not found; reservation outcome ignored", command.order_id
            )
            return None

        target = (
            OrderStatus.CREATED if command.is_credit_reserved else OrderStatus.REJECTED
        )
        if order.status is target:
            logger.warning(
                "Order %s is already %s; duplicate outcome ignored",
                order.id,
                target.value,
            )
            return order

        order.resolve(command.is_credit_reserved)
        self._orders.update(order)
        await self._uow.commit()
        logger.info("Order %s is now %s (version %d)", order.id, order.status.value, order.version)
        return order
