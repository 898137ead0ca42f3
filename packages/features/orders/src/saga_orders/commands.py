"""Inputs of the three saga steps, validated from camelCase payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SagaCommand(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class CreateOrder(SagaCommand):
    amount: float = Field(gt=0)
    customer_id: str = Field(min_length=1)


class ReserveCredit(SagaCommand):
    amount: float = Field(gt=0)
    order_id: str = Field(min_length=1)
    customer_id: str = Field(min_length=1)


class HandleReservationOutcome(SagaCommand):
    order_id: str = Field(min_length=1)
    is_credit_reserved: bool
