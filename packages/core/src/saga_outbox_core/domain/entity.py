"""Entity base class with optimistic-concurrency metadata."""

from __future__ import annotations

from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict, Field

E = TypeVar("E", bound="Entity")


class Entity(BaseModel):
    """Base class for versioned, persisted records.

    ``version`` starts at 1 when the entity is first stored and grows by
    exactly one with every committed update.  The persistence layer owns it:
    :class:`~saga_outbox_core.repository.Repository` resets it on ``add``
    and bumps it on ``update``.

    Subclasses declare which fields an update may write through
    ``updatable_fields``.  An entity kind that declares none is immutable
    once stored.

    Usage::

        class Order(Entity):
            updatable_fields: ClassVar[tuple[str, ...]] = ("status",)

            amount: float
            status: OrderStatus = OrderStatus.PENDING
    """

    model_config = ConfigDict(validate_assignment=True)

    updatable_fields: ClassVar[tuple[str, ...]] = ()

    id: str
    version: int = Field(default=1, ge=1)

    @classmethod
    def is_immutable(cls) -> bool:
        return not cls.updatable_fields

    def to_item(self) -> dict[str, Any]:
        """Plain JSON-compatible mapping as written to the store."""
        return self.model_dump(mode="json")

    def updatable_values(self) -> dict[str, Any]:
        """Current values of the declared updatable fields, JSON-compatible."""
        item = self.to_item()
        return {name: item[name] for name in type(self).updatable_fields}

    @classmethod
    def from_item(cls: type[E], item: dict[str, Any]) -> E:
        return cls.model_validate(item)
