from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from mitsuki import Column, Entity, Id


class OrderStatus(str, Enum):
    """
    Pizza order status.

    A label, not a state machine: any status may follow any other.
    Stored in the database as the member name.
    """

    Ordered = "Ordered"
    Baking = "Baking"
    Delivering = "Delivering"
    Delivered = "Delivered"


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the form timestamps are stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_timestamp(value: Optional[datetime]) -> Optional[datetime]:
    """Convert offset-aware datetimes to naive UTC; naive ones pass through."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@Entity(table="pizza_orders")
@dataclass
class PizzaOrder:
    """A single pizza order keyed by a client-supplied integer id."""

    id: int = Id(auto_increment=False)
    status: str = Column(
        nullable=False, max_length=16, default=OrderStatus.Ordered.value
    )
    order_time: Optional[datetime] = None

    @classmethod
    def new(cls, order_id: int) -> "PizzaOrder":
        """Fresh order: status Ordered, order time stamped now."""
        return cls(id=order_id, status=OrderStatus.Ordered.value, order_time=utcnow())

    def to_dict(self) -> Dict[str, Any]:
        """JSON representation used by the HTTP layer."""
        return {
            "id": self.id,
            "status": OrderStatus(self.status).value,
            "orderTime": self.order_time.isoformat() if self.order_time else None,
        }
