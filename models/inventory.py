"""
Stock level and stock movement schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import Field

from models.base import BaseSchema


class MovementType(str, Enum):
    """Direction of a stock movement."""
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"


class InitialStockPayload(BaseSchema):
    """Opening stock for one (sku, warehouse, location) slot."""

    kind: Literal["initial_stock"] = "initial_stock"

    sku: str
    warehouse: str
    location: str
    on_hand: int = Field(..., ge=0)
    reserved: int = Field(0, ge=0)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.sku, self.warehouse, self.location)


class MovementPayload(BaseSchema):
    """
    One inbound/outbound stock event.

    occurred_at is None when the upload left it blank; it is stamped
    when the movement is appended.
    """

    kind: Literal["movements"] = "movements"

    sku: str
    warehouse: str
    location: str
    partner: str
    type: MovementType
    quantity: int
    reference: Optional[str] = None
    occurred_at: Optional[datetime] = None
