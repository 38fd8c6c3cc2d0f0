"""
Stock movement log. Movements are append-only.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client
from models.inventory import MovementPayload
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class MovementService:

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "stock_movements"

    def append(self, payload: MovementPayload) -> dict:
        """
        Record one movement.

        A movement without occurred_at is stamped with the current time.

        Raises:
            DatabaseError: If the insert fails
        """
        if payload.occurred_at is None:
            payload = payload.model_copy(update={"occurred_at": datetime.now(timezone.utc)})

        data = payload.model_dump(mode="json", exclude={"kind"})

        try:
            result = self.db.table(self.table).insert(data).execute()

            logger.debug(
                "movement_appended",
                sku=payload.sku,
                type=payload.type.value,
                quantity=payload.quantity,
            )
            return result.data[0] if result.data else data

        except Exception as e:
            logger.error(
                "movement_append_failed",
                sku=payload.sku,
                error=str(e)
            )
            raise DatabaseError("insert", str(e), {"sku": payload.sku})


_service: Optional[MovementService] = None


def get_movement_service() -> MovementService:
    """Get or create the movement service singleton."""
    global _service
    if _service is None:
        _service = MovementService()
    return _service
