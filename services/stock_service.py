"""
Stock level service.

One row per (sku, warehouse, location) slot in the stock_levels table.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.inventory import InitialStockPayload
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

StockKey = tuple[str, str, str]


class StockService:
    """Stock level reads and upserts."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "stock_levels"

    def get_existing_keys(self, skus: list[str]) -> set[StockKey]:
        """
        Stocked slots for the given SKUs.

        Args:
            skus: SKUs to look up

        Returns:
            Set of (sku, warehouse, location) keys that already have a row
        """
        wanted = sorted({sku for sku in skus if sku})
        if not wanted:
            return set()

        try:
            result = (
                self.db.table(self.table)
                .select("sku, warehouse, location")
                .in_("sku", wanted)
                .execute()
            )
            return {(row["sku"], row["warehouse"], row["location"]) for row in result.data}

        except Exception as e:
            logger.error(
                "get_stock_keys_failed",
                count=len(wanted),
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def upsert(self, payload: InitialStockPayload) -> dict:
        """
        Set on-hand and reserved quantities for one slot.

        Raises:
            DatabaseError: If the upsert fails
        """
        data = payload.model_dump(mode="json", exclude={"kind"})

        try:
            result = (
                self.db.table(self.table)
                .upsert(data, on_conflict="sku,warehouse,location")
                .execute()
            )

            logger.debug(
                "stock_upserted",
                sku=payload.sku,
                warehouse=payload.warehouse,
                location=payload.location,
                on_hand=payload.on_hand,
            )
            return result.data[0] if result.data else data

        except Exception as e:
            logger.error(
                "stock_upsert_failed",
                sku=payload.sku,
                warehouse=payload.warehouse,
                location=payload.location,
                error=str(e)
            )
            raise DatabaseError("upsert", str(e), {"sku": payload.sku})


_service: Optional[StockService] = None


def get_stock_service() -> StockService:
    """Get or create the stock service singleton."""
    global _service
    if _service is None:
        _service = StockService()
    return _service
