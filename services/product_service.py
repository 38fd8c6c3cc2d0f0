"""
Product service: catalog lookups and upserts used by the CSV importer.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.product import ProductPayload
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class ProductService:
    """
    Product catalog access.

    Products are keyed by SKU.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_existing_skus(self, skus: list[str]) -> set[str]:
        """
        Which of the given SKUs already exist.

        Args:
            skus: SKUs to look up (duplicates and blanks are ignored)

        Returns:
            Set of SKUs present in the catalog
        """
        wanted = sorted({sku for sku in skus if sku})
        if not wanted:
            return set()

        logger.debug("getting_existing_skus", count=len(wanted))

        try:
            result = (
                self.db.table(self.table)
                .select("sku")
                .in_("sku", wanted)
                .execute()
            )
            return {row["sku"] for row in result.data}

        except Exception as e:
            logger.error(
                "get_existing_skus_failed",
                count=len(wanted),
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def upsert(self, payload: ProductPayload) -> dict:
        """
        Create or update a product by SKU.

        Only the fields present in the payload are written, so optional
        columns left blank in an upload keep their stored values.

        Returns:
            The stored row

        Raises:
            DatabaseError: If the upsert fails
        """
        data = payload.model_dump(mode="json", exclude={"kind"}, exclude_none=True)

        try:
            result = (
                self.db.table(self.table)
                .upsert(data, on_conflict="sku")
                .execute()
            )

            logger.debug("product_upserted", sku=payload.sku)
            return result.data[0] if result.data else data

        except Exception as e:
            logger.error(
                "product_upsert_failed",
                sku=payload.sku,
                error=str(e)
            )
            raise DatabaseError("upsert", str(e), {"sku": payload.sku})


_service: Optional[ProductService] = None


def get_product_service() -> ProductService:
    """Get or create the product service singleton."""
    global _service
    if _service is None:
        _service = ProductService()
    return _service
