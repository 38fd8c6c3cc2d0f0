"""
Database connection management.

Provides the Supabase client singleton used by the product, stock and
movement services.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class DatabaseConnectionError(Exception):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Uses lru_cache to ensure only one client is created.
    Call get_supabase_client.cache_clear() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        DatabaseConnectionError: If the client cannot be created
    """
    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )

        client = create_client(
            settings.supabase_url,
            settings.supabase_key
        )

        logger.info("supabase_connected", status="success")

        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise DatabaseConnectionError(f"Failed to connect to Supabase: {e}") from e


# ===================
# HELPER FUNCTIONS
# ===================

def check_connection() -> dict:
    """
    Check database connection health.

    Returns:
        dict: Connection status with details
    """
    try:
        client = get_supabase_client()

        products = client.table("products").select("sku", count="exact").execute()
        stock = client.table("stock_levels").select("sku", count="exact").execute()

        return {
            "status": "healthy",
            "products_count": products.count,
            "stock_levels_count": stock.count
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }


def reset_connection():
    """
    Reset the cached database connection.

    Call this if connection becomes stale or after config changes.
    """
    get_supabase_client.cache_clear()
    logger.info("database_connection_reset")
