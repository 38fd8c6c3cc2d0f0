"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    get_supabase_client: Cached Supabase client
    check_connection: Health check function
    WAREHOUSES / PARTNERS: Static reference catalogs
"""

from config.settings import settings, get_settings, Settings
from config.database import (
    get_supabase_client,
    check_connection,
    reset_connection,
    DatabaseConnectionError,
)
from config.catalogs import Warehouse, WAREHOUSES, PARTNERS

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Database
    "get_supabase_client",
    "check_connection",
    "reset_connection",
    "DatabaseConnectionError",

    # Catalogs
    "Warehouse",
    "WAREHOUSES",
    "PARTNERS",
]
