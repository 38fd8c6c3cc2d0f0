"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Generator, Optional

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, data: list = None, count: int = None, error: Optional[Exception] = None):
        self._data = data or []
        self._count = count
        self._error = error
        self._is_single = False

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        if isinstance(data, dict):
            data = [data]
        self._data = [{**item, "id": "test-uuid-123"} for item in data]
        return self

    def upsert(self, data, on_conflict: str = None):
        if isinstance(data, dict):
            data = [data]
        self._data = [
            {**item, "updated_at": datetime.now(timezone.utc).isoformat()}
            for item in data
        ]
        return self

    def eq(self, column, value):
        self._data = [row for row in self._data if row.get(column) == value]
        return self

    def in_(self, column, values):
        wanted = set(values)
        self._data = [row for row in self._data if row.get(column) in wanted]
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        if self._is_single:
            data = self._data[0] if self._data else None
            return MockSupabaseResponse(
                data=data,
                count=1 if data else 0
            )
        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, name: str, client: "MockSupabaseClient", data: list = None, count: int = None):
        self._name = name
        self._client = client
        self._data = data or []
        self._count = count

    def _query(self) -> MockSupabaseQuery:
        return MockSupabaseQuery(self._data.copy(), self._count, self._client.errors.get(self._name))

    def select(self, *args, **kwargs):
        return self._query()

    def insert(self, data):
        self._client.calls.append((self._name, "insert", data, None))
        return self._query().insert(data)

    def upsert(self, data, on_conflict: str = None):
        self._client.calls.append((self._name, "upsert", data, on_conflict))
        return self._query().upsert(data, on_conflict=on_conflict)


class MockSupabaseClient:
    """
    Mock Supabase client.

    Writes are recorded in `calls` as (table, operation, data, on_conflict).
    """

    def __init__(self):
        self._tables = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple] = []

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "count": count}

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise."""
        self.errors[table_name] = error

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None})
        return MockSupabaseTable(name, self, config["data"], config["count"])


# ===================
# IN-MEMORY STORES
# ===================

class FakeProductService:
    """Product store double for import tests."""

    def __init__(self, skus=()):
        self.products: dict[str, object] = {sku: None for sku in skus}
        self.upserted: list = []
        self.fail_skus: set[str] = set()

    def get_existing_skus(self, skus):
        return {sku for sku in skus if sku in self.products}

    def upsert(self, payload):
        if payload.sku in self.fail_skus:
            raise RuntimeError(f"product {payload.sku} was deleted")
        self.products[payload.sku] = payload
        self.upserted.append(payload)
        return payload


class FakeStockService:
    """Stock store double keyed by (sku, warehouse, location)."""

    def __init__(self, keys=()):
        self.levels: dict[tuple, object] = {key: None for key in keys}
        self.upserted: list = []

    def get_existing_keys(self, skus):
        wanted = set(skus)
        return {key for key in self.levels if key[0] in wanted}

    def upsert(self, payload):
        self.levels[payload.key] = payload
        self.upserted.append(payload)
        return payload


class FakeMovementService:
    """Append-only movement log double."""

    def __init__(self):
        self.movements: list = []

    def append(self, payload):
        self.movements.append(payload)
        return payload


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"sku": "TEST", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.product_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.stock_service.get_supabase_client", return_value=mock_supabase):
                with patch("services.movement_service.get_supabase_client", return_value=mock_supabase):
                    yield mock_supabase


@pytest.fixture
def product_store() -> FakeProductService:
    """Catalog with one existing product."""
    return FakeProductService(skus=["CSV-EXIST-001"])


@pytest.fixture
def stock_store() -> FakeStockService:
    """One stocked slot for the existing product."""
    return FakeStockService(keys=[("CSV-EXIST-001", "ICN1", "B-01")])


@pytest.fixture
def movement_store() -> FakeMovementService:
    return FakeMovementService()


@pytest.fixture
def row_applier(product_store, stock_store, movement_store):
    from services.import_job_service import RowApplier

    return RowApplier(product_store, stock_store, movement_store)


@pytest.fixture
def job_queue(row_applier):
    """Job queue without start delay or row throttle."""
    from services.import_job_service import ImportJobQueue

    return ImportJobQueue(row_applier, start_delay_seconds=0, row_interval_seconds=0)


@pytest.fixture
def csv_import_service(product_store, stock_store, job_queue):
    """Import service wired to in-memory stores and a fresh preview cache."""
    from services.csv_import_service import CsvImportService
    from services.preview_cache_service import PreviewCache

    return CsvImportService(
        product_service=product_store,
        stock_service=stock_store,
        preview_cache=PreviewCache(),
        job_queue=job_queue,
    )


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client(csv_import_service):
    """
    FastAPI test client for the CSV routes, backed by csv_import_service.

    The client is entered as a context manager so one event loop runs for
    the whole test and the import worker keeps processing between requests.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/csv/template?type=products")
            assert response.status_code == 200
    """
    from contextlib import asynccontextmanager

    from fastapi import FastAPI
    from fastapi.testclient import TestClient

    from routes.csv_import import router
    from services.csv_import_service import get_csv_import_service

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await csv_import_service.start()
        yield
        await csv_import_service.stop()

    app = FastAPI(lifespan=lifespan)
    app.include_router(router)
    app.dependency_overrides[get_csv_import_service] = lambda: csv_import_service

    with TestClient(app) as client:
        yield client
