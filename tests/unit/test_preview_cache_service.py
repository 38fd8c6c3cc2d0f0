"""
Unit tests for the preview cache.

Run: pytest tests/unit/test_preview_cache_service.py -v
"""

from datetime import datetime, timedelta, timezone

import pytest

from exceptions import PreviewNotFoundError, PreviewTypeMismatchError
from models.csv_import import PreviewSummary, UploadType
from services.preview_cache_service import PreviewCache
from tests.factories import ParsedRowFactory


class FakeClock:
    """Settable clock for TTL tests."""

    def __init__(self):
        self.now = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def _store(cache: PreviewCache, upload_type: UploadType = UploadType.PRODUCTS):
    rows = [ParsedRowFactory.ok(index=0), ParsedRowFactory.error(index=1)]
    summary = PreviewSummary(total=2, new_count=1, error_count=1)
    return cache.store(upload_type, ["sku"], rows, summary)


class TestPreviewLifecycle:
    """absent -> stored -> consumed -> absent"""

    def test_store_then_consume(self):
        # Arrange
        cache = PreviewCache()
        entry = _store(cache)

        # Act
        consumed = cache.consume(entry.token, UploadType.PRODUCTS)

        # Assert
        assert consumed is entry
        assert len(cache) == 0
        assert cache.get(entry.token) is None

    def test_tokens_are_unique(self):
        cache = PreviewCache()

        tokens = {_store(cache).token for _ in range(5)}

        assert len(tokens) == 5

    def test_error_rows(self):
        entry = _store(PreviewCache())

        assert [row.index for row in entry.error_rows] == [1]

    def test_second_consume_fails(self):
        cache = PreviewCache()
        entry = _store(cache)
        cache.consume(entry.token, UploadType.PRODUCTS)

        with pytest.raises(PreviewNotFoundError):
            cache.consume(entry.token, UploadType.PRODUCTS)

    @pytest.mark.parametrize("token", [None, "", "never-issued"])
    def test_unknown_token(self, token):
        with pytest.raises(PreviewNotFoundError) as exc_info:
            PreviewCache().consume(token, UploadType.PRODUCTS)

        assert exc_info.value.status_code == 400

    def test_type_mismatch_keeps_preview(self):
        """A mismatched commit fails without consuming the token."""
        # Arrange
        cache = PreviewCache()
        entry = _store(cache, UploadType.INITIAL_STOCK)

        # Act & Assert
        with pytest.raises(PreviewTypeMismatchError) as exc_info:
            cache.consume(entry.token, UploadType.MOVEMENTS)

        assert exc_info.value.details["preview_type"] == "initial_stock"
        assert cache.consume(entry.token, UploadType.INITIAL_STOCK) is entry


class TestPreviewEviction:
    """TTL and capacity limits."""

    def test_expired_preview_cannot_be_committed(self):
        # Arrange
        clock = FakeClock()
        cache = PreviewCache(ttl_minutes=30, clock=clock)
        entry = _store(cache)

        # Act
        clock.advance(minutes=31)

        # Assert
        with pytest.raises(PreviewNotFoundError):
            cache.consume(entry.token, UploadType.PRODUCTS)

    def test_preview_within_ttl_is_kept(self):
        clock = FakeClock()
        cache = PreviewCache(ttl_minutes=30, clock=clock)
        entry = _store(cache)

        clock.advance(minutes=29)

        assert cache.get(entry.token) is entry

    def test_oldest_evicted_at_capacity(self):
        # Arrange
        cache = PreviewCache(max_entries=2)
        first = _store(cache)
        second = _store(cache)

        # Act
        third = _store(cache)

        # Assert
        assert len(cache) == 2
        assert cache.get(first.token) is None
        assert cache.get(second.token) is second
        assert cache.get(third.token) is third
