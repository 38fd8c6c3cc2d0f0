"""
Unit tests for CsvImportService (preview and commit).

Run: pytest tests/unit/test_csv_import_service.py -v
"""

import pytest

from exceptions import (
    CsvEmptyContentError,
    CsvMissingHeadersError,
    CsvParseError,
    ImportJobNotFoundError,
    PreviewNotFoundError,
    PreviewTypeMismatchError,
)
from models.csv_import import JobStatus, UploadType
from tests.factories import CsvFactory


class TestPreview:
    """Tests for CsvImportService.preview()"""

    def test_new_product_preview(self, csv_import_service):
        # Arrange
        content = CsvFactory.products([["NEW-1", "Widget", "Snacks", "A", "X", "10", "2"]])

        # Act
        result = csv_import_service.preview(UploadType.PRODUCTS, content)

        # Assert
        assert result.type == UploadType.PRODUCTS
        assert result.columns == ["sku", "name", "category", "abcGrade", "xyzGrade", "dailyAvg", "dailyStd"]
        assert result.summary.model_dump() == {
            "total": 1, "new_count": 1, "update_count": 0, "error_count": 0,
        }
        assert result.errors == []
        assert len(csv_import_service.preview_cache) == 1

    def test_existing_product_is_update(self, csv_import_service):
        content = CsvFactory.products([["CSV-EXIST-001", "Widget", "Snacks", "A", "X", "10", "2"]])

        result = csv_import_service.preview(UploadType.PRODUCTS, content)

        assert result.summary.update_count == 1

    def test_blank_row_is_error(self, csv_import_service):
        content = CsvFactory.products([["NEW-1", "", "", "", "", "", ""]])

        result = csv_import_service.preview(UploadType.PRODUCTS, content)

        assert result.summary.error_count == 1
        assert result.errors[0].row_number == 2
        assert "name is required" in result.errors[0].messages

    def test_error_sample_is_capped(self, csv_import_service):
        # Arrange
        csv_import_service.error_sample = 3
        content = CsvFactory.products([["", "x", "", "", "", "", ""]] * 5)

        # Act
        result = csv_import_service.preview(UploadType.PRODUCTS, content)

        # Assert
        assert result.summary.error_count == 5
        assert [error.row_number for error in result.errors] == [2, 3, 4]

    def test_header_only_upload(self, csv_import_service):
        result = csv_import_service.preview(UploadType.PRODUCTS, CsvFactory.products([]))

        assert result.summary.total == 0

    @pytest.mark.parametrize("content", [None, "", "   \n  "])
    def test_empty_content(self, csv_import_service, content):
        with pytest.raises(CsvEmptyContentError):
            csv_import_service.preview(UploadType.PRODUCTS, content)

    def test_no_rows_found(self, csv_import_service):
        """Only quoted empty cells on otherwise blank lines."""
        with pytest.raises(CsvParseError):
            csv_import_service.preview(UploadType.PRODUCTS, '""\n "" \n')

    def test_delimiter_only_header_is_missing_columns(self, csv_import_service):
        with pytest.raises(CsvMissingHeadersError):
            csv_import_service.preview(UploadType.PRODUCTS, ",,,\n,")

    def test_missing_headers(self, csv_import_service):
        with pytest.raises(CsvMissingHeadersError) as exc_info:
            csv_import_service.preview(UploadType.INITIAL_STOCK, "sku,warehouse\nA,ICN1")

        assert exc_info.value.details["columns"] == ["location", "onHand"]
        assert exc_info.value.details["missing"] == ["location is required", "onHand is required"]
        assert len(csv_import_service.preview_cache) == 0

    def test_initial_stock_unregistered_warehouse(self, csv_import_service):
        content = "sku,warehouse,location,onHand\nCSV-EXIST-001,NOPE,A-01,10"

        result = csv_import_service.preview(UploadType.INITIAL_STOCK, content)

        assert result.summary.error_count == 1
        assert result.errors[0].messages == ["warehouse NOPE is not registered"]

    def test_initial_stock_uses_stocked_slots(self, csv_import_service):
        content = "sku,warehouse,location,onHand\nCSV-EXIST-001,ICN1,B-01,10\nCSV-EXIST-001,ICN1,A-01,5"

        result = csv_import_service.preview(UploadType.INITIAL_STOCK, content)

        assert result.summary.update_count == 1
        assert result.summary.new_count == 1


class TestCommit:
    """Tests for CsvImportService.commit()"""

    @pytest.mark.asyncio
    async def test_commit_queues_job(self, csv_import_service, product_store):
        # Arrange
        content = CsvFactory.products([
            ["NEW-1", "Widget", "Snacks", "A", "X", "10", "2"],
            ["", "", "", "", "", "", ""],
        ])
        preview = csv_import_service.preview(UploadType.PRODUCTS, content)

        # Act
        job = csv_import_service.commit(UploadType.PRODUCTS, preview.preview_id)
        await csv_import_service.job_queue.join()

        # Assert
        assert csv_import_service.get_job(job.id) is job
        assert job.status == JobStatus.COMPLETED
        assert job.total == 2
        assert len(job.errors) == 1
        assert [p.sku for p in product_store.upserted] == ["NEW-1"]
        await csv_import_service.stop()

    @pytest.mark.asyncio
    async def test_token_is_single_use(self, csv_import_service, product_store):
        content = CsvFactory.products([["NEW-1", "Widget", "Snacks", "A", "X", "10", "2"]])
        preview = csv_import_service.preview(UploadType.PRODUCTS, content)
        csv_import_service.commit(UploadType.PRODUCTS, preview.preview_id)
        await csv_import_service.job_queue.join()

        with pytest.raises(PreviewNotFoundError):
            csv_import_service.commit(UploadType.PRODUCTS, preview.preview_id)

        assert len(product_store.upserted) == 1
        await csv_import_service.stop()

    def test_unknown_token_writes_nothing(self, csv_import_service, product_store):
        with pytest.raises(PreviewNotFoundError):
            csv_import_service.commit(UploadType.PRODUCTS, "never-issued")

        assert product_store.upserted == []
        assert len(csv_import_service.job_queue.store) == 0

    def test_type_mismatch(self, csv_import_service):
        content = CsvFactory.products([["NEW-1", "Widget", "Snacks", "A", "X", "10", "2"]])
        preview = csv_import_service.preview(UploadType.PRODUCTS, content)

        with pytest.raises(PreviewTypeMismatchError):
            csv_import_service.commit(UploadType.MOVEMENTS, preview.preview_id)

        assert len(csv_import_service.preview_cache) == 1


class TestJobsAndDownloads:
    """Tests for get_job(), errors_csv() and template()"""

    def test_unknown_job(self, csv_import_service):
        with pytest.raises(ImportJobNotFoundError) as exc_info:
            csv_import_service.get_job("missing")

        assert exc_info.value.status_code == 404

    def test_template(self, csv_import_service):
        text = csv_import_service.template(UploadType.INITIAL_STOCK)

        assert text.startswith("sku,warehouse,location,onHand,reserved\n")
