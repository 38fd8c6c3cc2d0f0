"""
Column schemas for each CSV upload type.

Column names are matched exactly (after trimming) and in any order.
Unknown extra columns are ignored.
"""

from dataclasses import dataclass, field
from typing import Optional

from models.csv_import import UploadType
from exceptions import UnsupportedUploadTypeError


@dataclass(frozen=True)
class UploadSchema:
    """Required/optional columns plus the sample row used in templates."""
    upload_type: UploadType
    required: tuple[str, ...]
    optional: tuple[str, ...] = ()
    template_columns: tuple[str, ...] = ()
    sample_row: dict[str, str] = field(default_factory=dict)

    @property
    def columns(self) -> tuple[str, ...]:
        """All known columns, in template order."""
        return self.template_columns or (self.required + self.optional)


SCHEMAS: dict[UploadType, UploadSchema] = {
    UploadType.PRODUCTS: UploadSchema(
        upload_type=UploadType.PRODUCTS,
        required=("sku", "name", "category", "abcGrade", "xyzGrade", "dailyAvg", "dailyStd"),
        optional=(
            "subCategory", "brand", "unit", "packCase", "bufferRatio",
            "isActive", "onHand", "reserved", "risk", "expiryDays",
        ),
        template_columns=(
            "sku", "name", "category", "subCategory", "brand", "unit", "packCase",
            "abcGrade", "xyzGrade", "bufferRatio", "dailyAvg", "dailyStd",
            "isActive", "onHand", "reserved", "risk", "expiryDays",
        ),
        sample_row={
            "sku": "CSV-EXIST-001",
            "name": "CSV 업데이트 상품",
            "category": "간편식품",
            "subCategory": "즉석식",
            "brand": "마켓컬리",
            "unit": "EA",
            "packCase": "4/12",
            "abcGrade": "B",
            "xyzGrade": "Y",
            "bufferRatio": "0.25",
            "dailyAvg": "24",
            "dailyStd": "6",
            "isActive": "true",
            "onHand": "480",
            "reserved": "30",
            "risk": "정상",
            "expiryDays": "90",
        },
    ),
    UploadType.INITIAL_STOCK: UploadSchema(
        upload_type=UploadType.INITIAL_STOCK,
        required=("sku", "warehouse", "location", "onHand"),
        optional=("reserved",),
        sample_row={
            "sku": "CSV-EXIST-001",
            "warehouse": "ICN1",
            "location": "B-01",
            "onHand": "480",
            "reserved": "30",
        },
    ),
    UploadType.MOVEMENTS: UploadSchema(
        upload_type=UploadType.MOVEMENTS,
        required=("sku", "warehouse", "location", "partner", "type", "quantity"),
        optional=("reference", "occurredAt"),
        sample_row={
            "sku": "CSV-EXIST-001",
            "warehouse": "ICN1",
            "location": "B-01",
            "partner": "SUP-0001",
            "type": "INBOUND",
            "quantity": "120",
            "reference": "입고오더-2401",
            "occurredAt": "",  # filled with today's date when the template is built
        },
    ),
}


def resolve_upload_type(value: Optional[str]) -> UploadType:
    """
    Turn the `type` query parameter into an UploadType.

    Raises:
        UnsupportedUploadTypeError: If value is missing or unknown
    """
    valid = [t.value for t in UploadType]
    if not value or value.strip() not in valid:
        raise UnsupportedUploadTypeError(value, valid)
    return UploadType(value.strip())


def get_schema(upload_type: UploadType) -> UploadSchema:
    return SCHEMAS[upload_type]


def required_columns(upload_type: UploadType) -> list[str]:
    return list(SCHEMAS[upload_type].required)


def template_columns(upload_type: UploadType) -> list[str]:
    return list(SCHEMAS[upload_type].columns)


def validate_headers(upload_type: UploadType, headers: list[str]) -> list[str]:
    """
    Check the header row against the schema.

    Returns:
        Required columns missing from headers, in schema order (empty if OK)
    """
    present = {header.strip() for header in headers}
    return [column for column in SCHEMAS[upload_type].required if column not in present]
