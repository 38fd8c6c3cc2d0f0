"""
Product schemas and the shared product validator.

The validator is used both by product CRUD and by the CSV importer, so its
messages are written for end users and always name the offending column.
"""

import math
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from models.base import BaseSchema
from utils.number_utils import round_half_up


class AbcGrade(str, Enum):
    """Value classification (share of revenue)."""
    A = "A"
    B = "B"
    C = "C"


class XyzGrade(str, Enum):
    """Demand variability classification."""
    X = "X"
    Y = "Y"
    Z = "Z"


# Error types raised by our own validators; their messages already name the column.
_CUSTOM_ERROR_TYPES = {"required", "not_a_number", "negative", "grade", "pack_case"}


def _column(field_name: str) -> str:
    return to_camel(field_name)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


class ProductPayload(BaseSchema):
    """
    Validated product row, ready for upsert.

    Numeric inputs arrive pre-parsed: None means the cell was empty,
    NaN means the cell held text that is not a number.
    """

    kind: Literal["products"] = "products"

    sku: str = Field(..., max_length=64, description="Product SKU (natural key)")
    name: str = Field(..., max_length=200)
    category: str = Field(..., max_length=100)
    sub_category: Optional[str] = None
    brand: Optional[str] = None
    unit: Optional[str] = None
    pack: int = Field(1, ge=1, description="Units per pack")
    case_pack: int = Field(1, ge=1, description="Packs per case")
    abc_grade: AbcGrade
    xyz_grade: XyzGrade
    buffer_ratio: Optional[float] = None
    daily_avg: float
    daily_std: float
    is_active: bool = True
    on_hand: Optional[int] = None
    reserved: Optional[int] = None
    risk: Optional[str] = None
    expiry_days: Optional[int] = None

    @field_validator("sku", "name", "category", mode="before")
    @classmethod
    def required_text(cls, v: Any, info) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            raise PydanticCustomError(
                "required", "{column} is required", {"column": _column(info.field_name)}
            )
        return v

    @field_validator("sub_category", "brand", "unit", "risk", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("abc_grade", "xyz_grade", mode="before")
    @classmethod
    def grade_letter(cls, v: Any, info) -> Any:
        column = _column(info.field_name)
        if v is None or (isinstance(v, str) and not v.strip()):
            raise PydanticCustomError("required", "{column} is required", {"column": column})
        allowed = [g.value for g in (AbcGrade if info.field_name == "abc_grade" else XyzGrade)]
        letter = str(v).strip().upper()
        if letter not in allowed:
            raise PydanticCustomError(
                "grade",
                "{column} must be one of {allowed}",
                {"column": column, "allowed": ", ".join(allowed)},
            )
        return letter

    @field_validator("daily_avg", "daily_std", mode="before")
    @classmethod
    def required_number(cls, v: Any, info) -> Any:
        column = _column(info.field_name)
        if v is None:
            raise PydanticCustomError("required", "{column} is required", {"column": column})
        if _is_nan(v):
            raise PydanticCustomError("not_a_number", "{column} must be a number", {"column": column})
        if v < 0:
            raise PydanticCustomError("negative", "{column} must be zero or greater", {"column": column})
        return v

    @field_validator("on_hand", "reserved", "expiry_days", mode="before")
    @classmethod
    def optional_count(cls, v: Any, info) -> Any:
        if v is None:
            return None
        column = _column(info.field_name)
        if _is_nan(v):
            raise PydanticCustomError("not_a_number", "{column} must be a number", {"column": column})
        if v < 0:
            raise PydanticCustomError("negative", "{column} must be zero or greater", {"column": column})
        return round_half_up(float(v))

    @field_validator("buffer_ratio", mode="before")
    @classmethod
    def lenient_ratio(cls, v: Any) -> Any:
        # Unreadable ratios are dropped, not rejected
        if v is None or _is_nan(v):
            return None
        if v < 0:
            raise PydanticCustomError("negative", "{column} must be zero or greater", {"column": "bufferRatio"})
        return v

    @field_validator("pack", "case_pack", mode="before")
    @classmethod
    def pack_size(cls, v: Any) -> Any:
        if v is None:
            return 1
        if _is_nan(v):
            raise PydanticCustomError("pack_case", "packCase must look like 4/12", {})
        return round_half_up(float(v))

    @field_validator("is_active", mode="before")
    @classmethod
    def default_active(cls, v: Any) -> Any:
        return True if v is None else v


def validate_product_payload(candidate: dict[str, Any]) -> tuple[Optional[ProductPayload], list[str]]:
    """
    Validate a product candidate.

    Returns:
        (payload, []) on success, (None, messages) on failure. Every failing
        field contributes a message, so callers can report them all at once.
    """
    try:
        return ProductPayload.model_validate(candidate), []
    except ValidationError as e:
        messages = []
        for error in e.errors():
            if error["type"] in _CUSTOM_ERROR_TYPES:
                messages.append(error["msg"])
            else:
                column = _column(str(error["loc"][0])) if error["loc"] else "row"
                messages.append(f"{column}: {error['msg']}")
        return None, messages
