"""
Row analysis for CSV uploads.

Turns each data row into a ParsedRow: a typed payload classified as
create/update, or an error carrying every validation message for the row.

Analysis only reads reference data (a snapshot taken when the preview is
built); nothing here writes to a store.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Mapping, Optional

import pandas as pd
import structlog

from config.catalogs import PARTNERS, WAREHOUSES, Warehouse
from models.csv_import import ParsedRow, PreviewSummary, RowAction, UploadType
from models.inventory import InitialStockPayload, MovementPayload, MovementType
from models.product import validate_product_payload
from parsers.csv_parser import rows_to_records
from utils.number_utils import round_half_up

logger = structlog.get_logger(__name__)

_TRUE_WORDS = {"true", "1", "y", "yes", "활성", "enable", "enabled"}
_FALSE_WORDS = {"false", "0", "n", "no", "비활성", "disable", "disabled"}

_MOVEMENT_TYPES = {
    "IN": MovementType.INBOUND,
    "INBOUND": MovementType.INBOUND,
    "입고": MovementType.INBOUND,
    "OUT": MovementType.OUTBOUND,
    "OUTBOUND": MovementType.OUTBOUND,
    "출고": MovementType.OUTBOUND,
}

_TIMESTAMP_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M",
)

_PACK_CASE = re.compile(r"^(\d+)\s*/\s*(\d+)$")
# Relative words such as "now" or "today" are not dates
_WORD_ONLY = re.compile(r"^[^\W\d_]+$")

RowOutcome = tuple[RowAction, Optional[object], list[str]]


@dataclass(frozen=True)
class ReferenceSnapshot:
    """
    Read-only view of the catalogs a preview is checked against.

    product_skus and stock_keys only need to cover the SKUs in the upload.
    """
    product_skus: frozenset[str] = frozenset()
    stock_keys: frozenset[tuple[str, str, str]] = frozenset()
    warehouses: Mapping[str, Warehouse] = field(default_factory=lambda: dict(WAREHOUSES))
    partners: frozenset[str] = PARTNERS

    def has_product(self, sku: str) -> bool:
        return sku in self.product_skus

    def has_stock(self, sku: str, warehouse: str, location: str) -> bool:
        return (sku, warehouse, location) in self.stock_keys


# ===================
# CELL PARSING
# ===================

def parse_number(value: Optional[str]) -> Optional[float]:
    """
    Parse a numeric cell.

    Returns:
        None for an empty cell, NaN for text that is not a finite number,
        otherwise the value. Thousands separators are accepted ("1,200").
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    text = text.replace(",", "")
    if "_" in text:
        return math.nan
    try:
        number = float(text)
    except ValueError:
        return math.nan
    return number if math.isfinite(number) else math.nan


def parse_boolean(value: Optional[str]) -> Optional[bool]:
    """Parse yes/no style cells (English and Korean). Unknown text is None."""
    if not value:
        return None
    word = value.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return None


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a date or date-time cell into an aware UTC datetime.

    Tries ISO 8601 first, then a few common layouts, then pandas.
    Naive values are taken as UTC.

    Returns:
        datetime, or None if the text is empty or not a date
    """
    text = (value or "").strip()
    if not text:
        return None

    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _TIMESTAMP_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        if _WORD_ONLY.match(text):
            return None
        try:
            stamp = pd.to_datetime(text)
        except (ValueError, TypeError, OverflowError):
            return None
        if pd.isna(stamp):
            return None
        parsed = stamp.to_pydatetime()

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        return None


def _text(raw: Mapping[str, str], column: str) -> str:
    return (raw.get(column) or "").strip()


def _parse_pack_case(value: str) -> tuple[Optional[float], Optional[float]]:
    """'4/12' -> (4, 12); '6' -> (6, None); blank -> (None, None); junk -> (NaN, None)."""
    if not value:
        return None, None
    match = _PACK_CASE.match(value)
    if match:
        return float(match.group(1)), float(match.group(2))
    single = parse_number(value)
    if single is not None and not math.isnan(single):
        return single, None
    return math.nan, None


# ===================
# PER-TYPE ROW RULES
# ===================

def _check_location(
    raw: Mapping[str, str],
    snapshot: ReferenceSnapshot,
    errors: list[str],
) -> tuple[str, str]:
    """Validate warehouse + location cells shared by stock and movement rows."""
    warehouse = _text(raw, "warehouse").upper()
    location = _text(raw, "location").upper()

    known = snapshot.warehouses.get(warehouse) if warehouse else None
    if not warehouse:
        errors.append("warehouse is required")
    elif known is None:
        errors.append(f"warehouse {warehouse} is not registered")

    if not location:
        errors.append("location is required")
    elif known is not None and not known.has_location(location):
        errors.append(f"location {location} does not exist in warehouse {warehouse}")

    return warehouse, location


def _check_sku(raw: Mapping[str, str], snapshot: ReferenceSnapshot, errors: list[str]) -> str:
    sku = _text(raw, "sku")
    if not sku:
        errors.append("sku is required")
    elif not snapshot.has_product(sku):
        errors.append(f"sku {sku} does not exist")
    return sku


def _product_row(raw: Mapping[str, str], snapshot: ReferenceSnapshot) -> RowOutcome:
    pack, case_pack = _parse_pack_case(_text(raw, "packCase"))
    candidate = {
        "sku": _text(raw, "sku"),
        "name": _text(raw, "name"),
        "category": _text(raw, "category"),
        "sub_category": _text(raw, "subCategory"),
        "brand": _text(raw, "brand"),
        "unit": _text(raw, "unit"),
        "pack": pack,
        "case_pack": case_pack,
        "abc_grade": _text(raw, "abcGrade"),
        "xyz_grade": _text(raw, "xyzGrade"),
        "buffer_ratio": parse_number(raw.get("bufferRatio")),
        "daily_avg": parse_number(raw.get("dailyAvg")),
        "daily_std": parse_number(raw.get("dailyStd")),
        "is_active": parse_boolean(raw.get("isActive")),
        "on_hand": parse_number(raw.get("onHand")),
        "reserved": parse_number(raw.get("reserved")),
        "risk": _text(raw, "risk"),
        "expiry_days": parse_number(raw.get("expiryDays")),
    }

    payload, messages = validate_product_payload(candidate)
    if payload is None:
        return RowAction.ERROR, None, messages

    action = RowAction.UPDATE if snapshot.has_product(payload.sku) else RowAction.CREATE
    return action, payload, []


def _initial_stock_row(raw: Mapping[str, str], snapshot: ReferenceSnapshot) -> RowOutcome:
    errors: list[str] = []
    sku = _check_sku(raw, snapshot, errors)
    warehouse, location = _check_location(raw, snapshot, errors)

    on_hand = parse_number(raw.get("onHand"))
    reserved = parse_number(raw.get("reserved"))

    if on_hand is None:
        errors.append("onHand is required")
    elif math.isnan(on_hand):
        errors.append("onHand must be a number")
    if reserved is not None and math.isnan(reserved):
        errors.append("reserved must be a number")

    if errors:
        return RowAction.ERROR, None, errors

    payload = InitialStockPayload(
        sku=sku,
        warehouse=warehouse,
        location=location,
        on_hand=max(round_half_up(on_hand), 0),
        reserved=max(round_half_up(reserved or 0), 0),
    )
    action = RowAction.UPDATE if snapshot.has_stock(*payload.key) else RowAction.CREATE
    return action, payload, []


def _movement_row(raw: Mapping[str, str], snapshot: ReferenceSnapshot) -> RowOutcome:
    errors: list[str] = []
    sku = _check_sku(raw, snapshot, errors)
    warehouse, location = _check_location(raw, snapshot, errors)

    partner = _text(raw, "partner").upper()
    if not partner:
        errors.append("partner is required")
    elif partner not in snapshot.partners:
        errors.append(f"partner {partner} is not registered")

    quantity_value = parse_number(raw.get("quantity"))
    quantity = 0
    if quantity_value is None:
        errors.append("quantity is required")
    elif math.isnan(quantity_value):
        errors.append("quantity must be a number")
    else:
        quantity = round_half_up(quantity_value)
        if quantity == 0:
            errors.append("quantity cannot be zero")

    type_text = _text(raw, "type").upper()
    movement_type = _MOVEMENT_TYPES.get(type_text)
    if not type_text:
        errors.append("type is required")
    elif movement_type is None:
        errors.append("type must be INBOUND or OUTBOUND")

    occurred_text = _text(raw, "occurredAt")
    occurred_at = parse_timestamp(occurred_text)
    if occurred_text and occurred_at is None:
        errors.append("occurredAt is not a valid date")

    if errors:
        return RowAction.ERROR, None, errors

    payload = MovementPayload(
        sku=sku,
        warehouse=warehouse,
        location=location,
        partner=partner,
        type=movement_type,
        quantity=quantity,
        reference=_text(raw, "reference") or None,
        occurred_at=occurred_at,
    )
    # Movements are append-only events
    return RowAction.CREATE, payload, []


_ROW_RULES: dict[UploadType, Callable[[Mapping[str, str], ReferenceSnapshot], RowOutcome]] = {
    UploadType.PRODUCTS: _product_row,
    UploadType.INITIAL_STOCK: _initial_stock_row,
    UploadType.MOVEMENTS: _movement_row,
}


# ===================
# PUBLIC API
# ===================

def analyze_row(
    upload_type: UploadType,
    columns: list[str],
    cells: Iterable[str],
    index: int,
    snapshot: ReferenceSnapshot,
) -> ParsedRow:
    """
    Validate and classify one data row.

    Args:
        upload_type: Upload type (selects the rules)
        columns: Header row
        cells: Data row cells, in header order
        index: 0-based position among data rows
        snapshot: Reference data to check against

    Returns:
        ParsedRow (line_number = index + 2, the header being line 1)
    """
    raw = rows_to_records(columns, cells)
    action, payload, messages = _ROW_RULES[upload_type](raw, snapshot)
    return ParsedRow(
        index=index,
        line_number=index + 2,
        action=action,
        raw=raw,
        messages=messages,
        payload=payload,
    )


def analyze_rows(
    upload_type: UploadType,
    columns: list[str],
    data_rows: list[list[str]],
    snapshot: ReferenceSnapshot,
) -> list[ParsedRow]:
    """Analyze every data row; one bad row never stops the others."""
    rows = [
        analyze_row(upload_type, columns, cells, index, snapshot)
        for index, cells in enumerate(data_rows)
    ]
    logger.debug(
        "csv_rows_analyzed",
        upload_type=upload_type.value,
        rows=len(rows),
        errors=sum(1 for row in rows if row.is_error),
    )
    return rows


def summarize_rows(rows: list[ParsedRow]) -> PreviewSummary:
    """Count rows per action."""
    summary = PreviewSummary(total=len(rows))
    for row in rows:
        if row.action == RowAction.ERROR:
            summary.error_count += 1
        elif row.action == RowAction.CREATE:
            summary.new_count += 1
        else:
            summary.update_count += 1
    return summary
