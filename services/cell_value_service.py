"""
Helpers for raw spreadsheet cell values.

A cell is one of: number (int/float), text, boolean, date/datetime, or None
for a blank cell. Every numeric coercion in the project goes through
``to_number`` so the classifier, the stats and the chart builder agree on
what counts as a number.
"""
import math
import re
from datetime import date, datetime
from typing import Any, Optional, Union

CellValue = Union[int, float, str, bool, date, datetime, None]

_NUMERIC_NOISE = re.compile(r"[,$%\s]")

_DATE_PATTERNS = [
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),
    re.compile(r"^\d{2}/\d{2}/\d{4}$"),
    re.compile(r"^\d{2}-\d{2}-\d{4}$"),
    re.compile(r"^\d{1,2}/\d{1,2}/\d{2,4}$"),
    re.compile(r"^(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)", re.IGNORECASE),
]


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def to_number(value: Any) -> Optional[float]:
    """
    Best-effort numeric coercion.
    Native numbers pass through; strings are stripped of , $ % and
    whitespace before parsing. Booleans and non-finite values are not numbers.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
        return num if math.isfinite(num) else None
    if isinstance(value, str):
        cleaned = _NUMERIC_NOISE.sub("", value)
        # float() accepts "1_000", spreadsheets do not
        if not cleaned or "_" in cleaned:
            return None
        try:
            num = float(cleaned)
        except ValueError:
            return None
        return num if math.isfinite(num) else None
    return None


def is_boolean_like(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    return isinstance(value, str) and value.strip().lower() in ("true", "false")


def is_date_like(value: Any) -> bool:
    if isinstance(value, (date, datetime)):
        return True
    if isinstance(value, str):
        text = value.strip()
        return any(p.search(text) for p in _DATE_PATTERNS)
    return False


def as_python_number(num: float) -> Union[int, float]:
    # 3.0 -> 3 so samples and labels read like the sheet does
    return int(num) if num.is_integer() else num


def parse_value(value: Any) -> CellValue:
    """Parse a cell for display in a sample row: blanks become None, numbers become numbers."""
    if is_blank(value):
        return None
    num = to_number(value)
    if num is not None:
        return as_python_number(num)
    return value


def to_label(value: Any) -> str:
    num = to_number(value) if not isinstance(value, str) else None
    if num is not None:
        return str(as_python_number(num))
    if isinstance(value, datetime) and value.time() == datetime.min.time():
        return value.date().isoformat()
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)
