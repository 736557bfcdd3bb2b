import re
from typing import Any, Dict, List, Optional, Sequence

from services.cell_value_service import is_blank, to_label

DESCRIPTION_SHEET_PATTERNS = [
    re.compile(r"^description$", re.IGNORECASE),
    re.compile(r"^codebook$", re.IGNORECASE),
    re.compile(r"^codes$", re.IGNORECASE),
    re.compile(r"^legend$", re.IGNORECASE),
    re.compile(r"^metadata$", re.IGNORECASE),
    re.compile(r"^info$", re.IGNORECASE),
    re.compile(r"^variables$", re.IGNORECASE),
]

_COLUMN_LETTER_CELL = re.compile(r"^column\s*[a-z]$", re.IGNORECASE)


def is_description_sheet(sheet_name: str) -> bool:
    return any(p.match(sheet_name) for p in DESCRIPTION_SHEET_PATTERNS)


def _cell_text(row: Sequence[Any], idx: int) -> str:
    if idx >= len(row) or is_blank(row[idx]):
        return ""
    return to_label(row[idx]).strip()


def extract_codebook(grid: List[List[Any]]) -> Optional[Dict[str, str]]:
    """
    Pull column name -> description pairs out of a description sheet.

    Understands two layouts:
      "Column A" | "Credit Hours" | "Number of credit hours"
      "Credit Hours" | "Number of credit hours this term"
    Returns None when nothing was found.
    """
    if len(grid) < 2:
        return None

    codebook: Dict[str, str] = {}
    for row in grid:
        if not row or len(row) < 2:
            continue

        first = _cell_text(row, 0)
        second = _cell_text(row, 1)
        third = _cell_text(row, 2)

        # header row, e.g. "Column" | "Variable" | "Description"
        if "column" in first.lower() and "variable" in second.lower():
            continue

        if _COLUMN_LETTER_CELL.match(first) and second:
            codebook[second] = third or second
        elif first and second and not first.lower().startswith("column"):
            codebook[first] = second

    return codebook or None
