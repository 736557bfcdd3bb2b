"""
Excel-style cell references: ``Sheet1!$B$2:$B$10``, ``'My Sheet'!A1``, ``C3``.

Textual references are one-based with optional ``$`` anchors; everything
returned from here is zero-based.
"""
import logging
import re
from typing import Any, List, Optional

from models.chart_models import CellRange, CellReference
from services.cell_value_service import is_blank

logger = logging.getLogger(__name__)

_QUOTED_SHEET_REF = re.compile(r"^'([^']+)'!(.+)$")
_RANGE = re.compile(r"^([A-Z]+)(\d+):([A-Z]+)(\d+)$", re.IGNORECASE)
_SINGLE_CELL = re.compile(r"^([A-Z]+)(\d+)$", re.IGNORECASE)


def letter_to_index(letters: str) -> int:
    """A -> 0, Z -> 25, AA -> 26."""
    num = 0
    for ch in letters.upper():
        num = num * 26 + (ord(ch) - ord("A") + 1)
    return num - 1


def index_to_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    letters = ""
    while index >= 0:
        letters = chr(index % 26 + ord("A")) + letters
        index = index // 26 - 1
    return letters


def parse_cell_reference(ref: str) -> CellReference:
    ref = ref.strip()
    quoted = _QUOTED_SHEET_REF.match(ref)
    if quoted:
        return CellReference(sheet=quoted.group(1), range=quoted.group(2))

    parts = ref.split("!")
    if len(parts) == 2:
        return CellReference(sheet=parts[0], range=parts[1])

    return CellReference(range=ref)


def parse_range(range_text: str) -> Optional[CellRange]:
    cleaned = range_text.replace("$", "").strip()

    match = _RANGE.match(cleaned)
    if match:
        return CellRange(
            start_col=letter_to_index(match.group(1)),
            start_row=int(match.group(2)) - 1,
            end_col=letter_to_index(match.group(3)),
            end_row=int(match.group(4)) - 1,
            is_single_cell=False,
        )

    match = _SINGLE_CELL.match(cleaned)
    if match:
        col = letter_to_index(match.group(1))
        row = int(match.group(2)) - 1
        return CellRange(start_col=col, start_row=row, end_col=col, end_row=row, is_single_cell=True)

    return None


def _grid_value(grid: List[List[Any]], row: int, col: int) -> Any:
    if row < 0 or row >= len(grid):
        return None
    cells = grid[row]
    if col < 0 or col >= len(cells):
        return None
    return cells[col]


def extract_data_from_sheet(grid: List[List[Any]], reference: str) -> List[Any]:
    """
    Values addressed by ``reference`` in ``grid``, blanks omitted.

    The sheet qualifier is ignored, the caller picks the grid. A 2D range is
    flattened column by column so each column reads as one series.
    """
    cell_range = parse_range(parse_cell_reference(reference).range)
    if cell_range is None:
        logger.debug("Could not parse range: %s", reference)
        return []

    # whole-column refs like A1:A1048576 stop at the end of the grid
    last_row = min(cell_range.end_row, len(grid) - 1)

    if cell_range.is_single_cell:
        coords = [(cell_range.start_row, cell_range.start_col)]
    elif cell_range.start_col == cell_range.end_col:
        coords = [(row, cell_range.start_col) for row in range(cell_range.start_row, last_row + 1)]
    elif cell_range.start_row == cell_range.end_row:
        coords = [(cell_range.start_row, col) for col in range(cell_range.start_col, cell_range.end_col + 1)]
    else:
        coords = [
            (row, col)
            for col in range(cell_range.start_col, cell_range.end_col + 1)
            for row in range(cell_range.start_row, last_row + 1)
        ]

    values = []
    for row, col in coords:
        value = _grid_value(grid, row, col)
        if not is_blank(value):
            values.append(value)
    return values
