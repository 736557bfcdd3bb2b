from typing import Any, List, NamedTuple, Optional, Sequence

from models.workbook_models import ColumnType
from services.cell_value_service import is_blank, is_boolean_like, is_date_like, to_number

TYPE_THRESHOLD = 0.8
# numeric columns with at most this many distinct integers are treated as coded (Likert, majors, ...)
CATEGORICAL_MAX_UNIQUE = 20


class ColumnTypeResult(NamedTuple):
    type: ColumnType
    unique_count: Optional[int] = None


def _distinct_numbers(values: Sequence[Any]) -> set:
    numbers = set()
    for value in values:
        num = to_number(value)
        if num is not None:
            numbers.add(num)
    return numbers


def detect_column_type(sample: Sequence[Any], all_values: Sequence[Any]) -> ColumnTypeResult:
    """
    Classify a column from a sample of its cells.

    The sample decides the type (80% threshold, checked in the order
    boolean -> date -> text -> numeric). A numeric column is reclassified as
    categorical when the *full* column holds at most 20 distinct integer values.
    """
    values: List[Any] = [v for v in sample if not is_blank(v)]
    if not values:
        return ColumnTypeResult(ColumnType.TEXT)

    boolean_count = date_count = numeric_count = text_count = 0
    for value in values:
        if is_boolean_like(value):
            boolean_count += 1
        elif to_number(value) is not None:
            numeric_count += 1
        elif is_date_like(value):
            date_count += 1
        else:
            text_count += 1

    total = len(values)
    if boolean_count / total >= TYPE_THRESHOLD:
        return ColumnTypeResult(ColumnType.BOOLEAN)
    if date_count / total >= TYPE_THRESHOLD:
        return ColumnTypeResult(ColumnType.DATE)
    if text_count / total >= TYPE_THRESHOLD:
        return ColumnTypeResult(ColumnType.TEXT)

    if numeric_count / total >= TYPE_THRESHOLD:
        distinct = _distinct_numbers(all_values)
        unique_count = len(distinct)
        if unique_count <= CATEGORICAL_MAX_UNIQUE and all(n.is_integer() for n in distinct):
            return ColumnTypeResult(ColumnType.CATEGORICAL, unique_count)
        return ColumnTypeResult(ColumnType.NUMERIC, unique_count)

    return ColumnTypeResult(ColumnType.TEXT)
