from typing import Any, Optional, Sequence

import pandas as pd

from models.workbook_models import ColumnStats
from services.cell_value_service import to_number


def calculate_column_stats(values: Sequence[Any]) -> Optional[ColumnStats]:
    """
    min / max / average (2 dp) and distinct count over every number in the column.
    Returns None when the column holds no numbers at all.
    """
    numbers = [n for n in (to_number(v) for v in values) if n is not None]
    if not numbers:
        return None

    series = pd.Series(numbers, dtype="float64")
    return ColumnStats(
        min=round(float(series.min()), 2),
        max=round(float(series.max()), 2),
        avg=round(float(series.mean()), 2),
        unique_count=int(series.nunique()),
    )
