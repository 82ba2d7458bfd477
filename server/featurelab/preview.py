"""Suggestion preview on a small row sample.

The preview is a display aid. Quantile bands are computed from the sample
itself, so they generally differ from the full-dataset bands written into the
suggestion's code templates.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Callable, List, Optional, Sequence, Tuple

import pandas as pd

from .code_templates import BAND_LABELS
from .data_quality import quantile
from .dataclass import FeatureSuggestion, Row
from .type_inference import is_missing, stringify, to_number

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 5


def _polynomial(rows: List[Row], columns: Sequence[str]) -> None:
    column = columns[0]
    for row in rows:
        number = to_number(row.get(column))
        row[f"{column}_squared"] = None if number is None else number ** 2
        row[f"{column}_cubed"] = None if number is None else number ** 3


def _log1p(rows: List[Row], columns: Sequence[str]) -> None:
    column = columns[0]
    for row in rows:
        number = to_number(row.get(column))
        valid = number is not None and number > -1
        row[f"{column}_log"] = math.log1p(number) if valid else None


def _bands(rows: List[Row], columns: Sequence[str]) -> None:
    column = columns[0]
    values = sorted(v for v in (to_number(row.get(column)) for row in rows) if v is not None)
    q1, q3 = quantile(values, 0.25), quantile(values, 0.75)
    low, mid, high = BAND_LABELS
    for row in rows:
        number = to_number(row.get(column))
        if number is None:
            band = None
        elif number < q1:
            band = low
        elif number < q3:
            band = mid
        else:
            band = high
        row[f"{column}_band"] = band


def _ratio(rows: List[Row], columns: Sequence[str]) -> None:
    if len(columns) < 2:
        return
    numerator, denominator = columns[0], columns[1]
    for row in rows:
        top = to_number(row.get(numerator))
        bottom = to_number(row.get(denominator))
        valid = top is not None and bottom not in (None, 0.0)
        row[f"{numerator}_per_{denominator}"] = top / bottom if valid else None


def _parse_date(value) -> Optional[pd.Timestamp]:
    if is_missing(value):
        return None
    parsed = pd.to_datetime(stringify(value), errors="coerce")
    return None if pd.isna(parsed) else parsed


def _day_interval(rows: List[Row], columns: Sequence[str]) -> None:
    if len(columns) < 2:
        return
    start, end = columns[0], columns[1]
    for row in rows:
        begin, finish = _parse_date(row.get(start)), _parse_date(row.get(end))
        valid = begin is not None and finish is not None
        row[f"{end}_{start}_days"] = (finish - begin).days if valid else None


def _length(rows: List[Row], columns: Sequence[str]) -> None:
    column = columns[0]
    for row in rows:
        row[f"{column}_length"] = len(stringify(row.get(column)))


# 提案タイトルの先頭部分と変換の対応 (カラム名には一致させない)
TRANSFORMS: Tuple[Tuple[re.Pattern, Callable[[List[Row], Sequence[str]], None]], ...] = (
    (re.compile(r"^Polynomial features for "), _polynomial),
    (re.compile(r"^Normalize skewed "), _log1p),
    (re.compile(r"^Discretize "), _bands),
    (re.compile(r"^(combine|ratio)\b", re.IGNORECASE), _ratio),
    (re.compile(r"^days between", re.IGNORECASE), _day_interval),
    (re.compile(r"^Length feature for "), _length),
)


def preview_suggestion(suggestion: FeatureSuggestion, sample: Sequence[Row]) -> List[Row]:
    """
    提案の変換をサンプル行 (最大5行) に適用した新しい行を返す

    Args:
        suggestion: 対象の提案
        sample: サンプル行 (元の行は変更しない)
    """
    rows = [dict(row) for row in sample[:PREVIEW_ROWS]]
    if not suggestion.columns:
        return rows
    for pattern, transform in TRANSFORMS:
        if pattern.search(suggestion.title):
            transform(rows, suggestion.columns)
            return rows
    logger.debug("No preview transform for suggestion %s", suggestion.id)
    return rows
