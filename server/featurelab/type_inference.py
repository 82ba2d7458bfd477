"""Value-level type inference shared by every analyzer."""

from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .dataclass import Row

NULL = "null"
BOOLEAN = "boolean"
NUMBER = "number"
DATE = "date"
STRING = "string"

_DATE_SEPARATOR = re.compile(r"[-:/]")


def is_missing(value: Any) -> bool:
    """None / 空文字 / NaN を欠損とみなす"""
    if value is None or (isinstance(value, str) and value == ""):
        return True
    return isinstance(value, float) and math.isnan(value)


def to_number(value: Any) -> Optional[float]:
    """有限の数値に変換できればfloatを返し、できなければNone"""
    if is_missing(value) or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        # "1_000" は Python の float では通るが数値として扱わない
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def is_number(value: Any) -> bool:
    """infer_type(value) == "number" と同じ判定 (日付解析を行わない)"""
    return not isinstance(value, (bool, np.bool_)) and to_number(value) is not None


def _looks_like_date(value: Any) -> bool:
    text = str(value)
    if not _DATE_SEPARATOR.search(text):
        return False
    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return False
    return parsed is not pd.NaT and not pd.isna(parsed)


def infer_type(value: Any) -> str:
    """単一の値を null / boolean / number / date / string に分類

    数値判定は日付判定より先に行う。区切り文字 (-, :, /) を含まない値は
    日付として解釈できても date にはしない。
    """
    if is_missing(value):
        return NULL
    if isinstance(value, (bool, np.bool_)):
        return BOOLEAN
    if is_number(value):
        return NUMBER
    if _looks_like_date(value):
        return DATE
    return STRING


def stringify(value: Any) -> str:
    """表示・集計用の文字列化 (欠損は空文字)"""
    if is_missing(value):
        return ""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value)


def column_names(rows: Sequence[Row]) -> List[str]:
    """カラム順は先頭行のキー順"""
    return list(rows[0].keys()) if rows else []


def column_types(rows: Sequence[Row]) -> Dict[str, List[str]]:
    """カラムごとに観測された推論型の集合 (出現順)"""
    types: Dict[str, List[str]] = {}
    for column in column_names(rows):
        observed: List[str] = []
        for row in rows:
            inferred = infer_type(row.get(column))
            if inferred not in observed:
                observed.append(inferred)
        types[column] = observed
    return types


def is_mixed(observed: Sequence[str]) -> bool:
    # null も1つの型として数える
    return len(observed) > 1


def numeric_columns(rows: Sequence[Row]) -> List[str]:
    return [
        column
        for column in column_names(rows)
        if any(is_number(row.get(column)) for row in rows)
    ]


def numeric_values(rows: Sequence[Row], column: str) -> List[float]:
    """変換に成功した数値のみ (欠損・非数値は除外し、0埋めしない)"""
    values = []
    for row in rows:
        number = to_number(row.get(column))
        if number is not None:
            values.append(number)
    return values
