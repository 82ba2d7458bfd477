"""EDA analysis functionality."""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Sequence

import numpy as np

from .data_quality import quantile
from .dataclass import CategoricalInfo, CorrelationMatrix, NumericStats, Row
from .type_inference import (
    column_names,
    is_missing,
    is_number,
    numeric_columns,
    numeric_values,
    stringify,
)

TOP_CATEGORIES = 5


def numeric_stats(rows: Sequence[Row]) -> Dict[str, NumericStats]:
    """数値カラムの min/max/mean/median/std と値リスト"""
    result: Dict[str, NumericStats] = {}
    for column in numeric_columns(rows):
        values = numeric_values(rows, column)
        if not values:
            continue
        series = np.asarray(values, dtype=float)
        result[column] = NumericStats(
            min=float(series.min()),
            max=float(series.max()),
            mean=float(series.mean()),
            median=quantile(np.sort(series), 0.5),
            std=float(series.std()),  # ddof=0
            values=values,
        )
    return result


def categorical_summary(rows: Sequence[Row], top: int = TOP_CATEGORIES) -> Dict[str, CategoricalInfo]:
    """数値以外の値を持つカラムのユニーク数と上位カテゴリ"""
    result: Dict[str, CategoricalInfo] = {}
    for column in column_names(rows):
        values = [
            stringify(row.get(column))
            for row in rows
            if not is_missing(row.get(column)) and not is_number(row.get(column))
        ]
        if not values:
            continue

        # Counter は挿入順を保持するので、同数の場合は先に出現した値が優先
        counts = Counter(values)
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        result[column] = CategoricalInfo(
            unique=len(counts),
            top=[[value, count] for value, count in ranked[:top]],
        )
    return result


def pearson(a: Sequence[float], b: Sequence[float]) -> float:
    """ピアソン相関係数 (短い方の長さに切り詰めて比較)"""
    n = min(len(a), len(b))
    if n == 0:
        return 0.0
    x = np.asarray(a[:n], dtype=float)
    y = np.asarray(b[:n], dtype=float)
    dx = x - x.mean()
    dy = y - y.mean()
    denominator = np.sqrt((dx * dx).sum() * (dy * dy).sum())
    if denominator == 0:
        return 0.0
    return round(float((dx * dy).sum() / denominator), 3)


def correlation_matrix(rows: Sequence[Row]) -> CorrelationMatrix:
    """全数値カラムの相関行列 (対称)"""
    columns = numeric_columns(rows)
    data: List[List[float]] = [numeric_values(rows, column) for column in columns]
    n = len(columns)
    matrix = [[0.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(i, n):
            matrix[i][j] = matrix[j][i] = pearson(data[i], data[j])
    return CorrelationMatrix(columns=columns, matrix=matrix)


class EDAAnalyzer:
    """数値統計・カテゴリ集計・相関行列を計算するクラス"""

    def __init__(self, top_categories: int = TOP_CATEGORIES):
        self.top_categories = top_categories

    def numeric_stats(self, rows: Sequence[Row]) -> Dict[str, NumericStats]:
        return numeric_stats(rows)

    def categorical_summary(self, rows: Sequence[Row]) -> Dict[str, CategoricalInfo]:
        return categorical_summary(rows, top=self.top_categories)

    def correlation_matrix(self, rows: Sequence[Row]) -> CorrelationMatrix:
        return correlation_matrix(rows)
