"""Data quality analysis functionality."""

from __future__ import annotations

import json
import logging
from typing import Dict, List, Mapping, Sequence

import numpy as np

from .dataclass import DuplicateResult, HealthBadge, OutlierResult, Row
from .type_inference import column_names, is_missing, numeric_columns, numeric_values

logger = logging.getLogger(__name__)

MAX_DUPLICATE_EXAMPLES = 5
MIN_OUTLIER_SAMPLE = 5
IQR_MULTIPLIER = 1.5

# 重みの合計は必ず1.0
HEALTH_WEIGHTS: Dict[str, float] = {
    "completeness": 0.35,
    "duplicates": 0.20,
    "outliers": 0.15,
    "type_issues": 0.15,
    "cardinality": 0.15,
}

HEALTH_BADGES = (
    (90.0, HealthBadge(label="Excellent", color="green")),
    (70.0, HealthBadge(label="Good", color="yellow")),
    (50.0, HealthBadge(label="Fair", color="orange")),
)
POOR_BADGE = HealthBadge(label="Poor", color="red")


def missing_percentages(rows: Sequence[Row]) -> Dict[str, float]:
    """カラムごとの欠損率 (%)、小数第2位で丸め"""
    if not rows:
        return {}
    total = len(rows)
    result: Dict[str, float] = {}
    for column in column_names(rows):
        missing = sum(1 for row in rows if is_missing(row.get(column)))
        result[column] = round(missing * 100 / total, 2)
    return result


def _row_key(row: Row) -> str:
    # 行内のキー順に依存しない正規化
    return json.dumps(row, sort_keys=True, default=str)


def find_duplicates(rows: Sequence[Row]) -> DuplicateResult:
    """完全一致の重複行を検出 (最初の出現は重複に数えない)"""
    seen = set()
    duplicates: List[Row] = []
    for row in rows:
        key = _row_key(row)
        if key in seen:
            duplicates.append(row)
        else:
            seen.add(key)

    count = len(duplicates)
    percent = round(count * 100 / len(rows), 2) if rows else 0.0
    return DuplicateResult(
        count=count,
        percent=percent,
        examples=duplicates[:MAX_DUPLICATE_EXAMPLES],
    )


def drop_duplicates(rows: Sequence[Row]) -> List[Row]:
    """重複行を除いた新しい行リスト"""
    seen = set()
    cleaned: List[Row] = []
    for row in rows:
        key = _row_key(row)
        if key not in seen:
            seen.add(key)
            cleaned.append(dict(row))
    return cleaned


def quantile(values: Sequence[float], q: float) -> float:
    """線形補間による分位点 (position = (n-1) * q)"""
    if len(values) == 0:
        return 0.0
    return float(np.quantile(np.asarray(values, dtype=float), q))


def iqr_bounds(values: Sequence[float]) -> Dict[str, float]:
    q1 = quantile(values, 0.25)
    q3 = quantile(values, 0.75)
    iqr = q3 - q1
    return {
        "Q1": q1,
        "Q3": q3,
        "IQR": iqr,
        "lower_bound": q1 - IQR_MULTIPLIER * iqr,
        "upper_bound": q3 + IQR_MULTIPLIER * iqr,
    }


def iqr_outliers(rows: Sequence[Row]) -> OutlierResult:
    """数値カラムごとにIQRフェンス外の値を数える"""
    by_column: Dict[str, int] = {}
    total = 0
    for column in numeric_columns(rows):
        series = np.asarray(numeric_values(rows, column), dtype=float)
        if len(series) < MIN_OUTLIER_SAMPLE:
            # サンプル不足
            by_column[column] = 0
            continue

        bounds = iqr_bounds(series)
        outlier_mask = (series < bounds["lower_bound"]) | (series > bounds["upper_bound"])
        count = int(outlier_mask.sum())
        by_column[column] = count
        total += count

    return OutlierResult(by_column=by_column, total=total)


def _inverse_ratio_score(count: float, denominator: int) -> float:
    return 100 - min(100.0, count * 100 / max(1, denominator))


def type_issues_score(mixed_columns: int, column_count: int) -> float:
    return _inverse_ratio_score(mixed_columns, column_count)


def cardinality_score(high_cardinality_columns: int, column_count: int) -> float:
    return _inverse_ratio_score(high_cardinality_columns, column_count)


def score_overall(
    missing_avg: float,
    duplicate_percent: float,
    outlier_total: int,
    row_count: int,
    type_issues_score: float,
    cardinality_score: float,
    weights: Mapping[str, float] = HEALTH_WEIGHTS,
) -> float:
    """5つの指標を重み付けして0-100の総合スコアを算出"""
    if not np.isclose(sum(weights.values()), 1.0):
        raise ValueError(f"Health weights must sum to 1.0, got {sum(weights.values())}")

    signals = {
        "completeness": 100 - missing_avg,
        "duplicates": 100 - duplicate_percent,
        "outliers": _inverse_ratio_score(outlier_total, row_count),
        "type_issues": type_issues_score,
        "cardinality": cardinality_score,
    }
    score = sum(weights[name] * value for name, value in signals.items())
    return round(max(0.0, min(100.0, score)), 1)


def health_badge(score: float) -> HealthBadge:
    for threshold, badge in HEALTH_BADGES:
        if score >= threshold:
            return badge
    return POOR_BADGE


class DataQualityAnalyzer:
    """欠損・重複・外れ値とヘルススコアをまとめて扱うクラス"""

    def __init__(self, weights: Mapping[str, float] = HEALTH_WEIGHTS):
        if not np.isclose(sum(weights.values()), 1.0):
            raise ValueError(f"Health weights must sum to 1.0, got {sum(weights.values())}")
        self.weights = dict(weights)

    def missing(self, rows: Sequence[Row]) -> Dict[str, float]:
        return missing_percentages(rows)

    def duplicates(self, rows: Sequence[Row]) -> DuplicateResult:
        return find_duplicates(rows)

    def outliers(self, rows: Sequence[Row]) -> OutlierResult:
        return iqr_outliers(rows)

    def score(
        self,
        missing_avg: float,
        duplicate_percent: float,
        outlier_total: int,
        row_count: int,
        type_issues: int,
        high_cardinality: int,
        column_count: int,
    ) -> Dict[str, float]:
        """
        サブスコアと総合スコアを計算

        Returns:
            type_issues_score / cardinality_score / overall を持つ辞書
        """
        types_score = type_issues_score(type_issues, column_count)
        card_score = cardinality_score(high_cardinality, column_count)
        overall = score_overall(
            missing_avg=missing_avg,
            duplicate_percent=duplicate_percent,
            outlier_total=outlier_total,
            row_count=row_count,
            type_issues_score=types_score,
            cardinality_score=card_score,
            weights=self.weights,
        )
        return {
            "type_issues_score": types_score,
            "cardinality_score": card_score,
            "overall": overall,
        }

    @staticmethod
    def badge(score: float) -> HealthBadge:
        return health_badge(score)
