"""Dataset profile assembly."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .data_quality import DataQualityAnalyzer
from .dataclass import Profile, Row
from .eda_analyzer import EDAAnalyzer
from .type_inference import column_names, column_types, is_mixed

logger = logging.getLogger(__name__)

HIGH_CARDINALITY_RATIO = 0.5


class DatasetProfiler:
    """テーブル全体のデータ品質プロファイルを作成するクラス"""

    def __init__(
        self,
        quality: Optional[DataQualityAnalyzer] = None,
        eda: Optional[EDAAnalyzer] = None,
    ):
        self.quality = quality or DataQualityAnalyzer()
        self.eda = eda or EDAAnalyzer()

    def profile(self, rows: Sequence[Row]) -> Profile:
        """
        各アナライザーを実行し、総合スコアまで計算

        Args:
            rows: 行のリスト (各行はカラム名 -> 値)
        """
        columns = column_names(rows)
        row_count = len(rows)

        missing = self.quality.missing(rows)
        types = column_types(rows)
        duplicates = self.quality.duplicates(rows)
        outliers = self.quality.outliers(rows)
        stats = self.eda.numeric_stats(rows)
        categorical = self.eda.categorical_summary(rows)
        correlation = self.eda.correlation_matrix(rows)
        logger.debug(
            "Analyzed %d rows: %d numeric, %d categorical columns",
            row_count,
            len(stats),
            len(categorical),
        )

        avg_missing = (
            sum(missing.get(column, 0.0) for column in columns) / len(columns)
            if columns
            else 0.0
        )
        type_issues = sum(1 for observed in types.values() if is_mixed(observed))
        high_cardinality = sum(
            1
            for info in categorical.values()
            if info.unique > row_count * HIGH_CARDINALITY_RATIO
        )
        scores = self.quality.score(
            missing_avg=avg_missing,
            duplicate_percent=duplicates.percent,
            outlier_total=outliers.total,
            row_count=row_count,
            type_issues=type_issues,
            high_cardinality=high_cardinality,
            column_count=len(columns),
        )
        overall = scores["overall"]
        badge = self.quality.badge(overall)
        logger.info(
            "Profiled %d rows x %d columns: score %.1f (%s)",
            row_count,
            len(columns),
            overall,
            badge.label,
        )

        return Profile(
            row_count=row_count,
            columns=columns,
            missing=missing,
            types=types,
            duplicates=duplicates,
            outliers=outliers,
            numeric_stats=stats,
            categorical=categorical,
            correlation=correlation,
            avg_missing=avg_missing,
            type_issues=type_issues,
            type_issues_score=scores["type_issues_score"],
            high_cardinality_columns=high_cardinality,
            cardinality_score=scores["cardinality_score"],
            overall=overall,
            badge=badge,
        )
