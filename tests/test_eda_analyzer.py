"""
Unit tests for descriptive statistics and correlation
"""

import math

from featurelab.eda_analyzer import (
    EDAAnalyzer,
    categorical_summary,
    correlation_matrix,
    numeric_stats,
    pearson,
)


class TestNumericStats:
    """Test cases for numeric_stats"""

    def test_basic_statistics(self):
        rows = [{"x": v} for v in [1, 2, 3, 4]]
        stats = numeric_stats(rows)["x"]

        assert stats.min == 1
        assert stats.max == 4
        assert stats.mean == 2.5
        assert stats.median == 2.5
        # population standard deviation
        assert math.isclose(stats.std, math.sqrt(1.25))
        assert stats.values == [1.0, 2.0, 3.0, 4.0]

    def test_nulls_are_dropped_not_zero_filled(self):
        rows = [{"x": 10}, {"x": ""}, {"x": None}, {"x": "20"}]
        stats = numeric_stats(rows)["x"]

        assert stats.values == [10.0, 20.0]
        assert stats.min == 10
        assert stats.mean == 15

    def test_non_numeric_columns_are_skipped(self):
        rows = [{"x": 1, "label": "a"}]
        assert list(numeric_stats(rows)) == ["x"]


class TestCategoricalSummary:
    """Test cases for categorical_summary"""

    def test_unique_and_top_values(self, small_rows):
        summary = categorical_summary(small_rows)

        assert "a" not in summary
        assert summary["b"].unique == 2
        assert summary["b"].top == [["x", 2], ["y", 1]]

    def test_ties_keep_first_seen_order(self):
        rows = [{"c": v} for v in ["b", "a", "b", "a", "c"]]
        assert categorical_summary(rows)["c"].top == [["b", 2], ["a", 2], ["c", 1]]

    def test_top_is_limited_to_five(self):
        rows = [{"c": f"v{i}"} for i in range(8)]
        info = categorical_summary(rows)["c"]

        assert info.unique == 8
        assert len(info.top) == 5

    def test_mixed_column_counts_only_non_numeric_values(self):
        rows = [{"c": "x"}, {"c": 1}, {"c": True}, {"c": ""}]
        info = categorical_summary(rows)["c"]

        assert info.unique == 2
        assert info.top == [["x", 1], ["true", 1]]


class TestCorrelation:
    """Test cases for Pearson correlation"""

    def test_self_correlation_is_one(self):
        assert pearson([1, 2, 3, 5], [1, 2, 3, 5]) == 1.0

    def test_series_are_truncated_to_shorter_length(self):
        assert pearson([1, 2, 3], [2, 4, 6, 100]) == 1.0

    def test_zero_variance_yields_zero(self):
        assert pearson([1, 1, 1], [1, 2, 3]) == 0.0
        assert pearson([], []) == 0.0

    def test_rounded_to_three_decimals(self):
        r = pearson([1, 2, 3, 4], [1, 3, 2, 4])
        assert r == round(r, 3)
        assert r == 0.8

    def test_matrix_is_symmetric_with_unit_diagonal(self):
        rows = [
            {"a": 1, "b": 2, "c": 9, "label": "x"},
            {"a": 2, "b": 1, "c": 7, "label": "y"},
            {"a": 3, "b": 5, "c": 4, "label": "z"},
            {"a": 4, "b": 3, "c": 1, "label": "w"},
        ]
        corr = correlation_matrix(rows)

        assert corr.columns == ["a", "b", "c"]
        for i in range(3):
            assert corr.matrix[i][i] == 1.0
            for j in range(3):
                assert corr.matrix[i][j] == corr.matrix[j][i]
        assert corr.get("a", "c") < 0

    def test_empty_table(self):
        corr = correlation_matrix([])
        assert corr.columns == []
        assert corr.matrix == []


class TestEDAAnalyzer:
    """Test cases for EDAAnalyzer"""

    def test_top_categories_limit(self):
        rows = [{"kind": k} for k in "aaabbc"]
        summary = EDAAnalyzer(top_categories=2).categorical_summary(rows)

        assert summary["kind"].unique == 3
        assert summary["kind"].top == [["a", 3], ["b", 2]]

    def test_matches_module_functions(self):
        rows = [{"x": i, "y": 2 * i} for i in range(5)]
        analyzer = EDAAnalyzer()

        assert analyzer.numeric_stats(rows) == numeric_stats(rows)
        assert analyzer.correlation_matrix(rows) == correlation_matrix(rows)
