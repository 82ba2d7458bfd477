"""Shared fixtures for featurelab tests"""

import pytest

from featurelab.dataclass import CodeTemplates, FeatureSuggestion


@pytest.fixture
def small_rows():
    """3 rows where the third duplicates the first"""
    return [{"a": 1, "b": "x"}, {"a": 2, "b": "y"}, {"a": 1, "b": "x"}]


@pytest.fixture
def make_suggestion():
    def _make(title, columns, impact=3, complexity="Easy", category="numeric"):
        return FeatureSuggestion(
            id=f"{category}-1",
            title=title,
            description="",
            example="",
            columns=list(columns),
            category=category,
            priority="medium",
            impact=impact,
            complexity=complexity,
            explanation="",
            code=CodeTemplates(python="", r="", sql=""),
        )

    return _make
