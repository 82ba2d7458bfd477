"""
Unit tests for report and export builders
"""

import pytest

from featurelab.profiler import DatasetProfiler
from featurelab.reports import (
    deduplicated_csv,
    feature_checklist_markdown,
    feature_script,
    health_summary,
    impact_stars,
    quality_report_markdown,
)
from featurelab.suggestions import FeatureSuggestionEngine


class TestQualityReport:
    """Test cases for the markdown quality report"""

    def setup_method(self):
        """Set up test fixtures"""
        self.rows = [{"a": 1, "b": "x"}, {"a": 2, "b": ""}, {"a": 1, "b": "x"}]
        self.profile = DatasetProfiler().profile(self.rows)

    def test_sections(self):
        report = quality_report_markdown("t.csv", self.profile)
        lines = report.split("\n")

        assert lines[0] == "# Data Quality Report - t.csv"
        assert lines[1] == "Rows: 3, Columns: 2"
        assert lines[2].startswith("Overall Health Score: ")
        assert "- a: 0% missing" in lines
        assert "- b: 33.33% missing" in lines
        assert "- 1 rows (33.33%)" in lines
        assert "- a: 0" in lines

    def test_health_summary(self):
        subject, body = health_summary("t.csv", self.profile)

        assert subject == "Dataset Health Report"
        assert "Dataset: t.csv" in body
        assert self.profile.badge.label in body

    def test_deduplicated_csv(self):
        assert deduplicated_csv(self.rows) == "a,b\n1,x\n2,\n"


class TestFeatureExports:
    """Test cases for script and checklist exports"""

    def setup_method(self):
        """Set up test fixtures"""
        rows = [{"reading": i} for i in range(150)]
        profile = DatasetProfiler().profile(rows)
        self.batch = FeatureSuggestionEngine().generate_for_profile(rows, profile)

    def test_python_script(self):
        script = feature_script(self.batch.suggestions, "python")

        assert script.startswith("import numpy as np\nimport pandas as pd")
        assert "# Polynomial features for reading\ndf['reading_squared']" in script
        assert "# Discretize reading\n" in script

    def test_sql_script_uses_sql_comments(self):
        script = feature_script(self.batch.suggestions[:1], "sql")
        assert "-- Polynomial features for reading\nSELECT *," in script

    def test_unknown_language(self):
        with pytest.raises(ValueError):
            feature_script(self.batch.suggestions, "julia")

    def test_checklist(self):
        checklist = feature_checklist_markdown(self.batch.suggestions)

        assert "- [ ] **Polynomial features for reading**" in checklist
        assert "  - Priority: high" in checklist
        assert "  - Impact: ★★★★☆" in checklist
        assert "  - Columns: reading" in checklist

    def test_impact_stars(self):
        assert impact_stars(5) == "★★★★★"
        assert impact_stars(1) == "★☆☆☆☆"
