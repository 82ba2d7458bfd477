"""
Unit tests for the feature suggestion rule engine
"""

import pytest

from featurelab.code_templates import feature_names
from featurelab.profiler import DatasetProfiler
from featurelab.sample_data import generate_sample
from featurelab.suggestions import (
    RULES,
    FeatureSuggestionEngine,
    priority_from_impact,
)


def suggest(rows):
    profile = DatasetProfiler().profile(rows)
    return FeatureSuggestionEngine().generate_for_profile(rows, profile)


def titles(batch):
    return [s.title for s in batch.suggestions]


class TestPriority:
    """Test cases for priority derivation"""

    @pytest.mark.parametrize(
        "impact,complexity,expected",
        [
            (5, "Easy", "high"),
            (4, "Moderate", "high"),
            (4, "Advanced", "medium"),
            (3, "Easy", "medium"),
            (2, "Easy", "low"),
            (1, "Easy", "low"),
            (1, "Advanced", "low"),
        ],
    )
    def test_priority_from_impact(self, impact, complexity, expected):
        assert priority_from_impact(impact, complexity) == expected


class TestDatetimeRules:
    """Test cases for datetime detection"""

    def setup_method(self):
        """Set up test fixtures"""
        self.rows = [{"signup_date": f"2024-01-{d:02d}", "score": d} for d in range(1, 11)]

    def test_single_date_column(self):
        batch = suggest(self.rows)
        datetime_titles = [s.title for s in batch.filter(category="datetime")]

        assert datetime_titles == [
            "Extract components from signup_date",
            "Cyclical encoding for signup_date",
        ]

    def test_emission_order_and_ids(self):
        batch = suggest(self.rows)

        assert [s.id for s in batch.suggestions] == [
            "categorical-1",
            "categorical-2",
            "datetime-3",
            "datetime-4",
            "domain-5",
        ]
        assert titles(batch) == [
            "Encode signup_date",
            "Length feature for signup_date",
            "Extract components from signup_date",
            "Cyclical encoding for signup_date",
            "Time-based rolling metrics",
        ]

    def test_summary_and_highlight(self):
        batch = suggest(self.rows)

        assert batch.summary.total == 5
        assert batch.summary.high == 3
        assert batch.summary.medium == 1
        assert batch.summary.low == 1
        assert [s.id for s in batch.highlight] == ["categorical-1", "datetime-3", "datetime-4"]

    def test_second_date_column_adds_interval(self):
        rows = [dict(row, last_purchase_date="2024-03-01") for row in self.rows]
        batch = suggest(rows)
        interval = [s for s in batch.suggestions if s.title.startswith("Days between")]

        assert len(interval) == 1
        assert interval[0].columns == ["signup_date", "last_purchase_date"]
        assert "last_purchase_date_signup_date_days" in interval[0].code.python


class TestNumericRules:
    """Test cases for numeric rules"""

    def test_polynomial_and_discretize(self):
        rows = [{"reading": i} for i in range(150)]
        batch = suggest(rows)

        assert titles(batch) == ["Polynomial features for reading", "Discretize reading"]
        bands = batch.suggestions[1].code
        assert "37.25" in bands.python and "111.75" in bands.python
        assert "37.25" in bands.r and "111.75" in bands.r
        assert "37.25" in bands.sql and "111.75" in bands.sql

    def test_skew_and_scale(self):
        rows = [{"value": v} for v in [0, 0, 0, 0, 5000]]
        batch = suggest(rows)

        assert titles(batch) == ["Normalize skewed value", "Scale value"]
        assert [s.id for s in batch.suggestions] == ["numeric-1", "numeric-2"]
        assert batch.suggestions[0].priority == "high"
        assert batch.suggestions[1].priority == "medium"

    def test_skew_needs_five_values(self):
        rows = [{"value": v} for v in [1, 1, 1, 50]]
        assert "Normalize skewed value" not in titles(suggest(rows))

    def test_known_pairs_and_ratio_scan(self):
        rows = [{"price": 10 + i, "quantity": 1 + i % 3} for i in range(10)]
        result = titles(suggest(rows))

        assert "Combine price & quantity" in result
        assert "Ratio price/quantity" in result
        assert "E-commerce basket insights" in result
        assert result.index("Combine price & quantity") < result.index("Ratio price/quantity")

    def test_price_per_unit_needs_quantity(self):
        rows = [{"price": 10 + i, "total_price": 20 + i} for i in range(5)]
        assert not [t for t in titles(suggest(rows)) if t.startswith("Combine")]

        rows = [dict(row, quantity=2) for row in rows]
        assert "Combine total_price & quantity" in titles(suggest(rows))

    def test_prefix_aggregation(self):
        rows = [{"score_a": i, "score_b": i * 2, "score_c": i * 3} for i in range(5)]
        batch = suggest(rows)
        aggregate = [s for s in batch.suggestions if s.title == "Aggregate score metrics"]

        assert len(aggregate) == 1
        assert aggregate[0].columns == ["score_a", "score_b", "score_c"]
        assert "(score_a + score_b + score_c) / 3.0" in aggregate[0].code.sql


class TestCategoricalRules:
    """Test cases for categorical rules"""

    @pytest.mark.parametrize(
        "unique,encoding,complexity",
        [
            (8, "One-Hot Encoding", "Easy"),
            (15, "Ordinal Encoding", "Moderate"),
            (30, "Target Encoding", "Moderate"),
            (60, "Frequency Encoding", "Moderate"),
        ],
    )
    def test_encoding_tiers(self, unique, encoding, complexity):
        rows = [{"kind": f"k{i % unique}"} for i in range(unique * 2)]
        batch = suggest(rows)
        encode = [s for s in batch.suggestions if s.title == "Encode kind"]

        assert len(encode) == 1
        assert encoding in encode[0].description
        assert encode[0].complexity == complexity
        assert encode[0].impact == 5

    def test_rare_categories(self):
        rows = [{"tier": "common"} for _ in range(199)] + [{"tier": "rare_value"}]
        batch = suggest(rows)
        rare = [s for s in batch.suggestions if s.title == "Group rare tier categories"]

        assert len(rare) == 1
        assert "'rare_value'" in rare[0].code.python
        assert "'rare_value'" in rare[0].code.r
        assert "'rare_value'" in rare[0].code.sql

    def test_no_rare_categories(self):
        rows = [{"tier": t} for t in ["a", "b"] * 50]
        assert "Group rare tier categories" not in titles(suggest(rows))

    def test_interaction_uses_first_two_categorical_columns(self):
        rows = [{"c1": "a", "n": i, "c2": "b", "c3": "c"} for i in range(3)]
        batch = suggest(rows)
        combine = [s for s in batch.suggestions if s.title.startswith("Combine c")]

        assert len(combine) == 1
        assert combine[0].columns == ["c1", "c2"]
        assert combine[0].priority == "medium"

    @pytest.mark.parametrize("length", [5, 80])
    def test_text_length_bounds_are_exclusive(self, length):
        rows = [{"note": letter * length} for letter in "abcd"]
        assert "Length feature for note" not in titles(suggest(rows))

    def test_text_length_inside_bounds(self):
        rows = [{"note": letter * 6} for letter in "abcd"]
        assert "Length feature for note" in titles(suggest(rows))


class TestDomainRules:
    """Test cases for domain keyword heuristics"""

    def test_healthcare_and_bmi_pair(self):
        rows = [
            {"patient_age": 30 + i, "weight": 60 + i, "height": 170 - i}
            for i in range(5)
        ]
        batch = suggest(rows)
        pair = [s for s in batch.suggestions if s.title == "Combine weight & height"]
        health = [s for s in batch.suggestions if s.title == "Healthcare BMI & age groups"]

        assert len(pair) == 1
        assert pair[0].code.python == "df['bmi'] = df['weight'] / (df['height'] ** 2)"
        assert "/ (df$height^2)" in pair[0].code.r
        assert len(health) == 1
        assert health[0].impact == 5
        assert health[0].priority == "high"
        assert health[0].columns == ["patient_age", "weight", "height"]
        assert "df['weight'] / (df['height'] / 100) ** 2" in health[0].code.python

    def test_real_estate(self):
        rows = [{"sqft": 1000 + i, "price": 200000 + i} for i in range(3)]
        suggestion = [s for s in suggest(rows).suggestions if s.category == "domain"]
        assert [s.title for s in suggestion] == [
            "E-commerce basket insights",
            "Real estate structural ratios",
        ]
        assert suggestion[1].priority == "high"

    def test_financial_is_advanced(self):
        rows = [{"account": "acc1", "amount": 10}, {"account": "acc2", "amount": 20}]
        financial = [s for s in suggest(rows).suggestions if s.title == "Financial velocity features"]

        assert len(financial) == 1
        assert financial[0].complexity == "Advanced"
        assert financial[0].priority == "medium"


class TestEngine:
    """Test cases for the engine as a whole"""

    def test_empty_table(self):
        batch = suggest([])

        assert batch.suggestions == []
        assert batch.summary.total == 0
        assert batch.highlight == []

    def test_all_null_column(self):
        assert suggest([{"a": ""}]).suggestions == []

    def test_generation_is_deterministic(self):
        rows = generate_sample(200, seed=3)
        assert titles(suggest(rows)) == titles(suggest(rows))

    def test_templates_stay_synchronized(self):
        batch = suggest(generate_sample(200, seed=5))

        assert batch.summary.total == len(batch.suggestions) > 0
        for suggestion in batch.suggestions:
            names = feature_names(suggestion.code)
            assert names, suggestion.title
            for name in names:
                assert name in suggestion.code.python, (suggestion.title, name)
                assert name in suggestion.code.r, (suggestion.title, name)

    def test_ids_number_across_categories(self):
        batch = suggest(generate_sample(200, seed=5))
        numbers = [int(s.id.rsplit("-", 1)[1]) for s in batch.suggestions]

        assert numbers == list(range(1, len(numbers) + 1))
        assert all(s.id.startswith(s.category + "-") for s in batch.suggestions)

    def test_custom_rule_registry(self):
        engine = FeatureSuggestionEngine(rules=RULES[:1])
        rows = [{"reading": i} for i in range(150)]
        profile = DatasetProfiler().profile(rows)

        batch = engine.generate_for_profile(rows, profile)
        assert titles(batch) == ["Polynomial features for reading"]
