"""
Unit tests for the synthetic sample dataset
"""

from featurelab.profiler import DatasetProfiler
from featurelab.sample_data import generate_sample


class TestGenerateSample:
    """Test cases for generate_sample"""

    def test_shape_and_duplicates(self):
        rows = generate_sample(100, seed=1)

        assert len(rows) == 105
        assert len(rows[0]) == 18
        assert rows[100] == rows[0]
        assert rows[100] is not rows[0]

    def test_seed_is_reproducible(self):
        assert generate_sample(20, seed=9) == generate_sample(20, seed=9)

    def test_profile_of_sample(self):
        profile = DatasetProfiler().profile(generate_sample(200, seed=2))

        assert profile.duplicates.count == 10
        assert profile.duplicates.percent == round(10 * 100 / 210, 2)
        assert "price" in profile.numeric_stats
        assert "region" in profile.categorical
        assert 0 <= profile.overall <= 100
