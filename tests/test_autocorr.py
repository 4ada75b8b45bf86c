"""
Tests for autocorrelation and lagged correlation.
"""

import pytest
import numpy as np
import pandas as pd
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from corrmath.components.config import Config
from corrmath.exceptions import InvalidLag
from corrmath.math.autocorr import autocorrelation, autocorrelation_function, lagged_correlation
from corrmath.math.missing import INSUFFICIENT, ZERO_VARIANCE, Missing
from corrmath.math.series import NumericSeries


class TestAutocorrelation:
    """Tests for autocorrelation."""

    def test_linear(self):
        """Test a straight line at lag 1."""
        assert autocorrelation([1, 2, 3, 4, 5], 1) == 1.0

    def test_lag_zero(self):
        """Test that lag 0 is 1 for any varying series."""
        assert autocorrelation([3, 1, 2], 0) == 1.0

    def test_lag_zero_constant(self):
        result = autocorrelation([2, 2, 2], 0)
        assert isinstance(result, Missing)
        assert result.reason == ZERO_VARIANCE

    def test_against_pandas(self):
        """Test agreement with pandas Series.autocorr."""
        rng = np.random.default_rng(8)
        values = np.cumsum(rng.normal(size=80))
        values[[4, 17]] = np.nan
        ps = pd.Series(values)

        for lag in [1, 2, 5, 10]:
            assert autocorrelation(values, lag) == pytest.approx(ps.autocorr(lag), abs=1e-10)

    def test_too_few_pairs(self):
        """Test that a lag leaving one pair gives Missing."""
        result = autocorrelation([1, 2, 4], 2)
        assert isinstance(result, Missing)
        assert result.reason == INSUFFICIENT

    def test_invalid_lag(self):
        """Test lag validation."""
        for bad in [-1, 5, 7, 1.5, True, '1']:
            with pytest.raises(InvalidLag):
                autocorrelation([1, 2, 3, 4, 5], bad)

    def test_invalid_lag_is_value_error(self):
        with pytest.raises(ValueError):
            autocorrelation([1, 2, 3], 3)


class TestAutocorrelationFunction:
    """Tests for autocorrelation_function."""

    def test_default_lags(self):
        """Test that every lag up to n - 1 is returned."""
        acf = autocorrelation_function([1, 3, 2, 5, 4, 6])

        assert len(acf) == 6
        assert acf[0] == 1.0
        assert isinstance(acf[5], Missing)

    def test_matches_single_lags(self):
        """Test that each entry equals the single-lag result."""
        values = [2.0, 4.0, 1.0, 5.0, 3.0, 6.0, 2.0, 7.0]
        acf = autocorrelation_function(values, max_lag=3)

        assert len(acf) == 4
        for lag, value in enumerate(acf):
            assert value == autocorrelation(values, lag)

    def test_invalid_max_lag(self):
        with pytest.raises(InvalidLag):
            autocorrelation_function([1, 2, 3], max_lag=3)


class TestLaggedCorrelation:
    """Tests for lagged_correlation."""

    @pytest.fixture
    def config(self):
        return Config(use_env=False)

    def test_recovers_shift(self, config):
        """Test that the lag matching a known shift gives 1."""
        rng = np.random.default_rng(9)
        x = NumericSeries(rng.normal(size=30))
        # y leads x by two positions
        y = x.lag(-2)

        assert lagged_correlation(x, y, lag=2, config=config) == pytest.approx(1.0)
        assert lagged_correlation(x, y, lag=0, config=config) < 0.9

    def test_negative_lag(self, config):
        """Test that a negative lag shifts the other way."""
        rng = np.random.default_rng(10)
        x = NumericSeries(rng.normal(size=30))
        y = x.lag(3)

        assert lagged_correlation(x, y, lag=-3, config=config) == pytest.approx(1.0)

    def test_lag_zero_is_correlate(self, config):
        x = [1.0, 3.0, 2.0, 5.0]
        y = [2.0, 1.0, 4.0, 3.0]
        assert lagged_correlation(x, y, 0, method='kendall', config=config) == pytest.approx(0.0)

    def test_lag_out_of_range(self, config):
        with pytest.raises(InvalidLag):
            lagged_correlation([1, 2, 3], [1, 2, 3], lag=-3, config=config)
