"""
Tests for windowed correlation.
"""

import pytest
import numpy as np
import pandas as pd
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from corrmath.components.config import Config
from corrmath.exceptions import InvalidMinPeriods, InvalidWindow, UnsupportedMethod
from corrmath.math.missing import INSUFFICIENT, Missing, is_missing
from corrmath.math.series import NumericSeries
from corrmath.math.windowed import (
    ExpandingWindow, ExponentialWindow, FixedWindow, WindowedResult,
    windowed_correlate, windowed_correlation_pairs
)

X = [1.0, 3.0, 2.0, 5.0, 4.0, 7.0, 6.0, 9.0, 8.0, 10.0]
Y = [2.0, 1.0, 4.0, 3.0, 6.0, 5.0, 8.0, 7.0, 10.0, 9.0]


@pytest.fixture
def config():
    return Config(use_env=False)


@pytest.fixture
def walk():
    rng = np.random.default_rng(11)
    x = np.cumsum(rng.normal(size=60))
    y = 0.5 * x + rng.normal(size=60)
    return pd.Series(x), pd.Series(y)


class TestWindowSpecs:
    """Tests for window specification validation."""

    def test_fixed(self):
        assert FixedWindow(5).effective_min_periods == 5
        assert FixedWindow(5, min_periods=2).effective_min_periods == 2
        for bad in [0, -1, 2.5, True]:
            with pytest.raises(InvalidWindow):
                FixedWindow(bad)

    def test_expanding(self):
        assert ExpandingWindow().effective_min_periods == 1
        with pytest.raises(InvalidWindow):
            ExpandingWindow(min_periods=-1)

    def test_exponential(self):
        assert ExponentialWindow(0.5).decay == 0.5
        ExponentialWindow(0.0)
        for bad in [1.0, -0.1, 2, True]:
            with pytest.raises(InvalidWindow):
                ExponentialWindow(bad)

    def test_invalid_window_is_value_error(self):
        with pytest.raises(ValueError):
            FixedWindow(0)

    def test_from_params(self):
        """Test the com, span, halflife and alpha parametrisations."""
        assert ExponentialWindow.from_params(com=1).decay == pytest.approx(0.5)
        assert ExponentialWindow.from_params(span=3).decay == pytest.approx(0.5)
        assert ExponentialWindow.from_params(halflife=1).decay == pytest.approx(0.5)
        assert ExponentialWindow.from_params(alpha=0.2).decay == pytest.approx(0.8)
        assert ExponentialWindow.from_params(alpha=1.0).decay == 0.0

    def test_from_params_invalid(self):
        with pytest.raises(InvalidWindow):
            ExponentialWindow.from_params()
        with pytest.raises(InvalidWindow):
            ExponentialWindow.from_params(com=1, span=3)
        with pytest.raises(InvalidWindow):
            ExponentialWindow.from_params(alpha=0)
        with pytest.raises(InvalidWindow):
            ExponentialWindow.from_params(halflife=0)

    def test_unknown_spec(self, config):
        with pytest.raises(InvalidWindow):
            windowed_correlate(X, Y, 3, config=config)


class TestFixedWindow:
    """Tests for rolling correlation."""

    def test_defined_count(self, config):
        """Test that every full window of varying data has a value."""
        result = windowed_correlate(X, Y, FixedWindow(3), config=config)

        assert isinstance(result, WindowedResult)
        assert len(result) == 10
        values = result.to_list()
        assert all(isinstance(v, Missing) for v in values[:2])
        assert sum(not is_missing(v) for v in values) == 8

    def test_against_pandas(self, config, walk):
        """Test agreement with pandas rolling correlation."""
        x, y = walk
        result = windowed_correlate(x, y, FixedWindow(7), config=config).to_pandas()
        expected = x.rolling(7).corr(y)

        np.testing.assert_allclose(result.to_numpy(), expected.to_numpy(), atol=1e-8)

    def test_window_larger_than_series(self, config):
        result = windowed_correlate(X, Y, FixedWindow(20), config=config)
        assert all(isinstance(v, Missing) for v in result)

    def test_min_periods_override(self, config):
        """Test that a call-level min_periods wins over the window's."""
        result = windowed_correlate(X, Y, FixedWindow(4), min_periods=2, config=config)
        assert isinstance(result[0], Missing)
        assert result[1] == -1.0

    def test_invalid_min_periods_override(self, config):
        with pytest.raises(InvalidMinPeriods):
            windowed_correlate(X, Y, FixedWindow(4), min_periods=-1, config=config)

    def test_spearman(self, config):
        """Test a rank method over rolling windows."""
        y = [v ** 3 for v in X]
        result = windowed_correlate(X, y, FixedWindow(4), method='spearman', config=config)
        assert all(v == pytest.approx(1.0) for v in result[3:])

    def test_missing_values_inside_window(self, config):
        """Test that windows with too few complete pairs are Missing."""
        x = [1.0, None, None, 4.0, 5.0, 6.0]
        y = [1.0, 2.0, 3.0, 5.0, 4.0, 7.0]
        result = windowed_correlate(x, y, FixedWindow(3, min_periods=2), config=config)

        assert result[2].reason == INSUFFICIENT
        assert not is_missing(result[4])

    def test_alignment_by_label(self, config):
        """Test that the second series is aligned onto the first's labels."""
        x = NumericSeries(X, index=range(10))
        y = NumericSeries(Y[:5], index=range(5))
        result = windowed_correlate(x, y, FixedWindow(3), config=config)

        assert result.index.tolist() == list(range(10))
        assert not is_missing(result[4])
        assert isinstance(result[5], Missing)


class TestExpandingWindow:
    """Tests for expanding correlation."""

    def test_against_pandas(self, config, walk):
        x, y = walk
        result = windowed_correlate(x, y, ExpandingWindow(min_periods=2), config=config).to_pandas()
        expected = x.expanding(min_periods=2).corr(y)

        np.testing.assert_allclose(result.to_numpy(), expected.to_numpy(), atol=1e-8)

    def test_last_equals_full_correlation(self, config):
        result = windowed_correlate(X, Y, ExpandingWindow(), config=config)
        assert result[-1] == pytest.approx(np.corrcoef(X, Y)[0, 1])


class TestExponentialWindow:
    """Tests for exponentially weighted correlation."""

    def test_against_pandas(self, config, walk):
        """Test agreement with pandas ewm correlation."""
        x, y = walk
        result = windowed_correlate(x, y, ExponentialWindow.from_params(alpha=0.3),
                                    config=config).to_pandas()
        expected = x.ewm(alpha=0.3).corr(y)

        np.testing.assert_allclose(result.to_numpy()[1:], expected.to_numpy()[1:], atol=1e-8)
        assert np.isnan(result.iloc[0])

    def test_incremental_matches_direct(self, config, walk):
        """Test that running sums agree with direct evaluation."""
        x, y = walk
        spec = ExponentialWindow(0.8)
        direct = windowed_correlate(x, y, spec, incremental=False, config=config).to_pandas()
        running = windowed_correlate(x, y, spec, incremental=True, config=config).to_pandas()

        np.testing.assert_allclose(running.to_numpy(), direct.to_numpy(), atol=1e-9)

    def test_incremental_large_offset(self, config):
        """Test that running evaluation stays accurate far from zero."""
        rng = np.random.default_rng(20)
        x = 1e8 + rng.normal(size=50)
        y = x + 0.1 * rng.normal(size=50)
        spec = ExponentialWindow(0.9)
        direct = windowed_correlate(x, y, spec, incremental=False, config=config).to_pandas()
        running = windowed_correlate(x, y, spec, incremental=True, config=config).to_pandas()

        np.testing.assert_allclose(running.to_numpy(), direct.to_numpy(), atol=1e-6)
        assert running.iloc[-1] == pytest.approx(direct.iloc[-1], abs=1e-6)
        assert running.iloc[-1] < 1.0

    def test_incremental_with_gaps(self, config):
        """Test running evaluation over missing pairs."""
        x = [1.0, 3.0, None, 2.0, 5.0, 4.0, None, 7.0, 6.0, 9.0]
        y = [2.0, 1.0, 4.0, None, 3.0, 6.0, 5.0, 8.0, 7.0, 10.0]
        spec = ExponentialWindow(0.7)
        direct = windowed_correlate(x, y, spec, incremental=False, config=config).to_pandas()
        running = windowed_correlate(x, y, spec, incremental=True, config=config).to_pandas()

        np.testing.assert_allclose(running.to_numpy(), direct.to_numpy(), atol=1e-10)

    def test_incremental_zero_decay(self, config):
        """Test that a zero decay keeps only the current pair in both paths."""
        spec = ExponentialWindow(0.0)
        direct = windowed_correlate(X, Y, spec, incremental=False, config=config)
        running = windowed_correlate(X, Y, spec, incremental=True, config=config)

        assert all(isinstance(v, Missing) for v in direct)
        assert all(isinstance(v, Missing) for v in running)

    def test_incremental_from_config(self, walk):
        x, y = walk
        config = Config(overrides={'windowed': {'incremental': True}}, use_env=False)
        running = windowed_correlate(x, y, ExponentialWindow(0.9), config=config)
        direct = windowed_correlate(x, y, ExponentialWindow(0.9), incremental=False, config=config)

        assert running._evaluator.incremental
        np.testing.assert_allclose(running.to_pandas().to_numpy(),
                                   direct.to_pandas().to_numpy(), atol=1e-9)

    def test_rank_methods_rejected(self, config):
        for method in ['spearman', 'kendall']:
            with pytest.raises(UnsupportedMethod):
                windowed_correlate(X, Y, ExponentialWindow(0.5), method=method, config=config)

    def test_unsupported_is_value_error(self, config):
        with pytest.raises(ValueError):
            windowed_correlate(X, Y, ExponentialWindow(0.5), method='kendall', config=config)


class TestWindowedResult:
    """Tests for the WindowedResult sequence."""

    def test_restartable(self, config):
        """Test that iterating twice yields the same values."""
        result = windowed_correlate(X, Y, FixedWindow(3), config=config)
        assert list(result) == list(result)

    def test_indexing(self, config):
        result = windowed_correlate(X, Y, FixedWindow(3), config=config)

        assert result[-1] == result[9]
        assert len(result[2:5]) == 3
        assert result[2:5] == [result[2], result[3], result[4]]
        with pytest.raises(IndexError):
            result[10]

    def test_to_pandas(self, config):
        x = NumericSeries(X, index=range(100, 110), name='x')
        y = NumericSeries(Y, index=range(100, 110))
        result = windowed_correlate(x, y, FixedWindow(3), config=config).to_pandas()

        assert result.index.tolist() == list(range(100, 110))
        assert result.name == 'x'
        assert np.isnan(result.iloc[0])


class TestWindowedPairs:
    """Tests for windowed_correlation_pairs."""

    def test_pairs(self, config):
        coll = {'a': X, 'b': Y, 'c': X[::-1]}
        result = windowed_correlation_pairs(coll, FixedWindow(3), config=config)

        assert list(result.keys()) == [('a', 'b'), ('a', 'c'), ('b', 'c')]
        assert result[('a', 'b')].to_list() == windowed_correlate(X, Y, FixedWindow(3), config=config).to_list()
