"""
Autocorrelation and lagged correlation.

The autocorrelation at lag k is the Pearson correlation of a series with a
copy of itself shifted forward by k positions.
"""

import logging
from typing import Any, List, Optional, Union

import numpy as np

from corrmath.components.config import Config, resolve_config
from corrmath.exceptions import InvalidLag
from corrmath.math.methods import CorrelationMethod, CorrelationValue, pearson_kernel
from corrmath.math.missing import INSUFFICIENT, ZERO_VARIANCE, Missing
from corrmath.math.pairwise import check_min_periods, correlate_arrays
from corrmath.math.series import NumericSeries, aligned_values, as_series

logger = logging.getLogger(__name__)

AUTOCORRELATION_MIN_PERIODS = 2


def _check_lag(lag: Any, length: int, allow_negative: bool = False) -> int:
    if isinstance(lag, bool) or not isinstance(lag, (int, np.integer)):
        raise InvalidLag(f"Lag must be an integer, got {lag!r}")
    lag = int(lag)
    if lag < 0 and not allow_negative:
        raise InvalidLag(f"Lag must be non-negative, got {lag}")
    if abs(lag) >= length:
        raise InvalidLag(f"Lag {lag} is out of range for a series of length {length}")
    return lag


def _zero_lag(series: NumericSeries) -> CorrelationValue:
    valid = series.to_numpy()[series.valid_mask()]
    if len(valid) < AUTOCORRELATION_MIN_PERIODS:
        return Missing(INSUFFICIENT)
    if np.all(valid == valid[0]):
        return Missing(ZERO_VARIANCE)
    return 1.0


def _lagged(series: NumericSeries, lag: int) -> CorrelationValue:
    if lag == 0:
        return _zero_lag(series)
    xv, yv = aligned_values(series, series.lag(lag))
    return correlate_arrays(xv, yv, pearson_kernel, AUTOCORRELATION_MIN_PERIODS)


def autocorrelation(series: Any, lag: int = 1) -> CorrelationValue:
    """
    Pearson correlation of a series with itself shifted by ``lag`` positions.

    Args:
        series: NumericSeries or anything it can be built from
        lag: Non-negative integer strictly less than the series length

    Returns:
        Correlation in [-1, 1], or Missing. Lag 0 gives 1.0 whenever the
        series has at least two valid points and nonzero variance.
    """
    series = as_series(series)
    lag = _check_lag(lag, len(series))
    return _lagged(series, lag)


def autocorrelation_function(series: Any, max_lag: Optional[int] = None) -> List[CorrelationValue]:
    """
    Autocorrelation at every lag from 0 to ``max_lag`` inclusive.

    Args:
        series: NumericSeries or anything it can be built from
        max_lag: Largest lag; defaults to ``len(series) - 1``

    Returns:
        List of correlations (or Missing), indexed by lag
    """
    series = as_series(series)
    if max_lag is None:
        max_lag = len(series) - 1
    max_lag = _check_lag(max_lag, len(series))
    logger.debug(f"Computing autocorrelation for lags 0..{max_lag}")
    return [_lagged(series, lag) for lag in range(max_lag + 1)]


def lagged_correlation(x: Any,
                       y: Any,
                       lag: int = 0,
                       method: Union[str, CorrelationMethod, None] = None,
                       min_periods: Optional[int] = None,
                       config: Optional[Config] = None) -> CorrelationValue:
    """
    Correlation of ``x`` with ``y`` shifted forward by ``lag`` positions.

    A positive lag pairs x at position t with y at position t - lag; a
    negative lag pairs it with y at t + |lag|.

    Args:
        x: First series
        y: Series to shift
        lag: Shift applied to y; ``|lag|`` must be less than ``len(y)``
        method: 'pearson', 'spearman' or 'kendall'; defaults to the configured method
        min_periods: Minimum complete pairs; defaults to the configured value
        config: Optional configuration supplying defaults

    Returns:
        Correlation in [-1, 1], or Missing
    """
    config = resolve_config(config)
    method = CorrelationMethod.parse(
        method if method is not None else config.get('correlation.method')
    )
    min_periods = check_min_periods(
        min_periods if min_periods is not None else config.get('correlation.min-periods')
    )
    x = as_series(x)
    y = as_series(y)
    lag = _check_lag(lag, len(y), allow_negative=True)
    xv, yv = aligned_values(x, y.lag(lag))
    return correlate_arrays(xv, yv, method.kernel, min_periods)
