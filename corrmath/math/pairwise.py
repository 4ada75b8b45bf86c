"""
Pairwise statistics between two series.

correlate() and covariance() are the primitives every engine is built on:
align the two series by position label, keep only positions observed in
both, gate on min_periods, then apply the method's kernel.
"""

import logging
from typing import Any, Optional, Union

import numpy as np

from corrmath.components.config import Config, resolve_config
from corrmath.exceptions import InvalidMinPeriods
from corrmath.math.methods import CorrelationMethod, CorrelationValue, Kernel
from corrmath.math.missing import INSUFFICIENT, Missing, to_float_or_missing
from corrmath.math.series import aligned_values, as_series, complete_pairs

logger = logging.getLogger(__name__)


def check_min_periods(min_periods: Any) -> int:
    """
    Validate a min_periods argument.

    Args:
        min_periods: Requested minimum number of observations

    Returns:
        The value as an int
    """
    if isinstance(min_periods, bool) or not isinstance(min_periods, (int, np.integer)):
        raise InvalidMinPeriods(f"min_periods must be an integer, got {min_periods!r}")
    if min_periods < 0:
        raise InvalidMinPeriods(f"min_periods must be non-negative, got {min_periods}")
    return int(min_periods)


def correlate_arrays(x: np.ndarray,
                     y: np.ndarray,
                     kernel: Kernel,
                     min_periods: int = 1) -> CorrelationValue:
    """
    Correlate two aligned arrays under an already-resolved kernel.

    Args:
        x: Float array, NaN for missing
        y: Float array aligned with x
        kernel: Method kernel
        min_periods: Minimum number of complete pairs

    Returns:
        Correlation, or Missing
    """
    xc, yc = complete_pairs(x, y)
    if len(xc) < max(min_periods, 2):
        return Missing(INSUFFICIENT)
    return kernel(xc, yc)


def correlate(x: Any,
              y: Any,
              method: Union[str, CorrelationMethod, None] = None,
              min_periods: Optional[int] = None,
              config: Optional[Config] = None) -> CorrelationValue:
    """
    Correlation between two series over pairwise-complete observations.

    Args:
        x: First series (NumericSeries or anything it can be built from)
        y: Second series
        method: 'pearson', 'spearman' or 'kendall'; defaults to the configured method
        min_periods: Minimum number of complete pairs; defaults to the configured value
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

    xv, yv = aligned_values(as_series(x), as_series(y))
    return correlate_arrays(xv, yv, method.kernel, min_periods)


def covariance_arrays(x: np.ndarray,
                      y: np.ndarray,
                      min_periods: int = 1,
                      ddof: int = 1) -> CorrelationValue:
    """
    Sample covariance of two aligned arrays.

    Args:
        x: Float array, NaN for missing
        y: Float array aligned with x
        min_periods: Minimum number of complete pairs
        ddof: Delta degrees of freedom

    Returns:
        Covariance, or Missing
    """
    xc, yc = complete_pairs(x, y)
    n = len(xc)
    if n < max(min_periods, 1) or n - ddof <= 0:
        return Missing(INSUFFICIENT)
    with np.errstate(all='ignore'):
        cov = np.sum((xc - xc.mean()) * (yc - yc.mean())) / (n - ddof)
    return to_float_or_missing(cov)


def covariance(x: Any,
               y: Any,
               min_periods: Optional[int] = None,
               ddof: int = 1,
               config: Optional[Config] = None) -> CorrelationValue:
    """
    Sample covariance between two series over pairwise-complete observations.

    Args:
        x: First series
        y: Second series
        min_periods: Minimum number of complete pairs; defaults to the configured value
        ddof: Delta degrees of freedom (1 for the sample covariance)
        config: Optional configuration supplying defaults

    Returns:
        Covariance, or Missing
    """
    config = resolve_config(config)
    min_periods = check_min_periods(
        min_periods if min_periods is not None else config.get('correlation.min-periods')
    )
    xv, yv = aligned_values(as_series(x), as_series(y))
    return covariance_arrays(xv, yv, min_periods, ddof)
