"""
Corrmath package for correlation analysis.

Pairwise, matrix, cross, lagged and windowed correlation over labeled
numeric series, with undefined results reported as Missing rather than NaN.
"""

__version__ = '0.1.0'

from corrmath.components.config import Config, configure_logging
from corrmath.math import (
    MISSING, Missing, is_missing,
    NumericSeries, SeriesCollection, CorrelationMethod,
    correlate, covariance,
    CorrelationMatrix, correlation_matrix, covariance_matrix,
    cross_correlate,
    autocorrelation, autocorrelation_function, lagged_correlation,
    FixedWindow, ExpandingWindow, ExponentialWindow, WindowedResult,
    windowed_correlate, windowed_correlation_pairs,
)
