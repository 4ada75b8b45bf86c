"""
Correlation algorithms over labeled numeric series.

This module contains implementations of:
- Pairwise correlation and covariance (Pearson, Spearman, Kendall)
- Correlation and covariance matrices
- Cross-correlation between collections
- Autocorrelation
- Rolling, expanding and exponentially weighted correlation
"""

from corrmath.math.missing import MISSING, Missing, is_missing
from corrmath.math.series import NumericSeries, SeriesCollection
from corrmath.math.methods import CorrelationMethod
from corrmath.math.pairwise import correlate, covariance
from corrmath.math.matrix import CorrelationMatrix, correlation_matrix, covariance_matrix
from corrmath.math.cross import cross_correlate
from corrmath.math.autocorr import autocorrelation, autocorrelation_function, lagged_correlation
from corrmath.math.windowed import (
    ExpandingWindow, ExponentialWindow, FixedWindow, WindowedResult,
    windowed_correlate, windowed_correlation_pairs
)

__all__ = [
    'MISSING',
    'Missing',
    'is_missing',
    'NumericSeries',
    'SeriesCollection',
    'CorrelationMethod',
    'correlate',
    'covariance',
    'CorrelationMatrix',
    'correlation_matrix',
    'covariance_matrix',
    'cross_correlate',
    'autocorrelation',
    'autocorrelation_function',
    'lagged_correlation',
    'FixedWindow',
    'ExpandingWindow',
    'ExponentialWindow',
    'WindowedResult',
    'windowed_correlate',
    'windowed_correlation_pairs',
]
