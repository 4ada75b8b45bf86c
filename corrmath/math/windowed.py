"""
Windowed correlation: fixed-size rolling, expanding and exponentially
weighted windows.

A window specification is one of FixedWindow, ExpandingWindow or
ExponentialWindow. windowed_correlate() returns a WindowedResult, a lazy
sequence with one entry per position of the first series; iterating it
again recomputes from the start.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from corrmath.components.config import Config, resolve_config
from corrmath.exceptions import InvalidWindow, UnsupportedMethod
from corrmath.math.methods import (
    CorrelationMethod, CorrelationValue, Kernel, clip_correlation, weighted_pearson_kernel
)
from corrmath.math.missing import INSUFFICIENT, ZERO_VARIANCE, Missing
from corrmath.math.pairwise import check_min_periods, correlate_arrays
from corrmath.math.series import as_collection, as_series
from corrmath.utils.general import unordered_pairs

logger = logging.getLogger(__name__)


def _check_count(value: Any, label: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < minimum:
        raise InvalidWindow(f"{label} must be an integer >= {minimum}, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class FixedWindow:
    """
    Rolling window over the last ``size`` positions.

    ``min_periods`` defaults to ``size``.
    """

    size: int
    min_periods: Optional[int] = None

    def __post_init__(self):
        _check_count(self.size, 'Window size', 1)
        if self.min_periods is not None:
            _check_count(self.min_periods, 'min_periods', 0)

    @property
    def effective_min_periods(self) -> int:
        return self.size if self.min_periods is None else self.min_periods


@dataclass(frozen=True)
class ExpandingWindow:
    """Window growing from the first position to the current one."""

    min_periods: int = 1

    def __post_init__(self):
        _check_count(self.min_periods, 'min_periods', 0)

    @property
    def effective_min_periods(self) -> int:
        return self.min_periods


@dataclass(frozen=True)
class ExponentialWindow:
    """
    Exponentially decayed weights over all positions up to the current one.

    The pair at distance d from the current position gets weight
    ``decay ** d``. ``decay`` is ``1 - alpha`` in the usual EWM
    parametrisation; see from_params().
    """

    decay: float
    min_periods: int = 0

    def __post_init__(self):
        if isinstance(self.decay, bool) or not isinstance(self.decay, (int, float, np.floating)) \
                or not 0.0 <= self.decay < 1.0:
            raise InvalidWindow(f"decay must be in [0, 1), got {self.decay!r}")
        _check_count(self.min_periods, 'min_periods', 0)

    @property
    def effective_min_periods(self) -> int:
        return self.min_periods

    @classmethod
    def from_params(cls,
                    com: Optional[float] = None,
                    span: Optional[float] = None,
                    halflife: Optional[float] = None,
                    alpha: Optional[float] = None,
                    min_periods: int = 0) -> 'ExponentialWindow':
        """
        Build a window from exactly one of com, span, halflife or alpha.

        Args:
            com: Center of mass, alpha = 1 / (1 + com), com >= 0
            span: Span, alpha = 2 / (span + 1), span >= 1
            halflife: Half-life, alpha = 1 - exp(-ln 2 / halflife), halflife > 0
            alpha: Smoothing factor, 0 < alpha <= 1
            min_periods: Minimum number of valid pairs

        Returns:
            ExponentialWindow
        """
        given = [p for p in (com, span, halflife, alpha) if p is not None]
        if not given:
            raise InvalidWindow("One of com, span, halflife or alpha must be specified")
        if len(given) > 1:
            raise InvalidWindow("Only one of com, span, halflife or alpha can be specified")

        if com is not None:
            if com < 0:
                raise InvalidWindow(f"com must be >= 0, got {com}")
            alpha = 1.0 / (1.0 + com)
        elif span is not None:
            if span < 1:
                raise InvalidWindow(f"span must be >= 1, got {span}")
            alpha = 2.0 / (span + 1.0)
        elif halflife is not None:
            if halflife <= 0:
                raise InvalidWindow(f"halflife must be > 0, got {halflife}")
            alpha = 1.0 - math.exp(-math.log(2.0) / halflife)
        elif not 0.0 < alpha <= 1.0:
            raise InvalidWindow(f"alpha must be in (0, 1], got {alpha}")

        return cls(decay=1.0 - alpha, min_periods=min_periods)


WindowSpec = Union[FixedWindow, ExpandingWindow, ExponentialWindow]


class _WindowEvaluator:
    """Computes the correlation at each position for one pair of aligned arrays."""

    def __init__(self,
                 x: np.ndarray,
                 y: np.ndarray,
                 spec: WindowSpec,
                 kernel: Kernel,
                 min_periods: int,
                 incremental: bool):
        self.x = x
        self.y = y
        self.spec = spec
        self.kernel = kernel
        self.required = max(min_periods, 2)
        self.incremental = incremental
        self.valid = ~(np.isnan(x) | np.isnan(y))

    def at(self, i: int) -> CorrelationValue:
        spec = self.spec
        if isinstance(spec, ExponentialWindow):
            return self._exponential_at(i)
        start = max(0, i - spec.size + 1) if isinstance(spec, FixedWindow) else 0
        return correlate_arrays(self.x[start:i + 1], self.y[start:i + 1],
                                self.kernel, self.required)

    def _exponential_at(self, i: int) -> CorrelationValue:
        positions = np.flatnonzero(self.valid[:i + 1])
        if len(positions) < self.required:
            return Missing(INSUFFICIENT)
        weights = np.power(self.spec.decay, (i - positions).astype(float))
        return weighted_pearson_kernel(self.x[positions], self.y[positions], weights)

    def iterate(self) -> Iterator[CorrelationValue]:
        if isinstance(self.spec, ExponentialWindow) and self.incremental:
            return self._iterate_running()
        return (self.at(i) for i in range(len(self.x)))

    def _iterate_running(self) -> Iterator[CorrelationValue]:
        # Decayed weighted means and centred co-moments, updated Welford style;
        # O(1) per position and stable under large offsets
        decay = self.spec.decay
        weight = mean_x = mean_y = 0.0
        m_xx = m_yy = m_xy = 0.0
        count = 0
        x_first = y_first = None
        x_varies = y_varies = False

        for i in range(len(self.x)):
            # Decaying every weight leaves the means unchanged
            weight *= decay
            m_xx *= decay
            m_yy *= decay
            m_xy *= decay

            if self.valid[i]:
                xi = float(self.x[i])
                yi = float(self.y[i])
                if weight == 0.0:
                    # First pair, or every earlier weight decayed to zero
                    weight = 1.0
                    mean_x, mean_y = xi, yi
                else:
                    weight += 1.0
                    dx = xi - mean_x
                    dy = yi - mean_y
                    mean_x += dx / weight
                    mean_y += dy / weight
                    m_xx += dx * (xi - mean_x)
                    m_yy += dy * (yi - mean_y)
                    m_xy += dx * (yi - mean_y)
                count += 1
                if x_first is None:
                    x_first, y_first = xi, yi
                x_varies = x_varies or xi != x_first
                y_varies = y_varies or yi != y_first

            if count < self.required:
                yield Missing(INSUFFICIENT)
                continue
            if not (x_varies and y_varies) or m_xx <= 0 or m_yy <= 0:
                yield Missing(ZERO_VARIANCE)
                continue
            yield clip_correlation(m_xy / math.sqrt(m_xx * m_yy))


class WindowedResult(Sequence):
    """
    One correlation (or Missing) per position of the first series.

    Entries are computed on demand. Iteration is restartable: every pass
    recomputes from the first position.
    """

    def __init__(self, evaluator: _WindowEvaluator, index: pd.Index, name: Any = None):
        self._evaluator = evaluator
        self._index = index
        self.name = name

    @property
    def index(self) -> pd.Index:
        """Position labels, identical to the first series' labels."""
        return self._index

    @property
    def spec(self) -> WindowSpec:
        return self._evaluator.spec

    def __len__(self) -> int:
        return len(self._index)

    def __getitem__(self, i):
        if isinstance(i, slice):
            return [self[j] for j in range(*i.indices(len(self)))]
        n = len(self)
        if i < 0:
            i += n
        if not 0 <= i < n:
            raise IndexError(f"Position {i} out of range for {n} window positions")
        return self._evaluator.at(i)

    def __iter__(self) -> Iterator[CorrelationValue]:
        return self._evaluator.iterate()

    def to_list(self) -> List[CorrelationValue]:
        return list(self)

    def to_pandas(self) -> pd.Series:
        """Export to a pandas Series, with NaN for Missing entries."""
        return pd.Series([float(v) for v in self], index=self._index, name=self.name, dtype=float)

    def __repr__(self) -> str:
        return f"WindowedResult(spec={self.spec!r}, length={len(self)})"


def _check_spec(spec: Any) -> WindowSpec:
    if not isinstance(spec, (FixedWindow, ExpandingWindow, ExponentialWindow)):
        raise InvalidWindow(f"Unknown window specification: {spec!r}")
    return spec


def windowed_correlate(x: Any,
                       y: Any,
                       spec: WindowSpec,
                       method: Union[str, CorrelationMethod, None] = None,
                       min_periods: Optional[int] = None,
                       incremental: Optional[bool] = None,
                       config: Optional[Config] = None) -> WindowedResult:
    """
    Correlation of two series at every window position.

    ``y`` is aligned onto ``x``'s position labels; labels ``y`` lacks count
    as missing. Each position needs at least ``min_periods`` (and never
    fewer than two) complete pairs inside its window.

    Args:
        x: Series whose positions define the output
        y: Second series
        spec: FixedWindow, ExpandingWindow or ExponentialWindow
        method: 'pearson', 'spearman' or 'kendall'; exponential windows are Pearson only
        min_periods: Overrides the window's min_periods when given
        incremental: Use running sums for exponential windows; defaults to the configured value
        config: Optional configuration supplying defaults

    Returns:
        WindowedResult aligned with x
    """
    config = resolve_config(config)
    spec = _check_spec(spec)
    method = CorrelationMethod.parse(
        method if method is not None else config.get('correlation.method')
    )
    if isinstance(spec, ExponentialWindow) and method.rank_based:
        raise UnsupportedMethod(
            f"{method.value} correlation is not defined for exponentially weighted windows"
        )
    if min_periods is None:
        min_periods = spec.effective_min_periods
    min_periods = check_min_periods(min_periods)
    if incremental is None:
        incremental = config.get('windowed.incremental')

    x = as_series(x)
    y = as_series(y).reindex(x.index)
    evaluator = _WindowEvaluator(
        x.to_numpy(), y.to_numpy(), spec, method.kernel, min_periods, bool(incremental)
    )
    return WindowedResult(evaluator, x.index, name=x.name)


def windowed_correlation_pairs(collection: Any,
                               spec: WindowSpec,
                               method: Union[str, CorrelationMethod, None] = None,
                               min_periods: Optional[int] = None,
                               numeric_only: Optional[bool] = None,
                               incremental: Optional[bool] = None,
                               config: Optional[Config] = None) -> Dict[Tuple[Any, Any], WindowedResult]:
    """
    Windowed correlation for every unordered pair of series in a collection.

    Args:
        collection: SeriesCollection, mapping of name to values, or pandas DataFrame
        spec: FixedWindow, ExpandingWindow or ExponentialWindow
        method: 'pearson', 'spearman' or 'kendall'
        min_periods: Overrides the window's min_periods when given
        numeric_only: Drop non-numeric series instead of raising
        incremental: Use running sums for exponential windows
        config: Optional configuration supplying defaults

    Returns:
        Mapping of (earlier name, later name) to WindowedResult, in insertion order
    """
    config = resolve_config(config)
    if numeric_only is None:
        numeric_only = config.get('correlation.numeric-only')
    coll = as_collection(collection, numeric_only=numeric_only)
    pairs = unordered_pairs(coll.names())
    logger.debug(f"Preparing windowed correlation for {len(pairs)} pairs")
    return {
        (a, b): windowed_correlate(coll[a], coll[b], spec, method=method,
                                   min_periods=min_periods, incremental=incremental,
                                   config=config)
        for a, b in pairs
    }
