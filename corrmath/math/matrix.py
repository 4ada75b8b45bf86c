"""
All-pairs correlation and covariance matrices over a collection of series.

Each unordered pair is computed once, in collection insertion order, and
mirrored into the symmetric entry. Pairs may be fanned out to a thread
pool; entries are placed by pair key, so the matrix is the same either way.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from corrmath.components.config import Config, resolve_config
from corrmath.exceptions import ShapeMismatch
from corrmath.math.methods import CorrelationMethod, CorrelationValue
from corrmath.math.missing import INSUFFICIENT, ZERO_VARIANCE, Missing
from corrmath.math.pairwise import (
    check_min_periods, correlate_arrays, covariance_arrays
)
from corrmath.math.series import IndexHash, NumericSeries, aligned_values, as_collection
from corrmath.utils.general import evaluate_keyed, unordered_pairs

logger = logging.getLogger(__name__)


class CorrelationMatrix:
    """
    A square, symmetric matrix of pairwise results indexed by series name.

    Entries are floats or Missing. NaN only appears in the exports
    (``values`` and ``to_dataframe()``).
    """

    def __init__(self,
                 names: List[Any],
                 values: np.ndarray,
                 reasons: Optional[Dict[Tuple[int, int], str]] = None,
                 metric: str = 'pearson'):
        """
        Initialize a CorrelationMatrix.

        Args:
            names: Row and column names
            values: Square float array with NaN where undefined
            reasons: Optional reason per undefined (row, col) position
            metric: Name of the statistic held in the matrix
        """
        values = np.array(values, dtype=float)
        if values.shape != (len(names), len(names)):
            raise ShapeMismatch(
                f"Matrix shape {values.shape} does not match {len(names)} names"
            )
        values.setflags(write=False)
        self._names = list(names)
        self._positions = IndexHash(self._names)
        self._values = values
        self._reasons = dict(reasons or {})
        self.metric = metric

    def names(self) -> List[Any]:
        return self._names.copy()

    @property
    def shape(self) -> Tuple[int, int]:
        return self._values.shape

    @property
    def values(self) -> np.ndarray:
        """Copy of the entries as a float array, NaN where undefined."""
        return self._values.copy()

    def _position(self, name: Any) -> int:
        position = self._positions.index(name)
        if position is None:
            raise KeyError(f"Name '{name}' not found")
        return position

    def _entry(self, i: int, j: int) -> CorrelationValue:
        value = self._values[i, j]
        if np.isnan(value):
            return Missing(self._reasons.get((i, j)))
        return float(value)

    def get(self, row: Any, col: Any) -> CorrelationValue:
        """
        Get one entry by name.

        Args:
            row: Row name
            col: Column name

        Returns:
            float or Missing
        """
        return self._entry(self._position(row), self._position(col))

    def __getitem__(self, key: Tuple[Any, Any]) -> CorrelationValue:
        row, col = key
        return self.get(row, col)

    def row(self, name: Any) -> Dict[Any, CorrelationValue]:
        """
        One row of the matrix as a name-keyed dict.

        Args:
            name: Row name

        Returns:
            Mapping of column name to entry
        """
        i = self._position(name)
        return {col: self._entry(i, j) for j, col in enumerate(self._names)}

    def is_symmetric(self) -> bool:
        return bool(np.array_equal(self._values, self._values.T, equal_nan=True))

    def to_dataframe(self) -> pd.DataFrame:
        """Export to a pandas DataFrame, with NaN for Missing entries."""
        return pd.DataFrame(self._values.copy(), index=self._names, columns=self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"CorrelationMatrix(metric='{self.metric}', names={self._names!r})"

    def __str__(self) -> str:
        return f"{self.metric} matrix over {len(self._names)} series\n{self.to_dataframe()}"


def _self_correlation(series: NumericSeries, min_periods: int) -> CorrelationValue:
    valid = series.to_numpy()[series.valid_mask()]
    if len(valid) < max(min_periods, 2):
        return Missing(INSUFFICIENT)
    if np.all(valid == valid[0]):
        return Missing(ZERO_VARIANCE)
    return 1.0


def _assemble(names: List[Any],
              diagonal: List[CorrelationValue],
              pairs: Dict[Tuple[int, int], CorrelationValue],
              metric: str) -> CorrelationMatrix:
    n = len(names)
    values = np.full((n, n), np.nan)
    reasons = {}

    def place(i, j, value):
        if isinstance(value, Missing):
            if value.reason:
                reasons[(i, j)] = value.reason
        else:
            values[i, j] = value

    for i, value in enumerate(diagonal):
        place(i, i, value)
    for (i, j), value in pairs.items():
        place(i, j, value)
        place(j, i, value)

    return CorrelationMatrix(names, values, reasons, metric=metric)


def _resolve_common(config: Config,
                    min_periods: Optional[int],
                    numeric_only: Optional[bool],
                    max_workers: Optional[int]) -> Tuple[int, bool, int]:
    min_periods = check_min_periods(
        min_periods if min_periods is not None else config.get('correlation.min-periods')
    )
    if numeric_only is None:
        numeric_only = config.get('correlation.numeric-only')
    if max_workers is None:
        max_workers = config.get('engine.max-workers')
    return min_periods, bool(numeric_only), max_workers


def correlation_matrix(collection: Any,
                       method: Union[str, CorrelationMethod, None] = None,
                       min_periods: Optional[int] = None,
                       numeric_only: Optional[bool] = None,
                       max_workers: Optional[int] = None,
                       config: Optional[Config] = None) -> CorrelationMatrix:
    """
    Compute the correlation matrix of a collection of series.

    Args:
        collection: SeriesCollection, mapping of name to values, or pandas DataFrame
        method: 'pearson', 'spearman' or 'kendall'; defaults to the configured method
        min_periods: Minimum complete pairs per entry; defaults to the configured value
        numeric_only: Drop non-numeric series instead of raising
        max_workers: Worker threads for pair evaluation; defaults to the configured value
        config: Optional configuration supplying defaults

    Returns:
        CorrelationMatrix ordered by collection insertion order
    """
    config = resolve_config(config)
    method = CorrelationMethod.parse(
        method if method is not None else config.get('correlation.method')
    )
    min_periods, numeric_only, max_workers = _resolve_common(
        config, min_periods, numeric_only, max_workers
    )
    coll = as_collection(collection, numeric_only=numeric_only)
    names = coll.names()
    series = coll.values()
    kernel = method.kernel

    def pair_value(x, y):
        xv, yv = aligned_values(x, y)
        return correlate_arrays(xv, yv, kernel, min_periods)

    tasks = {
        (i, j): (series[i], series[j])
        for i, j in unordered_pairs(list(range(len(names))))
    }
    logger.debug(f"Computing {method.value} matrix over {len(names)} series ({len(tasks)} pairs)")

    pairs = evaluate_keyed(pair_value, tasks, max_workers)
    diagonal = [_self_correlation(s, min_periods) for s in series]
    return _assemble(names, diagonal, pairs, method.value)


def covariance_matrix(collection: Any,
                      min_periods: Optional[int] = None,
                      ddof: int = 1,
                      numeric_only: Optional[bool] = None,
                      max_workers: Optional[int] = None,
                      config: Optional[Config] = None) -> CorrelationMatrix:
    """
    Compute the covariance matrix of a collection of series.

    The diagonal holds each series' variance.

    Args:
        collection: SeriesCollection, mapping of name to values, or pandas DataFrame
        min_periods: Minimum complete pairs per entry; defaults to the configured value
        ddof: Delta degrees of freedom
        numeric_only: Drop non-numeric series instead of raising
        max_workers: Worker threads for pair evaluation; defaults to the configured value
        config: Optional configuration supplying defaults

    Returns:
        CorrelationMatrix with metric 'covariance'
    """
    config = resolve_config(config)
    min_periods, numeric_only, max_workers = _resolve_common(
        config, min_periods, numeric_only, max_workers
    )
    coll = as_collection(collection, numeric_only=numeric_only)
    names = coll.names()
    series = coll.values()

    def pair_value(x, y):
        xv, yv = aligned_values(x, y)
        return covariance_arrays(xv, yv, min_periods, ddof)

    tasks = {
        (i, j): (series[i], series[j])
        for i, j in unordered_pairs(list(range(len(names))))
    }
    pairs = evaluate_keyed(pair_value, tasks, max_workers)
    diagonal = [pair_value(s, s) for s in series]
    return _assemble(names, diagonal, pairs, 'covariance')
