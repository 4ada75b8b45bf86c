"""
Cross-correlation between two collections, matched by name or by row.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np
import pandas as pd

from corrmath.components.config import Config, resolve_config
from corrmath.exceptions import AxisMismatch, InvalidAxis
from corrmath.math.methods import CorrelationMethod, CorrelationValue
from corrmath.math.pairwise import check_min_periods, correlate_arrays
from corrmath.math.series import SeriesCollection, aligned_values, as_collection, as_series
from corrmath.utils.general import evaluate_keyed

logger = logging.getLogger(__name__)

_AXES = {0: 0, 'index': 0, 1: 1, 'columns': 1}


def parse_axis(axis: Any) -> int:
    """
    Normalise an axis argument.

    Args:
        axis: 0 or 'index' to pair series by name, 1 or 'columns' to pair rows

    Returns:
        0 or 1
    """
    if isinstance(axis, bool) or not isinstance(axis, (int, str)) or axis not in _AXES:
        raise InvalidAxis(f"axis must be 0, 1, 'index' or 'columns', got {axis!r}")
    return _AXES[axis]


def _is_collection(obj: Any) -> bool:
    return isinstance(obj, (SeriesCollection, Mapping, pd.DataFrame))


def _row_matrix(coll: SeriesCollection, rows: pd.Index, names) -> np.ndarray:
    # rows x names, NaN where a series has no value at a row
    frame = coll.subset(names).to_dataframe()
    return frame.reindex(index=rows, columns=names).to_numpy(dtype=float)


def cross_correlate(a: Any,
                    b: Any,
                    method: Union[str, CorrelationMethod, None] = None,
                    min_periods: Optional[int] = None,
                    axis: Union[int, str] = 0,
                    numeric_only: Optional[bool] = None,
                    max_workers: Optional[int] = None,
                    config: Optional[Config] = None) -> Dict[Any, CorrelationValue]:
    """
    Correlate a collection with another collection or with a single series.

    With axis 0 each series of ``a`` is paired with the series of the same
    name in ``b`` (names present on one side only are skipped), or with
    ``b`` itself when it is a single series. With axis 1 each row label is
    one sample: the row of ``a`` across the names both sides share is
    correlated with the matching row of ``b``.

    Args:
        a: SeriesCollection, mapping of name to values, or pandas DataFrame
        b: Collection of the same kinds, or a single series
        method: 'pearson', 'spearman' or 'kendall'; defaults to the configured method
        min_periods: Minimum complete pairs per result; defaults to the configured value
        axis: 0 / 'index' or 1 / 'columns'
        numeric_only: Drop non-numeric series instead of raising
        max_workers: Worker threads for pair evaluation; defaults to the configured value
        config: Optional configuration supplying defaults

    Returns:
        Mapping of series name (axis 0) or row label (axis 1) to correlation
    """
    config = resolve_config(config)
    method = CorrelationMethod.parse(
        method if method is not None else config.get('correlation.method')
    )
    min_periods = check_min_periods(
        min_periods if min_periods is not None else config.get('correlation.min-periods')
    )
    axis = parse_axis(axis)
    if numeric_only is None:
        numeric_only = config.get('correlation.numeric-only')
    if max_workers is None:
        max_workers = config.get('engine.max-workers')
    kernel = method.kernel

    coll_a = as_collection(a, numeric_only=numeric_only)

    if axis == 0:
        if _is_collection(b):
            coll_b = as_collection(b, numeric_only=numeric_only)
            tasks = {name: (series, coll_b[name])
                     for name, series in coll_a.items() if name in coll_b}
            skipped = len(coll_a) - len(tasks)
            if skipped:
                logger.debug(f"Skipping {skipped} series without a counterpart")
        else:
            other = as_series(b)
            tasks = {name: (series, other) for name, series in coll_a.items()}

        def pair_value(x, y):
            xv, yv = aligned_values(x, y)
            return correlate_arrays(xv, yv, kernel, min_periods)

        return evaluate_keyed(pair_value, tasks, max_workers)

    rows = coll_a.row_labels()
    if _is_collection(b):
        coll_b = as_collection(b, numeric_only=numeric_only)
        rows_b = coll_b.row_labels()
        if len(rows) != len(rows_b) or set(rows) != set(rows_b):
            raise AxisMismatch("Row-axis correlation requires both sides to share the same row labels")
        shared = [name for name in coll_a.names() if name in coll_b]
        left = _row_matrix(coll_a, rows, shared)
        right = _row_matrix(coll_b, rows, shared)
        tasks = {label: (left[r], right[r]) for r, label in enumerate(rows)}
    else:
        other = as_series(b)
        names = coll_a.names()
        if len(other) != len(names) or set(other.labels()) != set(names):
            raise AxisMismatch("Row-axis correlation with a series requires its labels to match the column names")
        left = _row_matrix(coll_a, rows, names)
        vector = other.to_pandas().reindex(names).to_numpy(dtype=float)
        tasks = {label: (left[r], vector) for r, label in enumerate(rows)}

    logger.debug(f"Row-axis {method.value} correlation over {len(tasks)} rows")
    return evaluate_keyed(
        lambda x, y: correlate_arrays(x, y, kernel, min_periods), tasks, max_workers
    )
