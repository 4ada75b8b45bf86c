"""
Labeled numeric series and named collections of series.

This module provides the data structures every correlation engine consumes:
NumericSeries, an immutable sequence of floats with missing markers and
ordered position labels, and SeriesCollection, an insertion-ordered mapping
from names to series.
"""

import decimal
import logging
import numbers
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from corrmath.exceptions import InvalidIndex, InvalidLag, NonNumericData, ShapeMismatch
from corrmath.math.missing import Missing, MISSING

logger = logging.getLogger(__name__)


class IndexHash:
    """
    Maintains an ordered index of names with fast lookup.
    """

    def __init__(self, names: Optional[List[Any]] = None):
        """
        Initialize an IndexHash with optional initial names.

        Args:
            names: Optional list of initial names, which must be unique
        """
        self._names = [] if names is None else list(names)
        self._index_hash = {name: idx for idx, name in enumerate(self._names)}
        if len(self._index_hash) != len(self._names):
            raise InvalidIndex("Names in an IndexHash must be unique")

    def get_names(self) -> List[Any]:
        """Return the ordered list of names."""
        return self._names.copy()

    def index(self, name: Any) -> Optional[int]:
        """
        Get the index for a given name, or None if not found.

        Args:
            name: The name to look up

        Returns:
            The index if found, None otherwise
        """
        return self._index_hash.get(name)

    def append(self, name: Any) -> 'IndexHash':
        """
        Add a new name to the index.

        Args:
            name: The name to add

        Returns:
            A new IndexHash with the added name
        """
        if name in self._index_hash:
            return self

        new_index = IndexHash(self._names)
        new_index._names.append(name)
        new_index._index_hash[name] = len(new_index._names) - 1
        return new_index

    def subset(self, names: List[Any]) -> 'IndexHash':
        """
        Create a subset of the index with only the specified names.

        Names are kept in this index's order, not the order given.

        Args:
            names: List of names to include in the subset

        Returns:
            A new IndexHash containing only the specified names
        """
        wanted = set(names)
        return IndexHash([name for name in self._names if name in wanted])

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: Any) -> bool:
        return name in self._index_hash

    def __iter__(self) -> Iterator[Any]:
        return iter(self._names)


def _coerce_element(value: Any) -> float:
    if value is None or value is pd.NA or value is pd.NaT:
        return np.nan
    if isinstance(value, Missing):
        return np.nan
    if isinstance(value, (numbers.Real, np.bool_, decimal.Decimal)):
        return float(value)
    raise NonNumericData(f"Non-numeric value {value!r} in series")


def _coerce_values(values: Any) -> np.ndarray:
    """
    Convert raw input to a 1-D float array with NaN as the missing marker.

    Args:
        values: Sequence, numpy array or pandas Series

    Returns:
        Float array
    """
    if values is None:
        return np.empty(0, dtype=float)

    if isinstance(values, pd.Series):
        values = values.to_numpy()

    if isinstance(values, np.ndarray) and values.dtype.kind in 'biuf':
        arr = values.astype(float)
    elif isinstance(values, np.ndarray) and values.dtype.kind in 'mMUSc':
        raise NonNumericData(f"Cannot build a numeric series from dtype {values.dtype}")
    else:
        if isinstance(values, (str, bytes)):
            raise NonNumericData("Cannot build a numeric series from a string")
        raw = np.asarray(values, dtype=object)
        if raw.ndim != 1:
            raise ShapeMismatch(f"Series values must be 1-dimensional, got shape {raw.shape}")
        arr = np.array([_coerce_element(v) for v in raw], dtype=float)

    if arr.ndim != 1:
        raise ShapeMismatch(f"Series values must be 1-dimensional, got shape {arr.shape}")
    # Infinite values carry no usable magnitude for correlation
    arr[np.isinf(arr)] = np.nan
    return arr


def _check_index(index: pd.Index, length: int) -> pd.Index:
    if len(index) != length:
        raise ShapeMismatch(
            f"Index length {len(index)} does not match value length {length}"
        )
    if not index.is_unique:
        raise InvalidIndex("Position labels must be unique")
    if not (index.is_monotonic_increasing or index.is_monotonic_decreasing):
        raise InvalidIndex("Position labels must be monotonically ordered")
    return index


class NumericSeries:
    """
    An immutable ordered sequence of floats with missing-value markers.

    Each value sits at a unique position label; labels default to
    0..n-1. None and NaN in the input are treated as missing.
    """

    def __init__(self,
                 values: Any = None,
                 index: Optional[Any] = None,
                 name: Optional[Any] = None):
        """
        Initialize a NumericSeries.

        Args:
            values: Raw values (list, tuple, numpy array, pandas Series or NumericSeries)
            index: Optional position labels, one per value
            name: Optional series name
        """
        if isinstance(values, NumericSeries):
            if index is None:
                index = values._index
            if name is None:
                name = values._name
            values = values._values
        elif isinstance(values, pd.Series):
            if index is None:
                index = values.index
            if name is None:
                name = values.name

        arr = _coerce_values(values)
        arr.setflags(write=False)
        self._values = arr

        if index is None:
            self._index = pd.RangeIndex(len(arr))
        else:
            self._index = _check_index(pd.Index(index), len(arr))
        self._name = name

    @classmethod
    def from_pandas(cls, series: pd.Series) -> 'NumericSeries':
        """Build a NumericSeries from a pandas Series, keeping its index and name."""
        return cls(series)

    @classmethod
    def _from_array(cls, arr: np.ndarray, index: pd.Index, name: Any) -> 'NumericSeries':
        # Internal constructor for already-validated data
        result = cls.__new__(cls)
        arr = np.array(arr, dtype=float)
        arr.setflags(write=False)
        result._values = arr
        result._index = index
        result._name = name
        return result

    @property
    def name(self) -> Any:
        return self._name

    @property
    def index(self) -> pd.Index:
        """Position labels."""
        return self._index

    def labels(self) -> List[Any]:
        """Position labels as a list."""
        return self._index.tolist()

    def length(self) -> int:
        return len(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def value_at(self, i: int) -> Union[float, Missing]:
        """
        Get the value at a position.

        Args:
            i: Integer position (negative positions count from the end)

        Returns:
            The value, or MISSING
        """
        value = self._values[i]
        if np.isnan(value):
            return MISSING
        return float(value)

    def is_missing(self, i: int) -> bool:
        return bool(np.isnan(self._values[i]))

    def valid_mask(self) -> np.ndarray:
        """Boolean mask of non-missing positions."""
        return ~np.isnan(self._values)

    def valid_count(self) -> int:
        return int(np.count_nonzero(~np.isnan(self._values)))

    def slice(self, start: Optional[int] = None, end: Optional[int] = None) -> 'NumericSeries':
        """
        Positional slice [start, end), with Python slicing semantics.

        Args:
            start: First position included
            end: First position excluded

        Returns:
            A new NumericSeries
        """
        return NumericSeries._from_array(
            self._values[start:end], self._index[start:end], self._name
        )

    def lag(self, k: int) -> 'NumericSeries':
        """
        Shift values forward by k positions, keeping the position labels.

        The first k positions become missing. A negative k shifts backward
        and leaves the last |k| positions missing.

        Args:
            k: Number of positions to shift

        Returns:
            A new NumericSeries
        """
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
            raise InvalidLag(f"Lag must be an integer, got {k!r}")
        k = int(k)
        n = len(self._values)
        shifted = np.full(n, np.nan)
        if k == 0:
            shifted[:] = self._values
        elif 0 < k < n:
            shifted[k:] = self._values[:n - k]
        elif -n < k < 0:
            shifted[:n + k] = self._values[-k:]
        return NumericSeries._from_array(shifted, self._index, self._name)

    def reindex(self, labels: Union[pd.Index, List[Any]]) -> 'NumericSeries':
        """
        Realign the series onto new labels; labels not present become missing.

        Args:
            labels: Target position labels

        Returns:
            A new NumericSeries over the given labels
        """
        target = _check_index(pd.Index(labels), len(labels))
        if target.equals(self._index):
            return self
        if len(self._values) == 0:
            return NumericSeries._from_array(np.full(len(target), np.nan), target, self._name)
        positions = self._index.get_indexer(target)
        values = np.where(positions >= 0, self._values[positions], np.nan)
        return NumericSeries._from_array(values, target, self._name)

    def with_name(self, name: Any) -> 'NumericSeries':
        return NumericSeries._from_array(self._values, self._index, name)

    def to_numpy(self) -> np.ndarray:
        """Copy of the values with NaN for missing positions."""
        return self._values.copy()

    def to_pandas(self) -> pd.Series:
        return pd.Series(self._values.copy(), index=self._index, name=self._name)

    def __iter__(self) -> Iterator[Union[float, Missing]]:
        for i in range(len(self._values)):
            yield self.value_at(i)

    def __repr__(self) -> str:
        return (f"NumericSeries(name={self._name!r}, length={len(self)}, "
                f"valid={self.valid_count()})")


def as_series(obj: Any, name: Optional[Any] = None) -> NumericSeries:
    """
    Coerce input into a NumericSeries.

    Args:
        obj: NumericSeries or anything NumericSeries accepts
        name: Name to use when obj carries none

    Returns:
        NumericSeries
    """
    if isinstance(obj, NumericSeries):
        if name is not None and obj.name is None:
            return obj.with_name(name)
        return obj
    return NumericSeries(obj, name=name)


def aligned_values(x: NumericSeries, y: NumericSeries) -> Tuple[np.ndarray, np.ndarray]:
    """
    Align two series by position label.

    Labels are matched on their intersection, in x's order. When both
    series share the same index no reindexing happens.

    Args:
        x: First series
        y: Second series

    Returns:
        Tuple of float arrays (NaN for missing), of equal length
    """
    if x.index.equals(y.index):
        return x._values, y._values
    common = x.index.intersection(y.index, sort=False)
    return (x._values[x.index.get_indexer(common)],
            y._values[y.index.get_indexer(common)])


def complete_pairs(x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Drop positions missing in either array (pairwise-complete observations).

    Args:
        x: Float array
        y: Float array of the same length

    Returns:
        Tuple of arrays with no missing values
    """
    mask = ~(np.isnan(x) | np.isnan(y))
    return x[mask], y[mask]


class SeriesCollection:
    """
    An insertion-ordered mapping from names to NumericSeries.

    Names are unique; iteration, matrix rows and columns, and cross
    correlation output all follow insertion order.
    """

    def __init__(self,
                 data: Optional[Any] = None,
                 numeric_only: bool = False):
        """
        Initialize a SeriesCollection.

        Args:
            data: Mapping of name to series-like values, a pandas DataFrame,
                another SeriesCollection, or a list of named NumericSeries
            numeric_only: Silently drop non-numeric columns instead of raising
        """
        self._names = IndexHash()
        self._series: Dict[Any, NumericSeries] = {}

        if data is None:
            return

        if isinstance(data, SeriesCollection):
            items = list(data.items())
        elif isinstance(data, pd.DataFrame):
            if not data.columns.is_unique:
                raise InvalidIndex("DataFrame column names must be unique")
            items = [(col, data[col]) for col in data.columns]
        elif isinstance(data, Mapping):
            items = list(data.items())
        else:
            items = []
            for pos, series in enumerate(data):
                if not isinstance(series, NumericSeries):
                    raise TypeError(
                        "A list passed to SeriesCollection must contain NumericSeries"
                    )
                items.append((pos if series.name is None else series.name, series))

        for name, values in items:
            if name in self._names:
                raise InvalidIndex(f"Duplicate series name {name!r}")
            try:
                series = as_series(values, name=name)
            except NonNumericData:
                if not numeric_only:
                    raise
                logger.debug(f"Skipping non-numeric series {name!r}")
                continue
            if series.name != name:
                series = series.with_name(name)
            self._names = self._names.append(name)
            self._series[name] = series

    @classmethod
    def from_array(cls,
                   matrix: Any,
                   names: List[Any],
                   index: Optional[Any] = None) -> 'SeriesCollection':
        """
        Build a collection from a 2-D array whose columns are series.

        Args:
            matrix: 2-D array-like, one column per series
            names: One name per column
            index: Optional row labels shared by every series

        Returns:
            SeriesCollection
        """
        arr = np.asarray(matrix)
        if arr.ndim != 2:
            raise ShapeMismatch(f"Expected a 2-D array, got shape {arr.shape}")
        if len(names) != arr.shape[1]:
            raise ShapeMismatch(
                f"Got {len(names)} names for {arr.shape[1]} columns"
            )
        return cls({name: NumericSeries(arr[:, j], index=index)
                    for j, name in enumerate(names)})

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, numeric_only: bool = False) -> 'SeriesCollection':
        return cls(df, numeric_only=numeric_only)

    def names(self) -> List[Any]:
        """Series names in insertion order."""
        return self._names.get_names()

    def items(self) -> List[Tuple[Any, NumericSeries]]:
        return [(name, self._series[name]) for name in self._names]

    def values(self) -> List[NumericSeries]:
        return [self._series[name] for name in self._names]

    def __getitem__(self, name: Any) -> NumericSeries:
        if name not in self._series:
            raise KeyError(f"Series name '{name}' not found")
        return self._series[name]

    def __contains__(self, name: Any) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[Any]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def subset(self, names: List[Any]) -> 'SeriesCollection':
        """
        Create a collection with only the given names, in this collection's order.

        Args:
            names: Names to keep; unknown names are ignored

        Returns:
            A new SeriesCollection
        """
        result = SeriesCollection()
        result._names = self._names.subset(names)
        result._series = {name: self._series[name] for name in result._names}
        return result

    def with_series(self, name: Any, series: Any) -> 'SeriesCollection':
        """
        Return a new collection with a series added or replaced.

        Args:
            name: Series name
            series: Series-like values

        Returns:
            A new SeriesCollection
        """
        result = SeriesCollection(self)
        result._names = result._names.append(name)
        result._series[name] = as_series(series, name=name).with_name(name)
        return result

    def row_labels(self) -> pd.Index:
        """Ordered union of every member's position labels."""
        labels = None
        for series in self._series.values():
            if labels is None:
                labels = series.index
            elif not labels.equals(series.index):
                labels = labels.union(series.index, sort=False)
        if labels is None:
            return pd.Index([])
        return labels

    def row(self, label: Any) -> Dict[Any, Union[float, Missing]]:
        """
        Values at one position label across all series.

        Args:
            label: Position label

        Returns:
            Mapping of series name to value (MISSING where absent)
        """
        result = {}
        for name in self._names:
            series = self._series[name]
            pos = series.index.get_indexer([label])[0]
            result[name] = MISSING if pos < 0 else series.value_at(pos)
        return result

    def to_dataframe(self) -> pd.DataFrame:
        """Export to a pandas DataFrame, with NaN for missing values."""
        return pd.DataFrame({name: series.to_pandas() for name, series in self.items()},
                            columns=self.names())

    def __repr__(self) -> str:
        return f"SeriesCollection(series={len(self)}, names={self.names()!r})"


def as_collection(obj: Any, numeric_only: bool = False) -> SeriesCollection:
    """
    Coerce input into a SeriesCollection.

    Args:
        obj: SeriesCollection, mapping or pandas DataFrame
        numeric_only: Drop non-numeric columns instead of raising

    Returns:
        SeriesCollection
    """
    if isinstance(obj, SeriesCollection) and not numeric_only:
        return obj
    return SeriesCollection(obj, numeric_only=numeric_only)
