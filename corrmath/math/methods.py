"""
Correlation methods and their kernels.

A method name is resolved to a CorrelationMethod once, at the entry of each
engine call, and the kernel it carries is then applied to every pair. Kernels
take two equal-length float arrays that contain no missing values and at
least two observations.
"""

from enum import Enum
from typing import Callable, Union

import numpy as np
import scipy.stats

from corrmath.exceptions import UnknownMethod
from corrmath.math.missing import Missing, NON_FINITE, NO_PAIRS, ZERO_VARIANCE

CorrelationValue = Union[float, Missing]
Kernel = Callable[[np.ndarray, np.ndarray], CorrelationValue]


def _is_constant(values: np.ndarray) -> bool:
    return bool(np.all(values == values[0]))


def clip_correlation(r: float) -> CorrelationValue:
    if not np.isfinite(r):
        return Missing(NON_FINITE)
    return float(min(1.0, max(-1.0, r)))


def pearson_kernel(x: np.ndarray, y: np.ndarray) -> CorrelationValue:
    """
    Pearson product-moment correlation.

    Args:
        x: Complete observations
        y: Complete observations aligned with x

    Returns:
        Correlation in [-1, 1], or Missing when either side has zero variance
    """
    if _is_constant(x) or _is_constant(y):
        return Missing(ZERO_VARIANCE)

    with np.errstate(all='ignore'):
        dx = x - x.mean()
        dy = y - y.mean()
        sxx = np.sum(dx * dx)
        syy = np.sum(dy * dy)
        sxy = np.sum(dx * dy)
        if not (np.isfinite(sxx) and np.isfinite(syy) and np.isfinite(sxy)):
            return Missing(NON_FINITE)
        if sxx == 0 or syy == 0:
            return Missing(ZERO_VARIANCE)
        r = sxy / np.sqrt(sxx * syy)

    return clip_correlation(r)


def spearman_kernel(x: np.ndarray, y: np.ndarray) -> CorrelationValue:
    """
    Spearman rank correlation: Pearson over average ranks.

    Args:
        x: Complete observations
        y: Complete observations aligned with x

    Returns:
        Correlation in [-1, 1], or Missing
    """
    return pearson_kernel(
        scipy.stats.rankdata(x, method='average'),
        scipy.stats.rankdata(y, method='average')
    )


def kendall_kernel(x: np.ndarray, y: np.ndarray) -> CorrelationValue:
    """
    Kendall rank correlation over concordant and discordant pairs.

    Pairs tied in either series count as neither concordant nor
    discordant, so the result is (C - D) / (C + D).

    Args:
        x: Complete observations
        y: Complete observations aligned with x

    Returns:
        Correlation in [-1, 1], or Missing when every pair is tied
    """
    n = len(x)
    concordant = 0
    discordant = 0
    for i in range(n - 1):
        signs = np.sign(x[i + 1:] - x[i]) * np.sign(y[i + 1:] - y[i])
        concordant += int(np.count_nonzero(signs > 0))
        discordant += int(np.count_nonzero(signs < 0))

    total = concordant + discordant
    if total == 0:
        return Missing(NO_PAIRS)
    return clip_correlation((concordant - discordant) / total)


def weighted_pearson_kernel(x: np.ndarray,
                            y: np.ndarray,
                            weights: np.ndarray) -> CorrelationValue:
    """
    Weighted Pearson correlation.

    Weights are normalised to sum to one. Bias corrections cancel in the
    ratio, so none is applied.

    Args:
        x: Complete observations
        y: Complete observations aligned with x
        weights: Non-negative weight per observation

    Returns:
        Correlation in [-1, 1], or Missing
    """
    if _is_constant(x) or _is_constant(y):
        return Missing(ZERO_VARIANCE)

    with np.errstate(all='ignore'):
        w = weights / np.sum(weights)
        mx = np.sum(w * x)
        my = np.sum(w * y)
        dx = x - mx
        dy = y - my
        var_x = np.sum(w * dx * dx)
        var_y = np.sum(w * dy * dy)
        cov = np.sum(w * dx * dy)
        if not (np.isfinite(var_x) and np.isfinite(var_y) and np.isfinite(cov)):
            return Missing(NON_FINITE)
        if var_x <= 0 or var_y <= 0:
            return Missing(ZERO_VARIANCE)
        r = cov / np.sqrt(var_x * var_y)

    return clip_correlation(r)


class CorrelationMethod(Enum):
    """Supported correlation methods."""

    PEARSON = 'pearson'
    SPEARMAN = 'spearman'
    KENDALL = 'kendall'

    @classmethod
    def parse(cls, method: Union[str, 'CorrelationMethod']) -> 'CorrelationMethod':
        """
        Resolve a method name or member.

        Args:
            method: 'pearson', 'spearman' or 'kendall' (case-insensitive), or a member

        Returns:
            CorrelationMethod
        """
        if isinstance(method, cls):
            return method
        if isinstance(method, str):
            try:
                return cls(method.strip().lower())
            except ValueError:
                pass
        raise UnknownMethod(
            f"Unknown correlation method: {method!r}. "
            f"Choose from {[m.value for m in cls]}."
        )

    @property
    def kernel(self) -> Kernel:
        return _KERNELS[self]

    @property
    def rank_based(self) -> bool:
        return self is not CorrelationMethod.PEARSON


_KERNELS = {
    CorrelationMethod.PEARSON: pearson_kernel,
    CorrelationMethod.SPEARMAN: spearman_kernel,
    CorrelationMethod.KENDALL: kendall_kernel,
}
