"""
Exceptions for the corrmath package.

Every error raised for malformed input derives from CorrelationError, and
also from the builtin exception a caller would naturally expect
(ValueError or TypeError).
"""


class CorrelationError(Exception):
    """Base class for all corrmath exceptions."""
    pass


class ShapeMismatch(CorrelationError, ValueError):
    """Raised when an auxiliary index or name list does not match the data length."""
    pass


class InvalidIndex(CorrelationError, ValueError):
    """Raised when position labels are duplicated or not monotonically ordered."""
    pass


class AxisMismatch(CorrelationError, ValueError):
    """Raised when a row-axis cross-correlation is requested over incompatible row domains."""
    pass


class InvalidAxis(CorrelationError, ValueError):
    """Raised when an axis argument is not one of 0, 1, 'index' or 'columns'."""
    pass


class InvalidLag(CorrelationError, ValueError):
    """Raised when a lag is not an integer or is out of range for the series."""
    pass


class UnknownMethod(CorrelationError, ValueError):
    """Raised when a correlation method name is not recognised."""
    pass


class UnsupportedMethod(CorrelationError, ValueError):
    """Raised when a correlation method is not defined for the requested window type."""
    pass


class InvalidWindow(CorrelationError, ValueError):
    """Raised when a window specification has an invalid size, decay or min_periods."""
    pass


class NonNumericData(CorrelationError, TypeError):
    """Raised when a series is built from non-numeric values."""
    pass


class ConfigurationError(CorrelationError, ValueError):
    """Raised when a configuration value cannot be interpreted."""
    pass


class InvalidMinPeriods(CorrelationError, ValueError):
    """Raised when min_periods is not a non-negative integer."""
    pass
