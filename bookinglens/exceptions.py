"""Error kinds raised by BookingLens components."""


class BookingLensError(Exception):
    """Base class for all BookingLens errors."""


class EmptyInputError(BookingLensError, ValueError):
    """Raised when aggregation is given zero booking records."""


class NotInitializedError(BookingLensError, RuntimeError):
    """Raised when the query service is used before a successful initialize."""


class ModelLoadError(BookingLensError, RuntimeError):
    """Raised when the embedding model cannot be loaded."""


class UnknownReportTypeError(BookingLensError, ValueError):
    """Raised when an analytics report type is not recognized."""
