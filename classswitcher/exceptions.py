"""
Application-specific exceptions.
"""


class InvalidTimeError(ValueError):
    """Raised when a clock time string cannot be parsed."""
    pass


class UnknownTermError(ValueError):
    """Raised when a term code is not in the configured term table."""
    pass


class DataLoadError(Exception):
    """Raised when reference data cannot be read or decoded."""
    pass
