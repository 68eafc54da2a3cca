"""Error types raised by the pattern pipeline."""


class StitchkitError(Exception):
    pass


class InvalidInput(StitchkitError, ValueError):
    """Bad image buffer or generation parameters; raised before any work is done."""


class ConfigurationError(StitchkitError, RuntimeError):
    """The thread catalog is missing, empty or malformed."""


class NotFound(StitchkitError, LookupError):
    """Unknown palette slot or thread code in an edit session."""


class CapacityExceeded(UserWarning):
    """More palette slots than symbols; symbols are reused cyclically."""


__all__ = [
    "StitchkitError",
    "InvalidInput",
    "ConfigurationError",
    "NotFound",
    "CapacityExceeded",
]
