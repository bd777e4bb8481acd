"""Exception types raised by the book model."""


class ReviewError(Exception):
    """Base class for all book model errors."""


class NotFoundError(ReviewError, LookupError):
    """An unknown chapter, part, reference id or a missing named file."""


class DuplicateIdError(ReviewError, ValueError):
    """Two elements of the same kind share an identifier."""


class ConfigurationError(ReviewError, ValueError):
    """Invalid configuration file or setting."""
