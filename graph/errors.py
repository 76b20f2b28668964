"""Exceptions raised while scanning a tree or building its cross reference."""


class XrefError(Exception):
    """Base exception for symxref errors."""

    pass


class ScanError(XrefError):
    """Raised when a file in the scanned tree cannot be read."""

    pass


class ConfigError(XrefError):
    """Raised when a configuration file is missing or malformed."""

    pass


class InternalInconsistencyError(XrefError):
    """Raised when an edge points at a record that does not exist."""

    pass
