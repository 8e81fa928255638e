"""Custom exceptions for RECON health."""


class ReconHealthError(Exception):
    """Base exception for all RECON health errors."""

    pass


class ConfigurationError(ReconHealthError):
    """Raised when there is a configuration error."""

    pass


class AuthenticationError(ReconHealthError):
    """Raised when an ingestion request fails the shared-secret check."""

    pass


class ParsingError(ReconHealthError):
    """Raised when a document cannot be read at all."""

    pass


class EmptyImportError(ReconHealthError):
    """Raised when a readable document yields no dated records."""

    pass


class MergeError(ReconHealthError):
    """Raised when records cannot be merged into a series."""

    pass


class StorageError(ReconHealthError):
    """Raised when a storage adapter fails to load or save."""

    pass
