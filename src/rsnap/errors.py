"""Typed exceptions for rsnap."""


class RsnapError(Exception):
    """Base exception for rsnap failures."""


class ConfigurationError(RsnapError):
    """Raised when the marker file or command options are invalid."""


class PolicyConflictError(ConfigurationError):
    """Raised when more than one retention mode is requested."""


class InvalidPolicyError(ConfigurationError):
    """Raised when a retention parameter is out of range."""


class NotFoundError(RsnapError):
    """Raised when a repository, parent, or archive does not exist."""


class RepositoryNotFoundError(NotFoundError):
    """Raised when no marker file exists at or above a directory."""


class InsufficientArchivesError(RsnapError):
    """Raised when a count-based policy asks for more archives than exist."""


class InvalidSelectionError(RsnapError):
    """Raised when interactive selection input cannot be applied."""


class TransferError(RsnapError):
    """Raised when the backup engine fails to create or delete an archive."""


class ArchiveCollisionError(TransferError):
    """Raised when the new archive identifier is already taken."""
