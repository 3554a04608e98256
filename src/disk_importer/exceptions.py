"""Exception hierarchy for disk image imports."""


class ImporterError(Exception):
    """Base class for all import errors."""


class InvalidEndpointError(ImporterError, ValueError):
    """The source URL could not be parsed into bucket/object coordinates."""


class ClientCreationError(ImporterError):
    """The backend storage client could not be constructed."""


class InvalidImageError(ImporterError):
    """The object content is not a usable disk image."""


class InvalidPhaseError(ImporterError, RuntimeError):
    """An operation was called while the data source was in the wrong phase."""


class TransferError(ImporterError, OSError):
    """Streaming the object to local storage failed."""


class SourceUnavailableError(ImporterError, OSError):
    """The remote object could not be opened for reading."""
