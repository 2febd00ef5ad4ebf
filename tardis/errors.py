"""Error taxonomy shared by the configuration subsystem.

Every stage of resolution raises a subclass of TardisError. Each subclass
carries an ErrorKind and an HTTP-like status code so callers (process
bootstrap, management tooling) can map failures without string matching.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable error kinds."""

    NOT_FOUND = "NOT_FOUND"
    """A required source is missing or a remote document was never published."""

    FORMAT_ERROR = "FORMAT_ERROR"
    """Parse or decode failure (bad document, malformed token, bad structure)."""

    BAD_REQUEST = "BAD_REQUEST"
    """An invalid precondition, e.g. a salt that is not 16 bytes."""

    IO_ERROR = "IO_ERROR"
    """Local file I/O or remote transport failure."""

    TIMEOUT = "TIMEOUT"
    """A remote call exceeded its timeout."""

    UNAUTHORIZED = "UNAUTHORIZED"
    """The remote backend rejected the credentials."""

    DEPENDENCY_MISSING = "DEPENDENCY_MISSING"
    """An optional capability (e.g. encryption) is not installed."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected invariant violation."""


class TardisError(Exception):
    """Base exception for all configuration errors.

    Subclasses set status_code and kind.
    """

    status_code: int = 500
    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    @property
    def code(self) -> str:
        """Return the status code as a string."""
        return str(self.status_code)

    def __str__(self) -> str:
        return f"{self.status_code}##{self.message}"


class BadRequestError(TardisError):
    """Raised when a precondition of resolution is violated."""

    status_code = 400
    kind = ErrorKind.BAD_REQUEST


class UnauthorizedError(TardisError):
    """Raised when the configuration center rejects authentication."""

    status_code = 401
    kind = ErrorKind.UNAUTHORIZED


class NotFoundError(TardisError):
    """Raised when a required source does not exist."""

    status_code = 404
    kind = ErrorKind.NOT_FOUND


class FormatError(TardisError):
    """Raised when a document, token or merged structure cannot be decoded."""

    status_code = 406
    kind = ErrorKind.FORMAT_ERROR


class InternalError(TardisError):
    """Raised on an unexpected invariant violation."""

    status_code = 500
    kind = ErrorKind.INTERNAL_ERROR


class DependencyMissingError(TardisError):
    """Raised when a capability requires a package that is not installed."""

    status_code = 501
    kind = ErrorKind.DEPENDENCY_MISSING


class TardisIOError(TardisError):
    """Raised on local I/O or remote transport failure."""

    status_code = 503
    kind = ErrorKind.IO_ERROR


class TardisTimeoutError(TardisIOError):
    """Raised when a remote call exceeds its timeout."""

    status_code = 408
    kind = ErrorKind.TIMEOUT
