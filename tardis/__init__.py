"""Tardis: layered configuration resolution with remote hot-reload."""

from tardis.errors import (
    BadRequestError,
    DependencyMissingError,
    ErrorKind,
    FormatError,
    InternalError,
    NotFoundError,
    TardisError,
    TardisIOError,
    TardisTimeoutError,
    UnauthorizedError,
)

__version__ = "0.1.0"

__all__ = [
    "BadRequestError",
    "DependencyMissingError",
    "ErrorKind",
    "FormatError",
    "InternalError",
    "NotFoundError",
    "TardisError",
    "TardisIOError",
    "TardisTimeoutError",
    "UnauthorizedError",
    "__version__",
]
