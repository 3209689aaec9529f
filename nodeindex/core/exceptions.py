from __future__ import annotations

from typing import Any

__all__ = [
    "BaseError",
    "BadRequestError",
    "ConfigurationError",
    "ConflictError",
    "InvalidStateError",
    "LoadError",
    "NotFoundError",
    "NotSupportedError",
    "PartialFlushError",
    "PreconditionError",
    "TransportError",
]


class BaseError(Exception):
    status_code: int


class PartialFlushError(BaseError):
    """Bulk request was accepted but some of its operations failed."""

    status_code = 207

    result: Any

    def __init__(self, message: str, result: Any = None):
        super().__init__(message)
        self.result = result

    @property
    def failures(self) -> list:
        if self.result is None:
            return []
        return self.result.failures


class BadRequestError(BaseError):
    status_code = 400


class ConfigurationError(BadRequestError):
    """Indexing configuration or expression is invalid."""


class NotFoundError(BaseError):
    status_code = 404


class ConflictError(BaseError):
    status_code = 409


class PreconditionError(BaseError):
    """Operation invoked in a state that does not allow it."""

    status_code = 412


class InvalidStateError(PreconditionError):
    pass


class NotSupportedError(BaseError):
    status_code = 415


class TransportError(BaseError):
    """No response was obtained from the search engine."""

    status_code = 503


class LoadError(Exception):
    status_code = 500
