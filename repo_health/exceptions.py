"""
Repo health exceptions
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .models import RepositoryIdentity


class FetchErrorKind(Enum):
    """Failure kinds a refresh can settle with."""

    UNAUTHORIZED = "Unauthorized"
    RATE_LIMITED = "RateLimited"
    NOT_FOUND = "NotFound"
    NETWORK = "NetworkError"
    TIMEOUT = "Timeout"
    UNEXPECTED = "Unexpected"
    # Internal only: a result whose generation is no longer current.
    SUPERSEDED = "Superseded"

    @property
    def label(self) -> str:
        return self.value


class RepoHealthError(Exception):
    """Base exception for all repo health errors"""

    pass


class ConfigError(RepoHealthError):
    """Raised when command-line or environment configuration is invalid"""

    pass


class FetchError(RepoHealthError):
    """Raised when a refresh cannot produce a complete snapshot set"""

    kind: FetchErrorKind = FetchErrorKind.UNEXPECTED

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def message(self) -> str:
        return str(self)


class UnauthorizedError(FetchError):
    """Raised when the token is missing or rejected (401)"""

    kind = FetchErrorKind.UNAUTHORIZED

    def __init__(self, message: str):
        super().__init__(message, status_code=401)


class RateLimitedError(FetchError):
    """Raised when the API rate limit is exhausted (403/429)"""

    kind = FetchErrorKind.RATE_LIMITED

    def __init__(self, message: str, retry_after: float | None = None, status_code: int = 429):
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


class NotFoundError(FetchError):
    """Raised when one or more requested repositories do not exist (404)"""

    kind = FetchErrorKind.NOT_FOUND

    def __init__(self, message: str, missing: Iterable[RepositoryIdentity] = ()):
        super().__init__(message, status_code=404)
        self.missing = tuple(missing)


class NetworkError(FetchError):
    """Raised on connection failures and unexpected HTTP errors"""

    kind = FetchErrorKind.NETWORK


class FetchTimeoutError(FetchError):
    """Raised when a request exceeds the client timeout"""

    kind = FetchErrorKind.TIMEOUT
