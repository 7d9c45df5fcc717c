"""
Team repository health dashboard

Polls GitHub for pull-request load and recent activity across a set of
repositories and renders the result in a Textual TUI.
"""

from .exceptions import (
    ConfigError,
    FetchError,
    FetchErrorKind,
    FetchTimeoutError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    RepoHealthError,
    UnauthorizedError,
)
from .models import (
    FetchResult,
    RefreshSession,
    RepositoryIdentity,
    RepositorySnapshot,
    RepositoryStatus,
    SessionStatus,
    classify,
)

__version__ = "0.1.0"
__all__ = [
    "ConfigError",
    "FetchError",
    "FetchErrorKind",
    "FetchResult",
    "FetchTimeoutError",
    "NetworkError",
    "NotFoundError",
    "RateLimitedError",
    "RefreshSession",
    "RepoHealthError",
    "RepositoryIdentity",
    "RepositorySnapshot",
    "RepositoryStatus",
    "SessionStatus",
    "UnauthorizedError",
    "classify",
]
