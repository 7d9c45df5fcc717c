"""Configuration loading and constants for the dashboard.

Settings come from the command line and the environment only. The API
token is read once here and handed to the fetch client explicitly.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .exceptions import ConfigError


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

# Checked in order; the first non-empty value wins
TOKEN_ENV_VARS = ("GH_REPO_HEALTHCHECKS_TOKEN", "GITHUB_TOKEN")

DEFAULT_RECENCY_WINDOW_DAYS = 30
DEFAULT_REFRESH_INTERVAL_SECONDS = 300
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30

# GitHub caps per_page at 100
PAGE_SIZE = 100

DEFAULT_LOG_PATH = Path(".repo-health") / "logs" / "dashboard.log"

APP_TITLE = "Team Repo Health Dashboard"


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration."""
    token: str | None = field(default=None, repr=False)
    repositories: tuple = ()
    recency_window_days: int = DEFAULT_RECENCY_WINDOW_DAYS
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    api_url: str = GITHUB_API_URL
    demo: bool = False
    debug: bool = False
    log_file: Path = DEFAULT_LOG_PATH

    @property
    def auto_refresh_enabled(self) -> bool:
        return self.refresh_interval > 0


def read_token(environ: Mapping[str, str] | None = None) -> str | None:
    """Return the API token from the environment, or None if unset."""
    env = os.environ if environ is None else environ
    for name in TOKEN_ENV_VARS:
        value = env.get(name, "").strip()
        if value:
            return value
    return None


def load_settings(args: Any, environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from parsed command-line args and the environment.

    Args:
        args: argparse namespace with repos, window_days, interval,
            timeout, demo, debug and log_file attributes
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigError: If a repository name or numeric option is invalid
    """
    from .models import RepositoryIdentity

    identities = []
    for text in getattr(args, "repos", None) or []:
        try:
            identities.append(RepositoryIdentity.parse(text))
        except ValueError as e:
            raise ConfigError(str(e)) from e

    window_days = getattr(args, "window_days", None)
    if window_days is None:
        window_days = DEFAULT_RECENCY_WINDOW_DAYS
    if window_days <= 0:
        raise ConfigError(f"--window-days must be positive, got {window_days}")

    interval = getattr(args, "interval", None)
    if interval is None:
        interval = DEFAULT_REFRESH_INTERVAL_SECONDS
    if interval < 0:
        raise ConfigError(f"--interval must be >= 0, got {interval}")

    timeout = getattr(args, "timeout", None)
    if timeout is None:
        timeout = DEFAULT_REQUEST_TIMEOUT_SECONDS
    if timeout <= 0:
        raise ConfigError(f"--timeout must be positive, got {timeout}")

    log_file = getattr(args, "log_file", None)

    return Settings(
        token=read_token(environ),
        repositories=tuple(dict.fromkeys(identities)),
        recency_window_days=window_days,
        refresh_interval=interval,
        request_timeout=timeout,
        demo=bool(getattr(args, "demo", False)),
        debug=bool(getattr(args, "debug", False)),
        log_file=Path(log_file) if log_file else Path.cwd() / DEFAULT_LOG_PATH,
    )
