"""Entry point: python -m repo_health.dashboard"""

import argparse
import logging
import sys

from ..config import (
    DEFAULT_LOG_PATH,
    DEFAULT_RECENCY_WINDOW_DAYS,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    TOKEN_ENV_VARS,
    Settings,
    load_settings,
)
from ..exceptions import ConfigError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repo-health",
        description="Terminal dashboard for GitHub repository health",
        epilog=f"The API token is read from {' or '.join(TOKEN_ENV_VARS)}.",
    )
    parser.add_argument(
        "repos",
        nargs="*",
        metavar="OWNER/NAME",
        help="Repositories to monitor (default: all repositories you own)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_REFRESH_INTERVAL_SECONDS,
        help=f"Auto-refresh interval in seconds, 0 to disable (default: {DEFAULT_REFRESH_INTERVAL_SECONDS})",
    )
    parser.add_argument(
        "--window-days",
        type=int,
        default=DEFAULT_RECENCY_WINDOW_DAYS,
        help=f"Days of inactivity before a repo counts as stale (default: {DEFAULT_RECENCY_WINDOW_DAYS})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS,
        help=f"HTTP request timeout in seconds (default: {DEFAULT_REQUEST_TIMEOUT_SECONDS})",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Use fake data with random latency and failures instead of GitHub",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log at DEBUG level",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help=f"Log file path (default: ./{DEFAULT_LOG_PATH})",
    )
    return parser


def setup_logging(settings: Settings) -> None:
    settings.log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(settings.log_file),
        level=logging.DEBUG if settings.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_fetch(settings: Settings):
    """Return the fetch function for the configured client."""
    if settings.demo:
        from ..demo import DemoClient

        return DemoClient(recency_window_days=settings.recency_window_days).fetch_snapshots

    from ..github import GitHubClient

    client = GitHubClient(
        token=settings.token,
        api_url=settings.api_url,
        timeout=settings.request_timeout,
        recency_window_days=settings.recency_window_days,
    )
    return client.fetch_snapshots


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args)
    except ConfigError as e:
        print(f"repo-health: {e}", file=sys.stderr)
        return 2

    setup_logging(settings)
    logger = logging.getLogger("repo_health")

    from .app import RepoHealthDashboard

    try:
        fetch = build_fetch(settings)
        app = RepoHealthDashboard(
            fetch=fetch,
            identities=settings.repositories,
            refresh_interval=settings.refresh_interval,
            on_quit=fetch.__self__.close,
        )
        app.run()
    except Exception:
        logger.exception("Dashboard crashed")
        print(f"repo-health: crashed, see {settings.log_file}", file=sys.stderr)
        return 1
    return app.return_code or 0


if __name__ == "__main__":
    sys.exit(main())
