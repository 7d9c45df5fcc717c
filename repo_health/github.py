"""
GitHub REST client
Fetches repository health snapshots for the dashboard
"""

import logging
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from .config import (
    DEFAULT_RECENCY_WINDOW_DAYS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    GITHUB_API_URL,
    GITHUB_API_VERSION,
    PAGE_SIZE,
    TOKEN_ENV_VARS,
)
from .exceptions import (
    FetchTimeoutError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
)
from .models import RepositoryIdentity, RepositorySnapshot

logger = logging.getLogger(__name__)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a GitHub ISO 8601 timestamp ('...Z') into an aware datetime."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class GitHubClient:
    """
    Fetch client for the GitHub REST API

    Usage:
        client = GitHubClient(token=os.environ['GH_REPO_HEALTHCHECKS_TOKEN'])
        snapshots = client.fetch_snapshots(frozenset({RepositoryIdentity('org', 'repo')}))

    fetch_snapshots() is blocking and is meant to run off the UI thread.
    It never mutates its arguments and raises a FetchError subclass on
    any failure; a refresh is all-or-nothing.
    """

    def __init__(
        self,
        token: Optional[str],
        api_url: str = GITHUB_API_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        recency_window_days: int = DEFAULT_RECENCY_WINDOW_DAYS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.recency_window = timedelta(days=recency_window_days)
        self._token = token
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._lock = threading.Lock()
        self._closed = threading.Event()

    # -- sessions ----------------------------------------------------------

    @property
    def session(self) -> requests.Session:
        """The calling thread's session; overlapping fetches never share one"""
        session = getattr(self._local, 'session', None)
        if session is None:
            session = self._new_session()
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def _new_session(self) -> requests.Session:
        session = requests.Session()
        session.headers['Accept'] = 'application/vnd.github+json'
        session.headers['X-GitHub-Api-Version'] = GITHUB_API_VERSION
        if self._token:
            session.headers['Authorization'] = f'Bearer {self._token}'
        return session

    # -- context manager ---------------------------------------------------

    def __enter__(self) -> 'GitHubClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Close every session and stop fetches at their next request"""
        self._closed.set()
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    # -- HTTP --------------------------------------------------------------

    def _request(self, method: str, url: str, params: Optional[Dict] = None) -> requests.Response:
        """Make HTTP request to API, mapping failures to FetchError kinds"""
        if self.closed:
            raise NetworkError('Client closed')
        if not url.startswith('http'):
            url = f'{self.api_url}{url}'

        try:
            response = self.session.request(method, url, params=params, timeout=self.timeout)
        except requests.Timeout:
            raise FetchTimeoutError(f'Request to {url} timed out after {self.timeout}s')
        except requests.RequestException as e:
            raise NetworkError(f'Request to {url} failed: {e}')

        if response.status_code < 400:
            return response

        message = self._error_message(response)
        status = response.status_code

        if status == 401:
            raise UnauthorizedError(f'GitHub authentication failed: {message}')
        if status in (403, 429) and self._is_rate_limited(response, message):
            retry_after = self._retry_after(response)
            raise RateLimitedError(
                f'GitHub API rate limit exceeded: {message}',
                retry_after=retry_after,
                status_code=status,
            )
        if status == 403:
            raise UnauthorizedError(f'GitHub access forbidden: {message}')
        if status == 404:
            raise NotFoundError(f'Not found: {url}')
        raise NetworkError(f'GitHub API error {status}: {message}', status_code=status)

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict) and body.get('message'):
            return str(body['message'])
        return response.reason or ''

    @staticmethod
    def _is_rate_limited(response: requests.Response, message: str) -> bool:
        if response.status_code == 429:
            return True
        if response.headers.get('X-RateLimit-Remaining') == '0':
            return True
        if 'Retry-After' in response.headers:
            return True
        return 'rate limit' in message.lower()

    @staticmethod
    def _retry_after(response: requests.Response) -> Optional[float]:
        """Seconds until the limit resets, from Retry-After or X-RateLimit-Reset"""
        retry_after = response.headers.get('Retry-After')
        if retry_after:
            try:
                return max(0.0, float(retry_after))
            except ValueError:
                pass
        reset = response.headers.get('X-RateLimit-Reset')
        if reset:
            try:
                return max(0.0, float(reset) - time.time())
            except ValueError:
                pass
        return None

    def _get_json(self, path: str, params: Optional[Dict] = None) -> Any:
        return self._request('GET', path, params=params).json()

    def _paginate(self, path: str, params: Optional[Dict] = None) -> List[Dict[str, Any]]:
        """Follow Link: rel="next" headers and collect every item"""
        items: List[Dict[str, Any]] = []
        url: Optional[str] = path
        page_params = dict(params or {})
        page_params.setdefault('per_page', PAGE_SIZE)
        while url:
            response = self._request('GET', url, params=page_params)
            page = response.json()
            if isinstance(page, list):
                items.extend(page)
            next_link = response.links.get('next') if response.links else None
            url = next_link.get('url') if next_link else None
            # The next URL already carries the query string
            page_params = None
        return items

    # -- API ---------------------------------------------------------------

    def list_user_repositories(self) -> List[Dict[str, Any]]:
        """List repositories owned by the authenticated user, most recently updated first"""
        return self._paginate('/user/repos', params={'type': 'owner', 'sort': 'updated'})

    def get_repository(self, identity: RepositoryIdentity) -> Dict[str, Any]:
        return self._get_json(f'/repos/{identity.owner}/{identity.name}')

    def count_open_pull_requests(self, identity: RepositoryIdentity) -> int:
        pulls = self._paginate(
            f'/repos/{identity.owner}/{identity.name}/pulls',
            params={'state': 'open'},
        )
        return len(pulls)

    def fetch_snapshots(self, identities: Iterable[RepositoryIdentity]) -> List[RepositorySnapshot]:
        """Fetch one snapshot per repository, all stamped with one as-of time

        Args:
            identities: Repositories to fetch. Empty means every repository
                owned by the authenticated user.

        Returns:
            List of snapshots

        Raises:
            UnauthorizedError: No token configured, or the token was rejected
            NotFoundError: One or more repositories do not exist
            RateLimitedError, NetworkError, FetchTimeoutError
        """
        if not self._token:
            raise UnauthorizedError(
                f'No GitHub token set. Export one of: {", ".join(TOKEN_ENV_VARS)}'
            )

        wanted = sorted(frozenset(identities))
        as_of = self._clock()

        if not wanted:
            repos = self.list_user_repositories()
            logger.info('Discovered %d repositories for authenticated user', len(repos))
            return [self._build_snapshot(repo, as_of) for repo in repos]

        repos = []
        missing = []
        for identity in wanted:
            try:
                repos.append(self.get_repository(identity))
            except NotFoundError:
                missing.append(identity)

        if missing:
            names = ', '.join(i.full_name for i in missing)
            raise NotFoundError(f'Repositories not found: {names}', missing=missing)

        return [self._build_snapshot(repo, as_of) for repo in repos]

    def _build_snapshot(self, repo: Dict[str, Any], as_of: datetime) -> RepositorySnapshot:
        owner = (repo.get('owner') or {}).get('login') or ''
        identity = RepositoryIdentity(owner=owner, name=repo.get('name') or '')
        return RepositorySnapshot(
            identity=identity,
            open_pull_request_count=self.count_open_pull_requests(identity),
            as_of=as_of,
            last_activity_at=parse_timestamp(repo.get('pushed_at') or repo.get('updated_at')),
            primary_language=repo.get('language'),
            star_count=int(repo.get('stargazers_count') or 0),
            description=repo.get('description'),
            html_url=repo.get('html_url') or '',
            recency_window=self.recency_window,
        )
