"""Tests for GitHubClient with the HTTP session mocked out."""

import threading
from unittest.mock import MagicMock, patch

import pytest
import requests

from repo_health.exceptions import (
    FetchTimeoutError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
)
from repo_health.github import GitHubClient, parse_timestamp
from repo_health.models import RepositoryIdentity, RepositoryStatus

API = "https://api.github.com"


def make_response(status_code=200, json_data=None, headers=None, links=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data if json_data is not None else {}
    response.headers = headers or {}
    response.links = links or {}
    response.reason = "Error" if status_code >= 400 else "OK"
    response.text = ""
    return response


def repo_json(owner, name, pushed_at="2026-10-14T12:00:00Z", **extra):
    data = {
        "name": name,
        "owner": {"login": owner},
        "pushed_at": pushed_at,
        "language": "Python",
        "stargazers_count": 12,
        "description": f"{name} service",
        "html_url": f"https://github.com/{owner}/{name}",
    }
    data.update(extra)
    return data


@pytest.fixture
def client(now):
    return GitHubClient(token="t0ken", clock=lambda: now)


def route(routes):
    """Build a session.request side effect dispatching on the URL."""

    def _request(method, url, params=None, timeout=None):
        for suffix, response in routes.items():
            if url.endswith(suffix):
                return response
        raise AssertionError(f"Unexpected request: {method} {url}")

    return _request


class TestSessionSetup:
    def test_auth_header_set(self, client):
        assert client.session.headers["Authorization"] == "Bearer t0ken"
        assert client.session.headers["Accept"] == "application/vnd.github+json"

    def test_no_token_no_header(self):
        assert "Authorization" not in GitHubClient(token=None).session.headers

    def test_missing_token_is_unauthorized(self):
        with pytest.raises(UnauthorizedError, match="GH_REPO_HEALTHCHECKS_TOKEN"):
            GitHubClient(token=None).fetch_snapshots(frozenset())


class TestFetchSnapshots:
    def test_builds_snapshots(self, client, now):
        routes = {
            "/repos/acme/api": make_response(json_data=repo_json("acme", "api")),
            "/repos/acme/api/pulls": make_response(json_data=[{"number": 1}, {"number": 2}]),
            "/repos/acme/web": make_response(json_data=repo_json("acme", "web", pushed_at="2026-08-01T00:00:00Z")),
            "/repos/acme/web/pulls": make_response(json_data=[]),
        }
        ids = frozenset({RepositoryIdentity("acme", "web"), RepositoryIdentity("acme", "api")})

        with patch.object(client.session, "request", side_effect=route(routes)):
            snapshots = client.fetch_snapshots(ids)

        by_name = {s.full_name: s for s in snapshots}
        api = by_name["acme/api"]
        assert api.open_pull_request_count == 2
        assert api.status is RepositoryStatus.ACTIVE
        assert api.primary_language == "Python"
        assert api.star_count == 12
        assert api.html_url == "https://github.com/acme/api"
        assert by_name["acme/web"].status is RepositoryStatus.STALE
        assert {s.as_of for s in snapshots} == {now}

    def test_does_not_mutate_identities(self, client):
        ids = {RepositoryIdentity("acme", "api")}
        routes = {
            "/repos/acme/api": make_response(json_data=repo_json("acme", "api")),
            "/repos/acme/api/pulls": make_response(json_data=[]),
        }
        with patch.object(client.session, "request", side_effect=route(routes)):
            client.fetch_snapshots(ids)
        assert ids == {RepositoryIdentity("acme", "api")}

    def test_partial_not_found_fails_whole_refresh(self, client):
        routes = {
            "/repos/acme/api": make_response(json_data=repo_json("acme", "api")),
            "/repos/acme/gone": make_response(404, {"message": "Not Found"}),
            "/repos/acme/lost": make_response(404, {"message": "Not Found"}),
        }
        ids = frozenset({
            RepositoryIdentity("acme", "api"),
            RepositoryIdentity("acme", "gone"),
            RepositoryIdentity("acme", "lost"),
        })
        with patch.object(client.session, "request", side_effect=route(routes)):
            with pytest.raises(NotFoundError) as exc_info:
                client.fetch_snapshots(ids)

        missing = {i.full_name for i in exc_info.value.missing}
        assert missing == {"acme/gone", "acme/lost"}

    def test_discovers_user_repositories(self, client):
        routes = {
            "/user/repos": make_response(json_data=[repo_json("me", "one"), repo_json("me", "two")]),
            "/repos/me/one/pulls": make_response(json_data=[{"number": 5}]),
            "/repos/me/two/pulls": make_response(json_data=[]),
        }
        with patch.object(client.session, "request", side_effect=route(routes)) as mock_request:
            snapshots = client.fetch_snapshots(frozenset())

        assert sorted(s.full_name for s in snapshots) == ["me/one", "me/two"]
        first_call = mock_request.call_args_list[0]
        assert first_call.kwargs["params"]["type"] == "owner"
        assert first_call.kwargs["params"]["per_page"] == 100

    def test_paginates_pull_requests(self, client):
        page2_url = f"{API}/repos/acme/api/pulls?page=2"
        page1 = make_response(json_data=[{}] * 100, links={"next": {"url": page2_url}})
        page2 = make_response(json_data=[{}] * 7)
        routes = {
            "/repos/acme/api": make_response(json_data=repo_json("acme", "api")),
            "/repos/acme/api/pulls": page1,
            "/repos/acme/api/pulls?page=2": page2,
        }
        with patch.object(client.session, "request", side_effect=route(routes)):
            snapshots = client.fetch_snapshots(frozenset({RepositoryIdentity("acme", "api")}))
        assert snapshots[0].open_pull_request_count == 107

    def test_missing_pushed_at_gives_no_activity(self, client):
        routes = {
            "/repos/acme/empty": make_response(json_data=repo_json("acme", "empty", pushed_at=None)),
            "/repos/acme/empty/pulls": make_response(json_data=[]),
        }
        with patch.object(client.session, "request", side_effect=route(routes)):
            snap = client.fetch_snapshots(frozenset({RepositoryIdentity("acme", "empty")}))[0]
        assert snap.last_activity_at is None
        assert snap.status is RepositoryStatus.STALE


class TestErrorMapping:
    def _fetch_one(self, client, response=None, exc=None):
        with patch.object(client.session, "request") as mock_request:
            if exc is not None:
                mock_request.side_effect = exc
            else:
                mock_request.return_value = response
            client.fetch_snapshots(frozenset({RepositoryIdentity("acme", "api")}))

    def test_401_unauthorized(self, client):
        with pytest.raises(UnauthorizedError):
            self._fetch_one(client, make_response(401, {"message": "Bad credentials"}))

    def test_403_forbidden_is_unauthorized(self, client):
        with pytest.raises(UnauthorizedError):
            self._fetch_one(client, make_response(403, {"message": "Resource not accessible"}))

    def test_403_rate_limit_with_reset(self, client):
        response = make_response(
            403,
            {"message": "API rate limit exceeded"},
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1000"},
        )
        with patch("repo_health.github.time.time", return_value=940.0):
            with pytest.raises(RateLimitedError) as exc_info:
                self._fetch_one(client, response)
        assert exc_info.value.retry_after == 60.0

    def test_429_retry_after_header(self, client):
        response = make_response(429, {"message": "slow down"}, headers={"Retry-After": "30"})
        with pytest.raises(RateLimitedError) as exc_info:
            self._fetch_one(client, response)
        assert exc_info.value.retry_after == 30.0

    def test_rate_limit_without_hint(self, client):
        with pytest.raises(RateLimitedError) as exc_info:
            self._fetch_one(client, make_response(429, {"message": "slow down"}))
        assert exc_info.value.retry_after is None

    def test_server_error_is_network(self, client):
        with pytest.raises(NetworkError) as exc_info:
            self._fetch_one(client, make_response(502, {"message": "Bad gateway"}))
        assert exc_info.value.status_code == 502

    def test_timeout(self, client):
        with pytest.raises(FetchTimeoutError):
            self._fetch_one(client, exc=requests.Timeout("read timed out"))

    def test_connection_error(self, client):
        with pytest.raises(NetworkError):
            self._fetch_one(client, exc=requests.ConnectionError("refused"))


class TestParseTimestamp:
    def test_z_suffix(self):
        dt = parse_timestamp("2026-10-01T08:30:00Z")
        assert dt.tzinfo is not None
        assert dt.hour == 8

    @pytest.mark.parametrize("value", [None, "", "not-a-date"])
    def test_invalid(self, value):
        assert parse_timestamp(value) is None


class TestSessionsPerThread:
    def test_each_thread_gets_its_own_session(self, client):
        seen = []
        worker = threading.Thread(target=lambda: seen.append(client.session))
        worker.start()
        worker.join()

        assert seen[0] is not client.session
        assert client.session is client.session
        assert seen[0].headers["Authorization"] == "Bearer t0ken"

    def test_close_closes_every_session(self, client):
        sessions = [client.session]
        worker = threading.Thread(target=lambda: sessions.append(client.session))
        worker.start()
        worker.join()

        with patch.object(sessions[0], "close") as close_main, \
                patch.object(sessions[1], "close") as close_worker:
            client.close()
        close_main.assert_called_once()
        close_worker.assert_called_once()

    def test_closed_client_makes_no_requests(self, client):
        with patch.object(client.session, "request") as mock_request:
            client.close()
            with pytest.raises(NetworkError, match="closed"):
                client.fetch_snapshots(frozenset({RepositoryIdentity("acme", "api")}))
        mock_request.assert_not_called()


class TestContextManager:
    def test_exit_closes_session(self):
        client = GitHubClient(token="x")
        with patch.object(client.session, "close") as mock_close:
            with client:
                pass
        mock_close.assert_called_once()

    def test_close(self):
        client = GitHubClient(token="x")
        with patch.object(client.session, "close") as mock_close:
            client.close()
        mock_close.assert_called_once()
