from __future__ import annotations

import pytest
import requests

from result_scraper.exceptions import NetworkError
from result_scraper.fetcher import ResultFetcher
from result_scraper.models import FetchStatus


def _mk_resp(body: str, status: int = 200, url: str = "http://portal.test/page") -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r._content = body.encode("utf-8")
    r.headers["Content-Type"] = "text/html; charset=utf-8"
    r.encoding = "utf-8"
    r.url = url
    return r


class _Session:
    """Replays a scripted sequence of responses or exceptions."""

    def __init__(self, script) -> None:
        self.script = list(script)
        self.calls = []

    def get(self, url, timeout=None):  # type: ignore[no-untyped-def]
        self.calls.append(url)
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        pass


def _fetcher(settings, script):
    sleeps = []
    session = _Session(script)
    return ResultFetcher(settings, session=session, sleep=sleeps.append), session, sleeps


def test_success_returns_body(settings):
    fetcher, session, sleeps = _fetcher(settings, [_mk_resp("<html>result</html>")])
    outcome = fetcher.fetch("http://portal.test/page")

    assert outcome.status is FetchStatus.SUCCESS
    assert outcome.document == "<html>result</html>"
    assert len(session.calls) == 1
    assert sleeps == []


def test_no_record_marker_is_not_found_without_retry(settings):
    fetcher, session, sleeps = _fetcher(settings, [_mk_resp("<span>No Record Found !!!</span>")])
    outcome = fetcher.fetch("http://portal.test/page")

    assert outcome.status is FetchStatus.NOT_FOUND
    assert len(session.calls) == 1
    assert sleeps == []


def test_two_transport_failures_then_success_backs_off_exponentially(settings):
    script = [
        requests.ConnectionError("connection reset"),
        requests.Timeout("read timed out"),
        _mk_resp("<html>ok</html>"),
    ]
    fetcher, session, sleeps = _fetcher(settings, script)
    outcome = fetcher.fetch("http://portal.test/page")

    assert outcome.status is FetchStatus.SUCCESS
    assert outcome.document == "<html>ok</html>"
    assert len(session.calls) == 3
    assert sleeps == [pytest.approx(1.0), pytest.approx(2.0)]


def test_exhausted_retries_return_last_error(settings):
    script = [
        requests.ConnectionError("first"),
        requests.ConnectionError("second"),
        requests.ConnectionError("third"),
    ]
    fetcher, session, sleeps = _fetcher(settings, script)
    outcome = fetcher.fetch("http://portal.test/page")

    assert outcome.status is FetchStatus.ERROR
    assert "third" in outcome.error
    assert len(session.calls) == 3
    assert len(sleeps) == 2


def test_server_error_status_is_retried(settings):
    fetcher, session, sleeps = _fetcher(settings, [_mk_resp("busy", status=503), _mk_resp("<html>ok</html>")])
    outcome = fetcher.fetch("http://portal.test/page")

    assert outcome.status is FetchStatus.SUCCESS
    assert len(session.calls) == 2


def test_per_call_policy_overrides(settings):
    script = [requests.ConnectionError("a"), requests.ConnectionError("b"), _mk_resp("<html>ok</html>")]
    fetcher, session, sleeps = _fetcher(settings, script)
    outcome = fetcher.fetch("http://portal.test/page", max_retries=2, initial_delay_ms=250, backoff_factor=3.0)

    assert outcome.status is FetchStatus.ERROR
    assert len(session.calls) == 2
    assert sleeps == [pytest.approx(0.25)]


def test_fetch_json_decodes_body(settings):
    fetcher, _, _ = _fetcher(settings, [_mk_resp('[{"separator": "***"}]')])
    assert fetcher.fetch_json("http://peer.test/result") == [{"separator": "***"}]


def test_fetch_json_raises_after_retries(settings):
    script = [requests.ConnectionError("down")] * 3
    fetcher, session, _ = _fetcher(settings, script)

    with pytest.raises(NetworkError):
        fetcher.fetch_json("http://peer.test/result")
    assert len(session.calls) == 3


def test_fetch_json_does_not_retry_client_errors(settings):
    fetcher, session, sleeps = _fetcher(settings, [_mk_resp("bad reg_no", status=400)])

    with pytest.raises(NetworkError, match="400"):
        fetcher.fetch_json("http://peer.test/result")
    assert len(session.calls) == 1
    assert sleeps == []


def test_fetch_json_retries_server_errors(settings):
    script = [_mk_resp("busy", status=502), _mk_resp('[{"error": "none"}]')]
    fetcher, session, sleeps = _fetcher(settings, script)

    assert fetcher.fetch_json("http://peer.test/result") == [{"error": "none"}]
    assert len(session.calls) == 2
    assert sleeps == [pytest.approx(1.0)]
