"""Tests for src.bitbucket.repositories covering listing traversal and the repositories file.

Run with coverage:
    pytest tests/test_repositories.py --maxfail=1 -v --cov=src.bitbucket.repositories --cov-report=term-missing
"""

import json
from unittest.mock import MagicMock

import pytest

from src.bitbucket import repositories
from src.bitbucket.config import ClientSettings, RetryPolicy
from src.bitbucket.errors import ListingFailure, NonRetryableRequestError
from src.bitbucket.http_client import RequestExecutor

BASE = "https://api.example.test/2.0"


def _resp(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload if payload is not None else {}
    resp.text = json.dumps(payload or {})
    return resp


def _executor():
    session = MagicMock()
    settings = ClientSettings(token="tok", base_url=BASE, page_len=100, retry=RetryPolicy(max_attempts=1))
    return RequestExecutor(settings, session=session), session


def test_supplied_file_bypasses_network(tmp_path):
    path = tmp_path / "repos.json"
    path.write_text(json.dumps(["r1", "r2"]))
    executor, session = _executor()
    result = repositories.list_repositories(executor, "ws", repositories_file=str(path))
    assert result == ["r1", "r2"]
    session.request.assert_not_called()


@pytest.mark.parametrize("content", ["not json", json.dumps({"r1": 1}), json.dumps(["r1", 2])])
def test_bad_repositories_file_is_listing_failure(tmp_path, content):
    path = tmp_path / "repos.json"
    path.write_text(content)
    with pytest.raises(ListingFailure):
        repositories.load_repositories_file(str(path))


def test_missing_repositories_file_is_listing_failure(tmp_path):
    with pytest.raises(ListingFailure):
        repositories.load_repositories_file(str(tmp_path / "absent.json"))


def test_fetch_walks_pages_in_order():
    executor, session = _executor()
    cursor = f"{BASE}/repositories/ws?pagelen=100&page=2"
    session.request.side_effect = [
        _resp(200, {"values": [{"slug": "a"}, {"slug": "b"}], "next": cursor}),
        _resp(200, {"values": [{"slug": "c"}]}),
    ]
    assert repositories.fetch_repositories(executor, "ws") == ["a", "b", "c"]
    first, second = session.request.call_args_list
    assert first.args[1] == f"{BASE}/repositories/ws"
    assert first.kwargs["params"] == {"pagelen": 100}
    assert second.args[1] == cursor
    assert second.kwargs["params"] is None


def test_list_saves_fetched_repositories(tmp_path):
    executor, session = _executor()
    session.request.return_value = _resp(200, {"values": [{"slug": "only"}]})
    out = tmp_path / "nested" / "repositories.json"
    result = repositories.list_repositories(executor, "ws", save_repositories=str(out))
    assert result == ["only"]
    assert json.loads(out.read_text()) == ["only"]


def test_listing_request_failure_is_fatal(capsys):
    executor, session = _executor()
    session.request.return_value = _resp(403, {"error": {"message": "forbidden"}})
    with pytest.raises(ListingFailure) as excinfo:
        repositories.list_repositories(executor, "ws")
    assert isinstance(excinfo.value.__cause__, NonRetryableRequestError)
    assert "forbidden" in capsys.readouterr().out


def test_workspace_path_quotes_slug():
    assert repositories.workspace_path("my team") == "/repositories/my%20team"
