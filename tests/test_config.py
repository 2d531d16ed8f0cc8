"""Tests for src.bitbucket.config and src.pipeline.config covering defaults, env overrides, and CLI parsing.

Run with coverage to validate configuration handling:
    pytest tests/test_config.py --maxfail=1 -v --cov=src.bitbucket.config --cov=src.pipeline.config --cov-report=term-missing
"""

from importlib import reload
from pathlib import Path

import pytest

import src.bitbucket.config as bitbucket_config
from src.pipeline import config


def test_config_defaults_are_present():
    assert bitbucket_config.PAGE_LEN > 0
    assert bitbucket_config.MAX_DELAY_SEC >= bitbucket_config.MIN_DELAY_SEC
    assert bitbucket_config.RATE_LIMIT_MIN_DELAY_SEC > bitbucket_config.MIN_DELAY_SEC
    assert bitbucket_config.NON_RETRYABLE_STATUS_CODES == {400, 401, 403, 404, 500}
    assert bitbucket_config.USER_AGENT.startswith("bitbucket-contributors")


def test_env_override_for_max_attempts(monkeypatch):
    monkeypatch.setenv("MAX_ATTEMPTS", "7")
    reloaded = reload(bitbucket_config)
    try:
        assert reloaded.MAX_ATTEMPTS == 7
        assert reloaded.ClientSettings.from_env("tok").retry.max_attempts == 7
    finally:
        monkeypatch.delenv("MAX_ATTEMPTS", raising=False)
        reload(bitbucket_config)


def test_client_settings_are_frozen():
    settings = bitbucket_config.ClientSettings.from_env("tok")
    with pytest.raises(Exception):
        settings.token = "other"


@pytest.fixture
def no_ambient_token(monkeypatch, tmp_path):
    monkeypatch.delenv("BITBUCKET_TOKEN", raising=False)
    monkeypatch.setenv("LOCAL_SECRETS_FILE", str(tmp_path / "absent.json"))


def test_parse_minimal_command(no_ambient_token):
    args = config.parse_args(["bitbucket", "get-contributors", "-w", "ws", "-t", "tok"])
    settings = config.resolve_settings(args)
    assert settings.workspace == "ws"
    assert settings.token == "tok"
    assert settings.repositories_file is None
    assert settings.save_repositories is None
    assert settings.lookback_days == bitbucket_config.LOOKBACK_DAYS
    assert settings.commit_filter == bitbucket_config.COMMIT_FILTER


def test_save_repositories_defaults_and_data_dir(no_ambient_token):
    base = ["bitbucket", "get-contributors", "-w", "ws", "-t", "tok"]
    args = config.parse_args(base + ["--save-repositories"])
    assert args.save_repositories == bitbucket_config.DEFAULT_REPOSITORIES_FILE
    args = config.parse_args(base + ["--save-repositories", " mine.json "])
    assert args.save_repositories == f"{bitbucket_config.DATA_DIR}/mine.json"
    assert config.save_repositories_path("   ") == bitbucket_config.DEFAULT_REPOSITORIES_FILE


def test_repositories_file_must_exist(no_ambient_token, tmp_path):
    base = ["bitbucket", "get-contributors", "-w", "ws", "-t", "tok"]
    listing = tmp_path / "repos.json"
    listing.write_text("[]")
    args = config.parse_args(base + ["--repositories", str(listing)])
    assert Path(args.repositories) == listing

    with pytest.raises(SystemExit):
        config.parse_args(base + ["--repositories", str(tmp_path / "missing.json")])
    with pytest.raises(SystemExit):
        config.parse_args(base + ["--repositories", "  "])


def test_save_and_supply_are_mutually_exclusive(no_ambient_token, tmp_path):
    listing = tmp_path / "repos.json"
    listing.write_text("[]")
    with pytest.raises(SystemExit) as excinfo:
        config.parse_args([
            "bitbucket", "get-contributors", "-w", "ws", "-t", "tok",
            "--repositories", str(listing), "--save-repositories", "out.json",
        ])
    assert excinfo.value.code == 2


def test_token_required(no_ambient_token):
    with pytest.raises(SystemExit):
        config.parse_args(["bitbucket", "get-contributors", "-w", "ws"])


def test_token_from_environment(no_ambient_token, monkeypatch):
    monkeypatch.setenv("BITBUCKET_TOKEN", "env-token")
    args = config.parse_args(["bitbucket", "get-contributors", "-w", "ws"])
    assert args.token == "env-token"


def test_days_and_filter_options(no_ambient_token):
    args = config.parse_args([
        "bitbucket", "get-contributors", "-w", "ws", "-t", "tok", "--days", "7", "--commit-filter", "server",
    ])
    settings = config.resolve_settings(args)
    assert settings.lookback_days == 7
    assert settings.commit_filter == "server"
    with pytest.raises(SystemExit):
        config.parse_args(["bitbucket", "get-contributors", "-w", "ws", "-t", "tok", "--days", "0"])
