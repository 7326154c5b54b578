"""
tests/test_config.py

Pytest unit tests for environment-driven settings.
"""

from __future__ import annotations

import os

import pytest

from cluster_context import config

_PREFIXES = ("OCM_", "JIRA_", "PD_", "AUDIT_LOG_", "CONTEXT_")


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    # .env loading writes straight to os.environ, so give each test its own copy.
    env = {key: value for key, value in os.environ.items() if not key.startswith(_PREFIXES)}
    monkeypatch.setattr(os, "environ", env)
    monkeypatch.chdir(tmp_path)
    _clear_caches()
    yield
    _clear_caches()


def _clear_caches() -> None:
    config._load_env_once.cache_clear()
    for getter in (
        config.get_external_http_settings,
        config.get_ocm_settings,
        config.get_jira_settings,
        config.get_pagerduty_settings,
        config.get_audit_log_settings,
        config.get_context_settings,
    ):
        getter.cache_clear()


def test_defaults_without_environment() -> None:
    ocm = config.get_ocm_settings()
    context = config.get_context_settings()

    assert ocm.base_url == "https://api.openshift.com"
    assert ocm.token is None
    assert (context.days, context.pages, context.max_workers) == (30, 40, 1)
    assert config.get_audit_log_settings().base_url is None


def test_team_ids_are_split_and_trimmed(monkeypatch) -> None:
    monkeypatch.setenv("PD_TEAM_IDS", " TEAM-A, ,TEAM-B ")
    monkeypatch.setenv("PD_USER_TOKEN", "  ")

    settings = config.get_pagerduty_settings()

    assert settings.team_ids == ("TEAM-A", "TEAM-B")
    assert settings.user_token is None


def test_invalid_numbers_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("CONTEXT_HTTP_MAX_RETRIES", "many")
    monkeypatch.setenv("CONTEXT_HTTP_TIMEOUT_SECONDS", "0")

    settings = config.get_external_http_settings()

    assert settings.max_retries == 3
    assert settings.timeout_seconds == 1.0


def test_context_values_are_not_clamped(monkeypatch) -> None:
    monkeypatch.setenv("CONTEXT_DAYS", "0")
    monkeypatch.setenv("CONTEXT_PAGES", "-2")

    settings = config.get_context_settings()

    assert settings.days == 0
    assert settings.pages == -2


def test_env_file_does_not_override_process_env(monkeypatch, tmp_path) -> None:
    (tmp_path / ".env").write_text(
        "# local overrides\nOCM_URL='https://api.stage.openshift.com'\nOCM_TOKEN=from-file\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("OCM_TOKEN", "from-env")

    settings = config.get_ocm_settings()

    assert settings.base_url == "https://api.stage.openshift.com"
    assert settings.token == "from-env"


def test_env_file_accepts_export_prefix_and_reports_loaded_names(tmp_path) -> None:
    (tmp_path / ".env").write_text(
        "export JIRA_TOKEN=jira-from-file\n\nnot a pair\nPD_TEAM_IDS=T1,T2\n",
        encoding="utf-8",
    )

    loaded = config.load_env_files(tmp_path)

    assert loaded == ["JIRA_TOKEN", "PD_TEAM_IDS"]
    assert config.get_jira_settings().token == "jira-from-file"
    assert config.get_pagerduty_settings().team_ids == ("T1", "T2")
