"""
cluster_context/config.py

Environment-driven settings for connectors and aggregation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def load_env_files(base_dir: Path | None = None) -> list[str]:
    """
    Export credentials and endpoints kept in `.env` / `.env.local` next to
    where the tool is run, so tokens need not live in the shell profile.

    Lines may carry a shell-style `export ` prefix. Variables already set in
    the process win over file values. Returns the names that were set.
    """

    loaded: list[str] = []
    root = base_dir or Path.cwd()
    for env_path in (root / ".env", root / ".env.local"):
        if not env_path.is_file():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if line.startswith("export "):
                line = line[len("export "):].lstrip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            name, _, value = line.partition("=")
            name = name.strip()
            if not name or name in os.environ:
                continue
            os.environ[name] = value.strip().strip('"').strip("'")
            loaded.append(name)
    return loaded


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_list_env(name: str) -> tuple[str, ...]:
    """
    Read a comma separated list, dropping blank items.
    """

    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return ()
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


@dataclass(frozen=True)
class ExternalHTTPSettings:
    """
    Shared HTTP behavior settings for external connectors.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 3
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 5.0


@dataclass(frozen=True)
class OCMSettings:
    """
    Cluster manager API settings (identity, support status, service logs).
    """

    base_url: str = "https://api.openshift.com"
    token: str | None = None
    page_size: int = 100


@dataclass(frozen=True)
class JiraSettings:
    """
    Ticket tracker settings.
    """

    base_url: str = "https://issues.redhat.com"
    token: str | None = None
    page_size: int = 50
    support_project: str = "OpenShift Hosted SRE Support"
    exceptions_project: str = "Support Exceptions"


@dataclass(frozen=True)
class PagerDutySettings:
    """
    Incident tracker settings. The user token wins over the OAuth token.
    """

    base_url: str = "https://api.pagerduty.com"
    user_token: str | None = None
    oauth_token: str | None = None
    team_ids: tuple[str, ...] = ()
    current_page_size: int = 25
    history_page_size: int = 100


@dataclass(frozen=True)
class AuditLogSettings:
    """
    Audit log gateway settings.
    """

    base_url: str | None = None
    token: str | None = None
    ignored_user_marker: str = "RH-SRE-"


@dataclass(frozen=True)
class ContextSettings:
    """
    Default aggregation options.
    """

    days: int = 30
    pages: int = 40
    max_workers: int = 1


@lru_cache(maxsize=1)
def get_external_http_settings() -> ExternalHTTPSettings:
    """
    Return shared connector HTTP settings from environment variables.
    """

    return ExternalHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("CONTEXT_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("CONTEXT_HTTP_MAX_RETRIES", 3)),
        backoff_initial_seconds=max(0.1, _get_float_env("CONTEXT_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("CONTEXT_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.1, _get_float_env("CONTEXT_HTTP_RATE_LIMIT_PER_SECOND", 5.0)),
    )


@lru_cache(maxsize=1)
def get_ocm_settings() -> OCMSettings:
    return OCMSettings(
        base_url=_get_str_env("OCM_URL", "https://api.openshift.com"),
        token=_get_optional_str_env("OCM_TOKEN"),
        page_size=max(1, _get_int_env("OCM_PAGE_SIZE", 100)),
    )


@lru_cache(maxsize=1)
def get_jira_settings() -> JiraSettings:
    return JiraSettings(
        base_url=_get_str_env("JIRA_BASE_URL", "https://issues.redhat.com"),
        token=_get_optional_str_env("JIRA_TOKEN"),
        page_size=max(1, _get_int_env("JIRA_PAGE_SIZE", 50)),
    )


@lru_cache(maxsize=1)
def get_pagerduty_settings() -> PagerDutySettings:
    """
    Return incident tracker settings. `PD_TEAM_IDS` is a comma separated list;
    when empty, services from every team are considered.
    """

    return PagerDutySettings(
        base_url=_get_str_env("PD_BASE_URL", "https://api.pagerduty.com"),
        user_token=_get_optional_str_env("PD_USER_TOKEN"),
        oauth_token=_get_optional_str_env("PD_OAUTH_TOKEN"),
        team_ids=_get_list_env("PD_TEAM_IDS"),
    )


@lru_cache(maxsize=1)
def get_audit_log_settings() -> AuditLogSettings:
    return AuditLogSettings(
        base_url=_get_optional_str_env("AUDIT_LOG_BASE_URL"),
        token=_get_optional_str_env("AUDIT_LOG_TOKEN"),
        ignored_user_marker=_get_str_env("AUDIT_LOG_IGNORED_USER_MARKER", "RH-SRE-"),
    )


@lru_cache(maxsize=1)
def get_context_settings() -> ContextSettings:
    """
    Return default aggregation options. Values are not clamped here so that
    invalid windows reach the aggregator and are rejected there.
    """

    return ContextSettings(
        days=_get_int_env("CONTEXT_DAYS", 30),
        pages=_get_int_env("CONTEXT_PAGES", 40),
        max_workers=_get_int_env("CONTEXT_MAX_WORKERS", 1),
    )
