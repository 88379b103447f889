from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import yaml

from .github_graphql import DEFAULT_GRAPHQL_URL
from .sink import DEFAULT_OUTPUT

CONFIG_DEFAULT = "issuehistory.config.yaml"
DEFAULT_PAGE_DELAY_MS = 600

_REPO_PATTERN = re.compile(r"^([A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)/([A-Za-z0-9._-]+)$")


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class RepoRef:
    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class ExportConfig:
    github_repo: str | None = None
    graphql_url: str = DEFAULT_GRAPHQL_URL
    request_timeout: float = 30.0
    output_path: Path = DEFAULT_OUTPUT
    page_delay_ms: int = DEFAULT_PAGE_DELAY_MS
    # Resilience configuration
    retry_attempts: int = 10
    retry_base_sleep: float = 0.128
    retry_max_sleep: float = 30.0
    breaker_threshold: int = 5
    breaker_half_open_after: float = 60.0
    # Logging configuration
    logging_json_enabled: bool = False
    logging_level: str = "INFO"


def parse_repo(value: str) -> RepoRef:
    """Split ``owner/name`` into a RepoRef."""
    m = _REPO_PATTERN.match(value.strip()) if value else None
    if not m:
        raise ConfigError(f"Invalid repository {value!r}; expected owner/name")
    return RepoRef(owner=m.group(1), repo=m.group(2))


def _env_override(name: str, current: Any, cast_fn: Any) -> Any:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return current
    try:
        return cast_fn(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid value for {name}: {raw!r}") from exc


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key, {}) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{key}' must be a mapping")
    return cast(dict[str, Any], value)


def load_config(path: str | Path | None = None) -> ExportConfig:
    """Load configuration from YAML, falling back to defaults when absent.

    A missing file is only an error when the path was given explicitly.
    """
    raw: dict[str, Any] = {}
    base = Path.cwd()
    if path is not None:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"Configuration file not found: {p}")
        try:
            loaded = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {p}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"Configuration root in {p} must be a mapping")
        raw = cast(dict[str, Any], loaded)
        base = p.parent
    gh = _section(raw, "github")
    out = _section(raw, "output")
    pagination = _section(raw, "pagination")
    resilience = _section(raw, "resilience")
    logging_config = _section(raw, "logging")

    output_path = Path(out.get("path", DEFAULT_OUTPUT))
    if not output_path.is_absolute() and path is not None:
        output_path = base / output_path

    try:
        cfg = ExportConfig(
            github_repo=gh.get("repo"),
            graphql_url=gh.get("graphql_url", DEFAULT_GRAPHQL_URL),
            request_timeout=float(gh.get("timeout", 30.0)),
            output_path=output_path,
            page_delay_ms=int(pagination.get("page_delay_ms", DEFAULT_PAGE_DELAY_MS)),
            retry_attempts=int(resilience.get("max_attempts", 10)),
            retry_base_sleep=float(resilience.get("base_delay", 0.128)),
            retry_max_sleep=float(resilience.get("max_delay", 30.0)),
            breaker_threshold=int(resilience.get("breaker_threshold", 5)),
            breaker_half_open_after=float(resilience.get("half_open_after", 60.0)),
            logging_json_enabled=bool(logging_config.get("json_enabled", False)),
            logging_level=str(logging_config.get("level", "INFO")),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc

    cfg.retry_attempts = _env_override("ISSUEHISTORY_RETRY_ATTEMPTS", cfg.retry_attempts, int)
    cfg.retry_base_sleep = _env_override("ISSUEHISTORY_RETRY_BASE", cfg.retry_base_sleep, float)
    cfg.retry_max_sleep = _env_override("ISSUEHISTORY_RETRY_MAX_SLEEP", cfg.retry_max_sleep, float)
    cfg.page_delay_ms = _env_override("ISSUEHISTORY_PAGE_DELAY_MS", cfg.page_delay_ms, int)
    if cfg.page_delay_ms < 0:
        raise ConfigError("pagination.page_delay_ms must be >= 0")
    if cfg.retry_attempts < 1:
        raise ConfigError("resilience.max_attempts must be >= 1")
    return cfg


__all__ = [
    "CONFIG_DEFAULT",
    "ConfigError",
    "RepoRef",
    "ExportConfig",
    "parse_repo",
    "load_config",
]
