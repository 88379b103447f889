from __future__ import annotations

from pathlib import Path

import pytest

from issuehistory.config import ConfigError, RepoRef, load_config, parse_repo

CONFIG_YAML = """
github:
  repo: acme/widgets
  timeout: 12
output:
  path: out/history.json
pagination:
  page_delay_ms: 900
resilience:
  max_attempts: 4
  base_delay: 0.5
  max_delay: 8
  breaker_threshold: 3
  half_open_after: 20
logging:
  json_enabled: true
  level: DEBUG
"""


def test_defaults_without_file():
    cfg = load_config(None)
    assert cfg.github_repo is None
    assert cfg.output_path == Path("issues.json")
    assert cfg.page_delay_ms == 600
    assert cfg.retry_attempts == 10
    assert cfg.breaker_threshold == 5
    assert cfg.breaker_half_open_after == 60.0
    assert cfg.logging_json_enabled is False


def test_load_config_sections(tmp_path):
    path = tmp_path / "issuehistory.config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    cfg = load_config(path)
    assert cfg.github_repo == "acme/widgets"
    assert cfg.request_timeout == 12.0
    assert cfg.output_path == tmp_path / "out" / "history.json"
    assert cfg.page_delay_ms == 900
    assert (cfg.retry_attempts, cfg.retry_base_sleep, cfg.retry_max_sleep) == (4, 0.5, 8.0)
    assert (cfg.breaker_threshold, cfg.breaker_half_open_after) == (3, 20.0)
    assert cfg.logging_json_enabled is True
    assert cfg.logging_level == "DEBUG"


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("ISSUEHISTORY_RETRY_ATTEMPTS", "2")
    monkeypatch.setenv("ISSUEHISTORY_PAGE_DELAY_MS", "1500")
    cfg = load_config(None)
    assert cfg.retry_attempts == 2
    assert cfg.page_delay_ms == 1500


def test_invalid_env_override(monkeypatch):
    monkeypatch.setenv("ISSUEHISTORY_RETRY_ATTEMPTS", "many")
    with pytest.raises(ConfigError, match="ISSUEHISTORY_RETRY_ATTEMPTS"):
        load_config(None)


def test_missing_explicit_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("github: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(path)


def test_section_must_be_mapping(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("resilience: 5\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="resilience"):
        load_config(path)


def test_parse_repo():
    assert parse_repo("acme/widgets") == RepoRef("acme", "widgets")
    assert str(parse_repo(" microsoft/vscode ")) == "microsoft/vscode"
    for bad in ("", "acme", "acme/", "/widgets", "a/b/c"):
        with pytest.raises(ConfigError):
            parse_repo(bad)
