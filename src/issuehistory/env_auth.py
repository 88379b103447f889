"""Token discovery from arguments, environment variables and ``.env`` files."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from .config import ConfigError
from .logging import get_logger

GITHUB_TOKEN_VAR = "GITHUB_TOKEN"
ALTERNATIVE_TOKEN_VARS = ("GH_TOKEN", "GITHUB_ACCESS_TOKEN", "GH_ACCESS_TOKEN", "GITHUB_PAT")
DOTENV_LOCATIONS = (".env", ".env.local")


def load_env_file(dotenv_path: str | Path | None = None) -> Path | None:
    """Load the first .env file found; existing environment variables win."""
    candidates = [Path(dotenv_path)] if dotenv_path else [Path(p) for p in DOTENV_LOCATIONS]
    for env_file in candidates:
        if env_file.exists():
            load_dotenv(str(env_file), override=False)
            get_logger().debug(f"Loaded environment variables from {env_file}")
            return env_file
    return None


def get_github_token() -> str | None:
    for var in (GITHUB_TOKEN_VAR, *ALTERNATIVE_TOKEN_VARS):
        token = os.getenv(var)
        if token:
            get_logger().debug(f"Found GitHub token in {var}")
            return token
    return None


def resolve_token(explicit: str | None = None, *, dotenv_path: str | Path | None = None) -> str:
    if explicit:
        return explicit
    load_env_file(dotenv_path)
    token = get_github_token()
    if not token:
        raise ConfigError(
            f"No GitHub token found; pass --token or set {GITHUB_TOKEN_VAR} "
            f"(or one of {', '.join(ALTERNATIVE_TOKEN_VARS)})"
        )
    return token


__all__ = ["load_env_file", "get_github_token", "resolve_token"]
