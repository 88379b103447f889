"""issuehistory CLI.

Subcommands:
  export  -> append the full issue history of a repository to an NDJSON file

Exit codes: 0 success, 1 export aborted (resume with ``--cursor``),
2 configuration / credential problem.
"""

from __future__ import annotations

import argparse
import asyncio
import os
from pathlib import Path
from typing import Any

from issuehistory.config import CONFIG_DEFAULT, ConfigError, ExportConfig, load_config, parse_repo
from issuehistory.env_auth import resolve_token
from issuehistory.errors import classify_error
from issuehistory.exporter import ExportAborted, build_policy, export_issues
from issuehistory.github_graphql import GitHubGraphQLClient
from issuehistory.logging import configure_logging

EXIT_ABORTED = 1
EXIT_CONFIG = 2

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="issuehistory", description="Export GitHub issue label history"
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational logging (env: ISSUEHISTORY_QUIET=1)",
    )
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    pe = sub.add_parser("export", help="Append issue history to an NDJSON file")
    pe.add_argument(
        "--config",
        help=f"YAML config (default: {CONFIG_DEFAULT} when present)",
    )
    pe.add_argument("--repo", help="Repository to export (owner/name)")
    pe.add_argument("--token", help="GitHub token (default: GITHUB_TOKEN / .env)")
    pe.add_argument("--cursor", help="Resume after this pagination cursor")
    pe.add_argument("--output", help="NDJSON file to append to (default: issues.json)")
    pe.add_argument("--page-delay-ms", type=int, help="Pause between pages (default: 600)")
    pe.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    pe.add_argument("--log-level", help="Logging level (default: INFO)")
    return p


def _load_cfg(args: argparse.Namespace) -> ExportConfig:
    if args.config:
        cfg = load_config(args.config)
    elif Path(CONFIG_DEFAULT).exists():
        cfg = load_config(CONFIG_DEFAULT)
    else:
        cfg = load_config(None)
    if args.repo:
        cfg.github_repo = args.repo
    if args.output:
        cfg.output_path = Path(args.output)
    if args.page_delay_ms is not None:
        if args.page_delay_ms < 0:
            raise ConfigError("--page-delay-ms must be >= 0")
        cfg.page_delay_ms = args.page_delay_ms
    if args.json_logs:
        cfg.logging_json_enabled = True
    if args.log_level:
        cfg.logging_level = args.log_level
    if args.quiet:
        cfg.logging_level = "WARNING"
    return cfg


def _cmd_export(args: argparse.Namespace) -> int:
    try:
        cfg = _load_cfg(args)
        if not cfg.github_repo:
            raise ConfigError("No repository given; pass --repo owner/name or set github.repo")
        repo = parse_repo(cfg.github_repo)
        token = resolve_token(args.token)
    except ConfigError as exc:
        configure_logging(level="INFO").log_error("configuration error", error=str(exc))
        return EXIT_CONFIG

    logger = configure_logging(json_logging=cfg.logging_json_enabled, level=cfg.logging_level)
    client = GitHubGraphQLClient(
        token=token, graphql_url=cfg.graphql_url, timeout=cfg.request_timeout
    )
    try:
        with logger.timed_operation("export", repo=str(repo)):
            result = asyncio.run(
                export_issues(
                    token,
                    repo,
                    args.cursor,
                    output=cfg.output_path,
                    fetch_page=client.fetch_issue_page_async,
                    policy=build_policy(cfg),
                    page_delay=cfg.page_delay_ms / 1000,
                )
            )
    except ExportAborted as exc:
        cause = exc.__cause__ or exc
        info = classify_error(cause)
        logger.log_error(
            f"export aborted after {exc.result.pages} pages; resume with --cursor {exc.cursor}",
            error=info.message,
            category=info.category,
            cursor=exc.cursor,
        )
        return EXIT_ABORTED

    print(
        f"[export] {result.issues} issues from {result.pages} pages -> {cfg.output_path} "
        f"(quota remaining: {result.quota_remaining}, last cursor: {result.end_cursor})"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "quiet", False) and os.environ.get("ISSUEHISTORY_QUIET") == "1":
        args.quiet = True
    handlers = {"export": _cmd_export}
    handler = handlers.get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    return handler(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
