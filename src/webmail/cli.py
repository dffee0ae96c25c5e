"""Command-line interface for the webmail backend.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import structlog

from webmail import __version__
from webmail.config import get_settings
from webmail.persistence import SettingsRepository
from webmail.utils import configure_logging

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="webmail", description="Webmail backend")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: settings host)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: settings port)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    settings_parser = subparsers.add_parser("settings", help="Inspect stored mailbox settings")
    settings_sub = settings_parser.add_subparsers(dest="settings_command", required=True)

    show_parser = settings_sub.add_parser("show", help="Print one user's settings as JSON")
    show_parser.add_argument("email", help="Email address of the user")
    show_parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite settings database (default: settings settings_db_path)",
    )

    list_parser = settings_sub.add_parser("list", help="List users with stored settings")
    list_parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite settings database (default: settings settings_db_path)",
    )

    return parser


def _repository(args: argparse.Namespace) -> SettingsRepository:
    settings = get_settings()
    repo = SettingsRepository(
        args.db or settings.settings_db_path,
        default_send_delay_seconds=settings.default_send_delay_seconds,
    )
    repo.initialize()
    return repo


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "webmail.api:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def _cmd_settings_show(args: argparse.Namespace) -> int:
    app_settings = _repository(args).load(args.email)
    print(app_settings.model_dump_json(by_alias=True, indent=2))
    return 0


def _cmd_settings_list(args: argparse.Namespace) -> int:
    stored = _repository(args).list_all()
    for row in stored:
        print(f"{row.email_address}\t{row.updated_at.isoformat()}\t{len(row.settings.rules)} rules")
    if not stored:
        print("No stored settings.")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the webmail CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("webmail_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    if parsed.command == "serve":
        return _cmd_serve(parsed)
    if parsed.command == "settings":
        if parsed.settings_command == "show":
            return _cmd_settings_show(parsed)
        if parsed.settings_command == "list":
            return _cmd_settings_list(parsed)

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
