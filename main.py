"""Command-line entry point for Cookie Keeper.

Initializes logging and configuration, wires the allow-list store and the
retention engine to a browser cookie database, and runs one command.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from cookie_keeper.core.allowlist_store import AllowListStore
from cookie_keeper.core.config import ConfigError, ConfigManager
from cookie_keeper.core.constants import APP_VERSION
from cookie_keeper.core.domain import hostname_from_url, reduce_hostname
from cookie_keeper.core.interfaces import PersistenceError
from cookie_keeper.core.logging_config import setup_logging
from cookie_keeper.core.retention import RetentionPolicyEngine
from cookie_keeper.execution.sqlite_eraser import SqliteCookieStore
from cookie_keeper.storage.json_storage import JsonFileStorage
from cookie_keeper.ui.popup import PopupController

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cookie-keeper",
        description="Keep cookies of allowed sites, purge everything else.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    parser.add_argument(
        "--db",
        type=Path,
        help="Browser cookie database (Chromium 'Cookies' or Firefox 'cookies.sqlite')",
    )
    parser.add_argument(
        "--browser",
        choices=("auto", "chromium", "firefox"),
        default="auto",
        help="Cookie database flavour. Default: detect from the file",
    )
    parser.add_argument("--store-id", default="0", help="Cookie store identifier. Default: 0")
    parser.add_argument("--storage", type=Path, default=None, help="Allow-list storage file")
    parser.add_argument("--config", type=Path, default=None, help="Configuration file")
    parser.add_argument(
        "--debug", default=False, action="store_true", help="Enable debug logging"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    status = commands.add_parser("status", help="Show cookie counts and unwanted sites")
    status.add_argument("--url", default=None, help="URL of the site being viewed")

    commands.add_parser("list", help="Print the allowed sites")

    allow = commands.add_parser("allow", help="Allow the sites of hostnames or URLs")
    allow.add_argument("targets", nargs="+", help="Hostnames or URLs")

    edit = commands.add_parser("edit", help="Replace the allowed sites from a file ('-' for stdin)")
    edit.add_argument("file", help="Text file with one site per line")

    purge = commands.add_parser("purge", help="Delete all cookies of sites not allowed")
    purge.add_argument(
        "--dry-run", default=False, action="store_true", help="Report without deleting"
    )
    purge.add_argument(
        "--since",
        type=int,
        default=None,
        help="Only bulk erase data created after this Unix time in milliseconds",
    )

    return parser


def _target_site(target: str) -> str:
    """Reduce a hostname or URL to the site to allow."""
    hostname = hostname_from_url(target) if "://" in target else target
    return reduce_hostname(hostname or "")


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


async def run(args: argparse.Namespace, config: ConfigManager) -> int:
    """Run one command; returns the exit code."""
    store = AllowListStore(JsonFileStorage(args.storage))

    if args.command == "list":
        allow_list = await store.load()
        if store.last_warning:
            print(store.last_warning, file=sys.stderr)
            return 1
        if len(allow_list):
            print(allow_list.to_text())
        return 0

    if args.command == "allow":
        await store.load()
        if store.last_warning:
            print(store.last_warning, file=sys.stderr)
            return 1
        for target in args.targets:
            site = _target_site(target)
            if not site:
                print(f"Not a site: {target}", file=sys.stderr)
                return 2
            await store.add(site)
            print(f"Allowed {site}")
        return 0

    if args.command == "edit":
        allow_list = await store.replace_text(_read_text(args.file))
        print(f"Saved {len(allow_list)} allowed sites")
        for entry, reason in allow_list.invalid_entries():
            print(f"Warning: {entry}: {reason}", file=sys.stderr)
        return 0

    if args.db is None:
        print(f"--db is required for '{args.command}'", file=sys.stderr)
        return 2

    is_chromium = None if args.browser == "auto" else args.browser == "chromium"
    cookie_store = SqliteCookieStore(args.db, store_id=args.store_id, is_chromium=is_chromium)
    engine = RetentionPolicyEngine(
        cookie_store,
        cookie_store,
        cookie_store,
        display_cap=config.display_cap,
        categories=config.erase_categories,
    )

    if args.command == "status":
        controller = PopupController(store, engine)
        view = await controller.open(args.url)
        print(view.header)
        for line in view.site_lines:
            print(line)
        print(view.delete_label if view.delete_enabled else "No unwanted cookies")
        if view.current_site:
            state = "available" if view.add_site_enabled else "already allowed"
            print(f"{view.add_site_label}: {state}")
        if view.warning:
            print(f"Warning: {view.warning}", file=sys.stderr)
        return 0

    # purge
    allow_list = await store.load()
    if store.last_warning:
        # Never purge against an allow-list that failed to load
        print(store.last_warning, file=sys.stderr)
        return 1

    since = config.since_epoch_millis if args.since is None else args.since
    report = await engine.purge(allow_list, since_epoch_millis=since, dry_run=args.dry_run)
    print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    return 0 if report.success else 1


def main(argv: list[str] | None = None) -> int:
    """
    Application entry point.

    Returns:
        Exit code (0 for success)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(debug_mode=args.debug)

    try:
        config = ConfigManager(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(run(args, config))
    except PersistenceError as e:
        logger.error("Storage failure: %s", e)
        print(f"Storage error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
