"""Logging configuration for Cookie Keeper."""

import logging
from logging.handlers import RotatingFileHandler

from . import constants

# Logger names
AUDIT_LOGGER_NAME = "audit"

# Format strings
DEBUG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
AUDIT_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

# Sites listed per audit line before truncation
AUDIT_SITE_LIMIT = 10


def setup_logging(debug_mode: bool = False) -> None:
    """
    Configure application logging.

    Sets up two log targets:
    1. Debug log: Rotating file handler with DEBUG level
    2. Audit log: Append-only file for purge operations

    Args:
        debug_mode: If True, also output DEBUG to console
    """
    constants.LOGS_DIR.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    debug_handler = RotatingFileHandler(
        constants.DEBUG_LOG_FILE,
        maxBytes=constants.DEBUG_LOG_MAX_BYTES,
        backupCount=constants.DEBUG_LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    debug_handler.setLevel(logging.DEBUG)
    debug_handler.setFormatter(logging.Formatter(DEBUG_FORMAT))
    root_logger.addHandler(debug_handler)

    if debug_mode:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(DEBUG_FORMAT))
        root_logger.addHandler(console_handler)

    # Audit logger keeps its own file and does not propagate to root
    audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    audit_logger.setLevel(logging.INFO)
    audit_logger.propagate = False
    audit_logger.handlers.clear()

    audit_handler = logging.FileHandler(
        constants.AUDIT_LOG_FILE,
        mode="a",
        encoding="utf-8",
    )
    audit_handler.setLevel(logging.INFO)
    audit_handler.setFormatter(logging.Formatter(AUDIT_FORMAT))
    audit_logger.addHandler(audit_handler)


def get_audit_logger() -> logging.Logger:
    """Return the audit logger instance."""
    return logging.getLogger(AUDIT_LOGGER_NAME)


def log_purge_operation(
    sites: list[str],
    cookie_count: int,
    failed_count: int,
    bulk_ok: bool,
    reconcile_ok: bool = True,
    dry_run: bool = False,
) -> None:
    """
    Log a purge operation to the audit log.

    Args:
        sites: Meaningful domains of the purged cookies, uncapped
        cookie_count: Number of unwanted cookies found
        failed_count: Number of single-cookie deletions that failed
        bulk_ok: Whether the bulk erase succeeded
        reconcile_ok: Whether the records could be re-listed after the bulk erase
        dry_run: Whether this was a dry run
    """
    audit = get_audit_logger()
    mode = "DRY_RUN" if dry_run else "PURGE"
    audit.info(
        "%s | sites=%d | cookies=%d | failed=%d | bulk=%s | reconcile=%s | sites_list=%s",
        mode,
        len(sites),
        cookie_count,
        failed_count,
        "ok" if bulk_ok else "failed",
        "ok" if reconcile_ok else "failed",
        ",".join(sites[:AUDIT_SITE_LIMIT]) + ("..." if len(sites) > AUDIT_SITE_LIMIT else ""),
    )
