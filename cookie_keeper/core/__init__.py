"""Core module for Cookie Keeper."""

from .config import ConfigManager, ConfigError
from .logging_config import setup_logging, get_audit_logger, log_purge_operation
from .models import (
    CookieRecord,
    CookieSummary,
    EraseOptions,
    PartitionResult,
    PurgeOutcome,
    PurgeReport,
)
from .interfaces import (
    BulkEraser,
    EraseError,
    Persistence,
    PersistenceError,
    RecordEraser,
    RecordSource,
)
from .domain import (
    heuristic_suffix_rule,
    hostname_from_url,
    normalize_hostname,
    public_suffix_rule,
    reduce_hostname,
)
from .matching import is_allowed
from .allowlist import AllowList, add, parse, serialize, validate_entry
from .allowlist_store import AllowListStore
from .retention import (
    RetentionPolicyEngine,
    build_exclude_origins,
    cookie_url,
    group_sites,
)

__all__ = [
    # Config
    "ConfigManager",
    "ConfigError",
    # Logging
    "setup_logging",
    "get_audit_logger",
    "log_purge_operation",
    # Models
    "CookieRecord",
    "CookieSummary",
    "EraseOptions",
    "PartitionResult",
    "PurgeOutcome",
    "PurgeReport",
    # Collaborators
    "Persistence",
    "PersistenceError",
    "RecordSource",
    "BulkEraser",
    "RecordEraser",
    "EraseError",
    # Domains
    "reduce_hostname",
    "normalize_hostname",
    "heuristic_suffix_rule",
    "public_suffix_rule",
    "hostname_from_url",
    # Allow-list
    "AllowList",
    "AllowListStore",
    "parse",
    "serialize",
    "add",
    "validate_entry",
    "is_allowed",
    # Retention
    "RetentionPolicyEngine",
    "build_exclude_origins",
    "cookie_url",
    "group_sites",
]
