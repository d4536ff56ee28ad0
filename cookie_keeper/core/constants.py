"""Application constants and paths for Cookie Keeper."""

import os
from pathlib import Path

# Application metadata
APP_NAME = "CookieKeeper"
APP_VERSION = "1.0.0"
CONFIG_VERSION = 1

# Base paths
APP_ROOT = Path(os.environ.get("COOKIE_KEEPER_HOME", Path.home() / ".cookie_keeper"))
CONFIG_DIR = APP_ROOT
LOGS_DIR = APP_ROOT / "logs"

# File paths
CONFIG_FILE = CONFIG_DIR / "config.json"
STORAGE_FILE = CONFIG_DIR / "storage.json"
DEBUG_LOG_FILE = LOGS_DIR / "debug.log"
AUDIT_LOG_FILE = LOGS_DIR / "audit.log"

# Logging settings
DEBUG_LOG_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
DEBUG_LOG_BACKUP_COUNT = 3

# Persistence key for the allow-list
ALLOWED_DOMAINS_KEY = "cookie_keeper.allowedDomains"

# Subdomain labels dropped when reducing ccTLD + generic SLD hosts
COMMON_SUBDOMAIN_PREFIXES = frozenset({"www", "blog", "app", "news", "careers"})

# Popup display
DEFAULT_DISPLAY_CAP = 5
MORE_SITES_SENTINEL = "…and more"

# Browsing data categories the bulk eraser may clear
ERASE_CATEGORIES = frozenset({
    "cache",
    "cookies",
    "fileSystems",
    "indexedDB",
    "localStorage",
    "serviceWorkers",
    "webSQL",
})

# Categories every configured erase set must keep
REQUIRED_ERASE_CATEGORIES = frozenset({
    "cache",
    "cookies",
    "fileSystems",
    "indexedDB",
    "localStorage",
    "serviceWorkers",
})

# Categories that must never be handed to the bulk eraser
PROTECTED_CATEGORIES = frozenset({
    "downloads",
    "formData",
    "history",
    "passwords",
})

# Default settings
DEFAULT_SETTINGS = {
    "display_cap": DEFAULT_DISPLAY_CAP,
    "erase_categories": sorted(ERASE_CATEGORIES),
    "since_epoch_millis": 0,
}

# Browser executable names for process detection
BROWSER_EXECUTABLES = frozenset({
    "chrome", "chrome.exe",
    "chromium", "chromium-browser",
    "msedge", "msedge.exe",
    "brave", "brave.exe", "brave-browser",
    "firefox", "firefox.exe",
    "opera", "opera.exe",
    "vivaldi", "vivaldi.exe",
})

