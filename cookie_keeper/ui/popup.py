"""Popup display state for Cookie Keeper.

Computes everything the popup window shows: the cookie counts, the list of
unwanted sites, the allow-list text and the "Add This Site" affordance.
Rendering is left to whichever front end draws the view.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from cookie_keeper.core.allowlist_store import AllowListStore
from cookie_keeper.core.domain import hostname_from_url
from cookie_keeper.core.interfaces import PersistenceError
from cookie_keeper.core.models import PurgeReport
from cookie_keeper.core.retention import RetentionPolicyEngine

logger = logging.getLogger(__name__)

BULLET = "• "


@dataclass(frozen=True)
class PopupView:
    """Snapshot of what the popup displays."""

    total_cookies: int = 0
    unwanted_count: int = 0
    sites: list[str] = field(default_factory=list)
    allow_text: str = ""
    current_site: str | None = None
    add_site_enabled: bool = False
    warning: str | None = None

    @property
    def delete_enabled(self) -> bool:
        return self.unwanted_count > 0

    @property
    def header(self) -> str:
        return f"Cookies ({self.total_cookies})"

    @property
    def delete_label(self) -> str:
        return f"Delete {self.unwanted_count} Unwanted Cookies"

    @property
    def add_site_label(self) -> str:
        if self.current_site:
            return f"Add This Site ({self.current_site})"
        return "Add This Site"

    @property
    def site_lines(self) -> list[str]:
        if not self.delete_enabled:
            return []
        return [BULLET + site for site in self.sites]


class PopupController:
    """
    Drives the popup from explicit user actions.

    Each action returns the new PopupView. A failed action keeps the previous
    view and only sets its warning. A refresh overtaken by a newer one is
    discarded instead of overwriting fresher state.
    """

    def __init__(self, store: AllowListStore, engine: RetentionPolicyEngine) -> None:
        self.store = store
        self.engine = engine
        self.view = PopupView()
        self._generation = 0

    async def open(self, tab_url: str | None) -> PopupView:
        """
        Initialize the popup for the active tab.

        Args:
            tab_url: URL of the active tab; missing or malformed URLs
                leave "Add This Site" disabled

        Returns:
            The initial PopupView
        """
        await self.store.load()

        hostname = hostname_from_url(tab_url)
        current_site = self.engine.reducer(hostname) if hostname else None
        if not current_site:
            current_site = None
            logger.debug("No site to offer for tab URL %r", tab_url)

        self.view = replace(self.view, current_site=current_site)
        return await self.refresh(warning=self.store.last_warning)

    async def edit(self, raw_text: str) -> PopupView:
        """Save the free-text allow-list and refresh."""
        try:
            await self.store.replace_text(raw_text)
        except PersistenceError as e:
            logger.warning("Could not save allowed sites: %s", e)
            return self._warn(f"Could not save allowed sites: {e}")
        return await self.refresh()

    async def add_current_site(self) -> PopupView:
        """Allow the site of the active tab and refresh."""
        site = self.view.current_site
        if not site:
            return self.view

        try:
            await self.store.add(site)
        except PersistenceError as e:
            logger.warning("Could not add %s: %s", site, e)
            return self._warn(f"Could not add {site}: {e}")
        return await self.refresh()

    async def delete_unwanted(self, since_epoch_millis: int = 0) -> tuple[PopupView, PurgeReport | None]:
        """
        Purge all cookies not covered by the allow-list.

        Returns:
            Tuple of (refreshed view, purge report or None if the purge
            could not run)
        """
        try:
            report = await self.engine.purge(self.store.allow_list, since_epoch_millis)
        except Exception as e:
            logger.exception("Purge failed")
            view = await self.refresh(warning=f"Delete failed: {e}")
            return view, None

        problems = []
        failed = report.per_record.failed + report.reconciled.failed
        if failed:
            problems.append(f"Some cookies could not be deleted ({failed} failed)")
        if report.bulk_error:
            problems.append(f"Bulk erase failed: {report.bulk_error}")
        if report.reconcile_error:
            problems.append(f"Could not re-check cookies: {report.reconcile_error}")
        return await self.refresh(warning="; ".join(problems) or None), report

    async def refresh(self, warning: str | None = None) -> PopupView:
        """
        Recompute counts and site list from the current records.

        Returns:
            The current PopupView; unchanged if this refresh was superseded
            or the records could not be listed
        """
        self._generation += 1
        generation = self._generation
        allow_list = self.store.allow_list

        try:
            summary = await self.engine.classify(allow_list)
        except Exception as e:
            logger.exception("Could not list cookies")
            if generation != self._generation:
                return self.view
            return self._warn(f"Could not list cookies: {e}")

        if generation != self._generation:
            logger.debug("Discarding superseded refresh %d", generation)
            return self.view

        current_site = self.view.current_site
        self.view = PopupView(
            total_cookies=summary.total_cookies,
            unwanted_count=summary.unwanted_count,
            sites=summary.sites,
            allow_text=allow_list.to_text(),
            current_site=current_site,
            add_site_enabled=bool(current_site) and current_site not in allow_list,
            warning=warning,
        )
        return self.view

    def _warn(self, message: str) -> PopupView:
        self.view = replace(self.view, warning=message)
        return self.view
