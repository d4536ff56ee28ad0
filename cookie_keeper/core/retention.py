"""Retention policy engine for Cookie Keeper.

Classifies cookie records against the allow-list and drives the eraser
collaborators.

PURGE ORDERING:
- Records are listed and classified before anything is erased
- The bulk erase and the per-record deletions run concurrently
- The reconciliation pass (re-list, delete what is still unwanted) starts
  only after the bulk erase has finished
- One failed deletion never stops the others
- dry_run=True classifies and reports without calling any eraser
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable, Sequence

from .constants import DEFAULT_DISPLAY_CAP, ERASE_CATEGORIES, MORE_SITES_SENTINEL
from .domain import reduce_hostname
from .interfaces import BulkEraser, EraseError, RecordEraser, RecordSource
from .logging_config import log_purge_operation
from .matching import is_allowed
from .models import (
    CookieRecord,
    CookieSummary,
    EraseOptions,
    PartitionResult,
    PurgeOutcome,
    PurgeReport,
)

logger = logging.getLogger(__name__)


def cookie_url(record: CookieRecord) -> str:
    """
    Build the URL addressing a cookie for single-record deletion.

    The scheme is https: for secure cookies so the eraser may touch them. The
    host is the stored domain verbatim, leading dot included; the eraser
    collaborators accept that form.

    Args:
        record: Cookie to address

    Returns:
        URL such as "https://.example.com/"
    """
    protocol = "https:" if record.secure else "http:"
    return f"{protocol}//{record.domain}{record.path}"


def build_exclude_origins(allow_list: Iterable[str]) -> set[str]:
    """
    Synthesize the origins the bulk eraser must spare.

    Args:
        allow_list: Allow-list entries

    Returns:
        {"http://entry", "https://entry"} for every entry
    """
    origins = set()
    for entry in allow_list:
        origins.add(f"http://{entry}")
        origins.add(f"https://{entry}")
    return origins


def group_sites(
    records: Iterable[CookieRecord],
    cap: int,
    reducer: Callable[[str], str] = reduce_hostname,
) -> list[str]:
    """
    Group records by meaningful domain for display.

    Args:
        records: Cookie records, in display order
        cap: Maximum number of sites listed
        reducer: Hostname reducer used for grouping

    Returns:
        Sites in first-seen order, at most cap of them, followed by a
        single MORE_SITES_SENTINEL when more sites exist
    """
    sites: dict[str, None] = {}
    for record in records:
        site = reducer(record.domain)
        if site:
            sites.setdefault(site, None)

    ordered = list(sites)
    if len(ordered) > cap:
        return ordered[:cap] + [MORE_SITES_SENTINEL]
    return ordered


class RetentionPolicyEngine:
    """
    Decides which cookies to keep and purges the rest.

    Collaborators are injected; the engine holds no allow-list state of its
    own and recomputes every derived set on each call.
    """

    def __init__(
        self,
        record_source: RecordSource,
        bulk_eraser: BulkEraser,
        record_eraser: RecordEraser,
        *,
        display_cap: int = DEFAULT_DISPLAY_CAP,
        categories: Iterable[str] = ERASE_CATEGORIES,
        reducer: Callable[[str], str] = reduce_hostname,
    ) -> None:
        """
        Initialize the RetentionPolicyEngine.

        Args:
            record_source: Lists the cookie records currently held
            bulk_eraser: Clears browsing data categories in one call
            record_eraser: Deletes single cookies
            display_cap: Maximum number of sites listed by grouped_sites
            categories: Browsing data categories handed to the bulk eraser
            reducer: Hostname reducer used for display grouping
        """
        if display_cap < 1:
            raise ValueError(f"display_cap must be positive, got {display_cap}")

        self.record_source = record_source
        self.bulk_eraser = bulk_eraser
        self.record_eraser = record_eraser
        self.display_cap = display_cap
        self.categories = frozenset(categories)
        self.reducer = reducer

    def partition(
        self,
        records: Sequence[CookieRecord],
        allow_list: Iterable[str],
    ) -> PartitionResult:
        """
        Split records into keep and purge sets.

        Matching uses the raw cookie domain; reduction plays no part in it.

        Args:
            records: Cookie records to classify
            allow_list: Allow-list entries

        Returns:
            PartitionResult preserving input order in both lists
        """
        entries = list(allow_list)
        result = PartitionResult()
        for record in records:
            if is_allowed(record.domain, entries):
                result.keep.append(record)
            else:
                result.purge.append(record)
        return result

    def grouped_sites(self, records: Iterable[CookieRecord], cap: int | None = None) -> list[str]:
        """Group records by meaningful domain, capped for display."""
        return group_sites(records, self.display_cap if cap is None else cap, self.reducer)

    def build_exclude_origins(self, allow_list: Iterable[str]) -> set[str]:
        """Synthesize the origins the bulk eraser must spare."""
        return build_exclude_origins(allow_list)

    def summarize(self, records: Sequence[CookieRecord], allow_list: Iterable[str]) -> CookieSummary:
        """
        Compute the counts and site list shown to the user.

        Args:
            records: All cookie records
            allow_list: Allow-list entries

        Returns:
            CookieSummary for the records
        """
        result = self.partition(records, allow_list)
        return CookieSummary(
            total_cookies=len(records),
            unwanted_count=len(result.purge),
            sites=self.grouped_sites(result.purge),
        )

    async def classify(self, allow_list: Iterable[str]) -> CookieSummary:
        """List current records and summarize them against the allow-list."""
        records = await self.record_source.list_all_records()
        return self.summarize(records, allow_list)

    async def _erase_record(self, record: CookieRecord) -> None:
        await self.record_eraser.erase_one(cookie_url(record), record.name, record.store_id)

    async def purge_cookies(self, records: Sequence[CookieRecord]) -> PurgeOutcome:
        """
        Delete every given record, one deletion per record.

        Deletions are issued concurrently; each failure is logged and counted
        without cancelling the remaining deletions.

        Args:
            records: Records classified as purge

        Returns:
            PurgeOutcome with attempt, success and failure counts
        """
        outcome = PurgeOutcome(attempted=len(records))
        if not records:
            return outcome

        results = await asyncio.gather(
            *(self._erase_record(record) for record in records),
            return_exceptions=True,
        )

        for record, result in zip(records, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                outcome.failed += 1
                error = f"{record.name}@{record.domain}{record.path}: {result}"
                outcome.errors.append(error)
                logger.warning("Failed to delete cookie %s", error)
            else:
                outcome.deleted += 1

        logger.debug(
            "Deleted %d of %d cookies (%d failed)",
            outcome.deleted,
            outcome.attempted,
            outcome.failed,
        )
        return outcome

    async def _bulk_erase(self, options: EraseOptions) -> str | None:
        """Run the bulk erase; return an error message instead of raising."""
        try:
            await self.bulk_eraser.erase(options, self.categories)
        except EraseError as e:
            logger.error("Bulk erase failed: %s", e)
            return str(e)
        except Exception as e:
            logger.exception("Unexpected bulk erase failure")
            return f"{type(e).__name__}: {e}"
        return None

    async def purge(
        self,
        allow_list: Iterable[str],
        since_epoch_millis: int = 0,
        dry_run: bool = False,
    ) -> PurgeReport:
        """
        Remove all data not covered by the allow-list.

        Args:
            allow_list: Allow-list entries
            since_epoch_millis: Bulk erase only data created after this time
            dry_run: If True, classify and report without erasing

        Returns:
            PurgeReport describing what was (or would be) removed
        """
        entries = list(allow_list)
        records = await self.record_source.list_all_records()
        result = self.partition(records, entries)

        report = PurgeReport(
            dry_run=dry_run,
            total_records=len(records),
            unwanted_records=len(result.purge),
            sites=self.grouped_sites(result.purge),
            exclude_origins=frozenset(self.build_exclude_origins(entries)),
        )

        if dry_run:
            logger.info(
                "DRY RUN: Would delete %d of %d cookies",
                report.unwanted_records,
                report.total_records,
            )
        else:
            options = EraseOptions(
                since_epoch_millis=since_epoch_millis,
                exclude_origins=report.exclude_origins,
            )
            report.bulk_error, report.per_record = await asyncio.gather(
                self._bulk_erase(options),
                self.purge_cookies(result.purge),
            )

            # The bulk eraser spares whole registrable domains, which can be
            # broader than an allow-list entry. Delete whatever it left behind.
            try:
                remaining = await self.record_source.list_all_records()
            except Exception as e:
                logger.exception("Could not re-list cookies for reconciliation")
                report.reconcile_error = str(e) or type(e).__name__
            else:
                leftover = self.partition(remaining, entries).purge
                if leftover:
                    logger.info("Reconciliation: %d unwanted cookies remain", len(leftover))
                report.reconciled = await self.purge_cookies(leftover)

        log_purge_operation(
            sites=self.grouped_sites(result.purge, cap=len(result.purge)),
            cookie_count=report.unwanted_records,
            failed_count=report.per_record.failed + report.reconciled.failed,
            bulk_ok=report.bulk_error is None,
            reconcile_ok=report.reconcile_error is None,
            dry_run=dry_run,
        )
        return report
