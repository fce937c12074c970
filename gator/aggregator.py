#!/usr/bin/env python3

# Imports {{{
# builtins
import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

# 3rd party
import aiohttp

# local modules
from gator.enums import EngineState, FetchOutcome
from gator.exceptions import DuplicateKeyError, FetchError, StorageError
from gator.remote import FeedReader, parse_pub_date
from gator.storage import Storage
from gator.structs import FeedReport, TickReport
from gator.utils import format_duration, get_traceback, pool, utcnow

# }}}


log = logging.getLogger(__name__)

FeedFetchedCallback = Callable[[FeedReport], Any]


async def call_storage(timeout: Optional[float], func: Callable, *args, **kwargs):
    """
    Run a blocking storage call in a worker thread, bounded by `timeout` seconds.
    """
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(func, *args, **kwargs), timeout=timeout
        )
    except asyncio.TimeoutError as e:
        raise StorageError(
            f"{getattr(func, '__name__', func)} timed out after {timeout}s"
        ) from e


class FreshnessSelector(object):
    """
    Picks the feeds that have gone the longest without being fetched.
    """

    def __init__(self, storage: Storage, timeout: Optional[float] = None):
        self.storage = storage
        self.timeout = timeout

    async def select(self, limit: int) -> list:
        if limit <= 0:
            return []

        feeds = await call_storage(self.timeout, self.storage.select_stale_feeds, limit)

        unique, seen = [], set()
        for feed in feeds:
            if feed.id in seen:
                continue
            seen.add(feed.id)
            unique.append(feed)
        return unique[:limit]


class FeedWorker(object):
    """
    Fetches a single feed and stores whatever posts it hasn't seen before.
    """

    def __init__(
        self,
        storage: Storage,
        reader: FeedReader,
        timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.storage = storage
        self.reader = reader
        self.timeout = timeout
        self.clock = clock

    async def run(self, feed) -> FeedReport:
        now = self.clock()

        # mark first, so a feed that keeps failing waits for its next turn
        try:
            await call_storage(
                self.timeout, self.storage.mark_feed_fetched, feed.id, now
            )
        except StorageError as e:
            log.error(f"Error marking feed {feed.name} as fetched: {e}")
            return FeedReport(feed, FetchOutcome.MarkFailed, error=e)

        try:
            channel = await self.reader.fetch(feed.url)
        except FetchError as e:
            log.error(f"Error fetching feed {feed.name}: {e}")
            return FeedReport(feed, FetchOutcome.FetchFailed, fetched_at=now, error=e)

        log.info(f"Found {len(channel.items)} posts in {feed.name}")

        created = duplicates = failed = 0
        for item in channel.items:
            if not item.link:
                log.warning(f"Skipping post without a link in {feed.name}: {item.title!r}")
                failed += 1
                continue

            try:
                await call_storage(
                    self.timeout,
                    self.storage.insert_post,
                    feed.id,
                    item.title,
                    item.link,
                    item.description or None,
                    parse_pub_date(item.pub_date),
                )
            except DuplicateKeyError:
                duplicates += 1
            except StorageError as e:
                log.error(f"Error creating post {item.title}: {e}")
                failed += 1
            else:
                created += 1

        log.debug(
            f"{feed.name}: {created} new, {duplicates} already seen, {failed} failed"
        )
        return FeedReport(
            feed,
            FetchOutcome.Stored,
            fetched_at=now,
            found=len(channel.items),
            created=created,
            duplicates=duplicates,
            failed=failed,
        )


class Aggregator(object):
    """
    Periodically fetches the stalest feeds, a bounded number at a time.

    Each tick selects up to `concurrency` feeds, runs one worker per feed and
    waits for all of them before the next tick is scheduled. The delay between
    ticks is measured from the end of the previous one.
    """

    def __init__(
        self,
        storage: Storage,
        reader: FeedReader,
        interval: float,
        concurrency: int = 5,
        storage_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        if concurrency <= 0:
            raise ValueError(f"invalid concurrency value: {concurrency}")
        if interval <= 0:
            raise ValueError(f"invalid interval: {interval}")

        self.interval = interval
        self.concurrency = concurrency
        self.selector = FreshnessSelector(storage, storage_timeout)
        self.worker = FeedWorker(storage, reader, storage_timeout, clock)
        self.state = EngineState.Idle
        self._subscribers: List[FeedFetchedCallback] = []

    def subscribe(self, callback: FeedFetchedCallback) -> FeedFetchedCallback:
        """
        Call `callback` with the FeedReport of every worker that finishes.
        """
        self._subscribers.append(callback)
        return callback

    def _emit(self, report: FeedReport):
        for callback in self._subscribers:
            try:
                callback(report)
            except Exception as e:
                log.error(
                    f"Feed fetched callback failed for {report.feed.name}:\n{get_traceback(e)}"
                )

    async def _work(self, feed) -> FeedReport:
        report = await self.worker.run(feed)
        self._emit(report)
        return report

    async def tick(self, stop: Optional[asyncio.Event] = None) -> TickReport:
        if stop is not None and stop.is_set():
            return TickReport([], [])

        try:
            feeds = await self.selector.select(self.concurrency)
        except StorageError as e:
            log.error(f"Error getting feeds: {e}")
            return TickReport([], [])

        if not feeds:
            log.info("No feeds to fetch")
            return TickReport([], [])

        # a stop may arrive while the selector is awaited
        if stop is not None and stop.is_set():
            log.info("Stop requested, not dispatching feeds.")
            return TickReport([], [])

        log.info(f"Fetching {len(feeds)} feeds concurrently")
        self.state = EngineState.Fetching
        try:
            dispatched = list(feeds)
            tasks = [asyncio.ensure_future(self._work(feed)) for feed in dispatched]
            results, exceptions = await pool(*tasks, keys=dispatched)
        finally:
            self.state = EngineState.Idle

        for feed, exception in exceptions:
            log.error(f"Encountered exception for {feed.name}:\n{get_traceback(exception)}")

        reports = [report for _, report in results]
        failures = sum(1 for report in reports if not report.ok) + len(exceptions)
        log.info(
            f"Tick finished: {len(dispatched)} feeds, "
            f"{sum(report.created for report in reports)} new posts, {failures} errors."
        )
        return TickReport(dispatched, reports)

    async def run_forever(self, stop: Optional[asyncio.Event] = None):
        """
        Tick until `stop` is set. Without a stop event this never returns.
        """
        if stop is None:
            stop = asyncio.Event()

        while not stop.is_set():
            await self.tick(stop)

            log.debug(f"Next check in {format_duration(self.interval)}.")
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

        log.info("Aggregation stopped.")


async def run_aggregation_loop(
    storage: Storage,
    interval: float,
    concurrency: int = 5,
    request_timeout: float = 10.0,
    storage_timeout: Optional[float] = 10.0,
    stop: Optional[asyncio.Event] = None,
    once: bool = False,
    on_feed_fetched: Optional[FeedFetchedCallback] = None,
):
    """
    Collect feeds every `interval` seconds until `stop` is set.
    """
    async with aiohttp.ClientSession() as session:
        reader = FeedReader(session, timeout=request_timeout)
        aggregator = Aggregator(
            storage,
            reader,
            interval=interval,
            concurrency=concurrency,
            storage_timeout=storage_timeout,
        )
        if on_feed_fetched is not None:
            aggregator.subscribe(on_feed_fetched)

        if once:
            return await aggregator.tick(stop)

        log.info(
            f"Collecting feeds every {format_duration(interval)} with concurrency {concurrency}"
        )
        await aggregator.run_forever(stop)
