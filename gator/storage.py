#!/usr/bin/env python3

# Imports {{{
# builtins
import logging
from datetime import datetime
from typing import List, Optional, Protocol

# 3rd party
from peewee import IntegrityError, PeeweeException

# local modules
from gator.db import Feed, Post
from gator.db.base import db_proxy
from gator.exceptions import DuplicateKeyError, StorageError
from gator.utils import to_naive_utc

# }}}


log = logging.getLogger(__name__)


class Storage(Protocol):
    """
    What the aggregation engine needs from persistent storage.

    Implementations raise StorageError for failures, and DuplicateKeyError
    from insert_post() when a post with that URL already exists.
    """

    def select_stale_feeds(self, limit: int) -> List[Feed]:
        ...

    def mark_feed_fetched(self, feed_id, now: datetime) -> None:
        ...

    def insert_post(
        self,
        feed_id,
        title: str,
        url: str,
        description: Optional[str] = None,
        published_at: Optional[datetime] = None,
    ) -> Post:
        ...


class DatabaseStorage(object):
    """
    Storage backed by the peewee models.

    Calls may come from worker threads; peewee keeps one connection per thread.
    """

    def __init__(self, database=db_proxy):
        self.database = database

    def select_stale_feeds(self, limit: int) -> List[Feed]:
        try:
            return Feed.stalest(limit)
        except PeeweeException as e:
            raise StorageError(f"Couldn't select feeds to fetch: {e}") from e

    def mark_feed_fetched(self, feed_id, now: datetime) -> None:
        try:
            marked = Feed.mark_fetched(feed_id, now)
        except PeeweeException as e:
            raise StorageError(f"Couldn't mark feed {feed_id} as fetched: {e}") from e

        if marked is None:
            raise StorageError(f"Feed {feed_id} does not exist")
        if not marked:
            log.debug(f"Feed {feed_id} already has a newer fetch time than {now}")

    def insert_post(
        self,
        feed_id,
        title: str,
        url: str,
        description: Optional[str] = None,
        published_at: Optional[datetime] = None,
    ) -> Post:
        try:
            published_at = to_naive_utc(published_at)
        except (OverflowError, ValueError) as e:
            raise StorageError(f"Couldn't store publish date of {title!r}: {e}") from e

        try:
            with self.database.atomic():
                return Post.create(
                    feed=feed_id,
                    title=title,
                    url=url,
                    description=description or None,
                    published_at=published_at,
                )
        except IntegrityError as e:
            if self._url_taken(url):
                raise DuplicateKeyError(f"Post already stored: {url}") from e
            raise StorageError(f"Couldn't create post {title!r}: {e}") from e
        except PeeweeException as e:
            raise StorageError(f"Couldn't create post {title!r}: {e}") from e

    def _url_taken(self, url: str) -> bool:
        try:
            return Post.url_exists(url)
        except PeeweeException:
            return False

    def __repr__(self):
        return f"{self.__class__.__name__}({self.database!r})"
