#!/usr/bin/env python3

# Imports {{{
from __future__ import annotations

# builtins
import logging
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

# 3rd party
from peewee import DateTimeField, ForeignKeyField, TextField

# local modules
from gator.db.base import Record
from gator.db.user import User
from gator.utils import to_naive_utc

if TYPE_CHECKING:
    # local modules
    from gator.db.post import Post

# }}}


log = logging.getLogger(__name__)


class Feed(Record):
    """
    An RSS or Atom feed to aggregate.
    """

    name: str = TextField()  # type: ignore
    url: str = TextField(unique=True)  # type: ignore
    user: User = ForeignKeyField(  # type: ignore
        User, on_delete="CASCADE", on_update="CASCADE", backref="feeds"
    )
    last_fetched_at: Optional[datetime] = DateTimeField(null=True, index=True)  # type: ignore
    posts: List[Post]

    @classmethod
    def stalest(cls, limit: int) -> List[Feed]:
        """
        The feeds fetched longest ago, never-fetched ones first.
        """
        if limit <= 0:
            return []

        query = (
            cls.select()
            .order_by(
                cls.last_fetched_at.asc(nulls="first"),
                cls.created_at.asc(),
                cls.id,
            )
            .limit(limit)
        )
        return list(query)

    @classmethod
    def mark_fetched(cls, feed_id, now: datetime) -> Optional[bool]:
        """
        Record that the feed was fetched at `now`.

        The timestamp never moves backwards; returns False if the stored one
        is already newer. Returns None if there is no such feed.
        """
        stamp = to_naive_utc(now)
        updated = (
            cls.update(last_fetched_at=stamp, updated_at=stamp)
            .where(
                (cls.id == feed_id)
                & (cls.last_fetched_at.is_null() | (cls.last_fetched_at <= stamp))
            )
            .execute()
        )
        if updated:
            return True
        if not cls.select().where(cls.id == feed_id).exists():
            return None
        return False

    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.name!r}, url={self.url!r})"
