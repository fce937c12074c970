#!/usr/bin/env python3

# Imports {{{
# builtins
import logging
from datetime import datetime
from typing import Optional

# 3rd party
from peewee import DateTimeField, ForeignKeyField, TextField

# local modules
from gator.db.base import Record
from gator.db.feed import Feed

# }}}


log = logging.getLogger(__name__)


class Post(Record):
    """
    An individual post / entry of a feed.
    """

    feed: Feed = ForeignKeyField(  # type: ignore
        Feed, on_delete="CASCADE", on_update="CASCADE", backref="posts"
    )
    title: str = TextField()  # type: ignore
    url: str = TextField(unique=True)  # type: ignore
    description: Optional[str] = TextField(null=True)  # type: ignore
    published_at: Optional[datetime] = DateTimeField(null=True, index=True)  # type: ignore

    @classmethod
    def url_exists(cls, url: str) -> bool:
        return cls.select().where(cls.url == url).exists()

    @classmethod
    def latest(cls, limit: int = 10, feed_name: Optional[str] = None):
        query = cls.select(cls, Feed).join(Feed)
        if feed_name:
            query = query.where(Feed.name.contains(feed_name))
        return query.order_by(
            cls.published_at.desc(nulls="last"), cls.created_at.desc()
        ).limit(limit)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.title!r})"
