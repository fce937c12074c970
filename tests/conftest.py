#!/usr/bin/env python3

# Imports {{{
# builtins
import asyncio
import uuid
from datetime import datetime
from typing import Dict, Optional

# 3rd party
import pytest

# local modules
from gator.db import Feed, User, init_db
from gator.exceptions import DuplicateKeyError, NetworkError, StorageError
from gator.structs import FeedChannel, RawItem

# }}}


RSS_DOCUMENT = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Boot.dev Blog</title>
    <link>https://blog.boot.dev/</link>
    <description>Fish &amp;amp; Chips</description>
    <item>
      <title>It&#8217;s a Go world</title>
      <link>https://blog.boot.dev/golang/</link>
      <description>All about &amp;lt;Go&amp;gt;</description>
      <pubDate>Mon, 02 Jan 2006 15:04:05 -0700</pubDate>
    </item>
    <item>
      <title>Python tips</title>
      <link>https://blog.boot.dev/python/</link>
      <description>Snakes</description>
      <pubDate>not a date</pubDate>
    </item>
    <item>
      <title>No date</title>
      <link>https://blog.boot.dev/nodate/</link>
    </item>
  </channel>
</rss>
"""

ATOM_DOCUMENT = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example Feed</title>
  <link href="http://example.org/"/>
  <updated>2003-12-13T18:30:02Z</updated>
  <id>urn:uuid:60a76c80-d399-11d9-b93C-0003939e0af6</id>
  <entry>
    <title>Atom-Powered Robots Run Amok</title>
    <link href="http://example.org/2003/12/13/atom03"/>
    <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a</id>
    <updated>2003-12-13T18:30:02Z</updated>
    <summary>Some text.</summary>
  </entry>
</feed>
"""


def make_item(link: str, title: Optional[str] = None, pub_date: str = "") -> RawItem:
    return RawItem(
        title=title or f"Post at {link}",
        link=link,
        description=f"About {link}",
        pub_date=pub_date,
    )


def make_channel(*links: str) -> FeedChannel:
    return FeedChannel(
        title="Channel",
        link="https://example.com/",
        description="",
        items=[make_item(link) for link in links],
    )


def make_feed(name: str, last_fetched_at: Optional[datetime] = None) -> Feed:
    """
    An unsaved feed, for use with FakeStorage.
    """
    return Feed(
        id=uuid.uuid4(),
        name=name,
        url=f"https://{name.lower()}.example.com/feed.xml",
        last_fetched_at=last_fetched_at,
    )


class FakeStorage(object):
    """
    In-memory storage that behaves like DatabaseStorage and records its calls.
    """

    def __init__(self, *feeds: Feed):
        self.feeds: Dict = {feed.id: feed for feed in feeds}
        self.posts: Dict[str, dict] = {}
        self.marked = []
        self.limits = []
        self.fail_select = False
        self.fail_mark = set()
        self.fail_urls = set()

    def select_stale_feeds(self, limit):
        self.limits.append(limit)
        if self.fail_select:
            raise StorageError("select failed")
        ordered = sorted(
            self.feeds.values(),
            key=lambda feed: (
                feed.last_fetched_at is not None,
                feed.last_fetched_at or datetime.min,
            ),
        )
        return ordered[:limit]

    def mark_feed_fetched(self, feed_id, now):
        if feed_id in self.fail_mark:
            raise StorageError("mark failed")
        feed = self.feeds[feed_id]
        if feed.last_fetched_at is None or feed.last_fetched_at <= now:
            feed.last_fetched_at = now
        self.marked.append((feed_id, now))

    def insert_post(self, feed_id, title, url, description=None, published_at=None):
        if url in self.fail_urls:
            raise StorageError("insert failed")
        if url in self.posts:
            raise DuplicateKeyError(url)
        self.posts[url] = dict(
            feed_id=feed_id,
            title=title,
            url=url,
            description=description,
            published_at=published_at,
        )
        return self.posts[url]


class FakeReader(object):
    """
    Serves canned channels by URL; unknown URLs fail like an unreachable host.
    """

    def __init__(self, channels: Optional[dict] = None, delay: float = 0):
        self.channels = channels or {}
        self.delay = delay
        self.fetched = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_fetch = None

    async def fetch(self, url):
        self.fetched.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_fetch is not None:
                self.on_fetch(url)
            await asyncio.sleep(self.delay)
            result = self.channels.get(url)
            if result is None:
                raise NetworkError(f"can't reach {url}")
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1


@pytest.fixture
def database(tmp_path):
    return init_db(tmp_path / "gator.db")


@pytest.fixture
def user(database):
    return User.create(name="alice")


@pytest.fixture
def stored_feed(user):
    def create(name: str, last_fetched_at: Optional[datetime] = None, url=None):
        return Feed.create(
            name=name,
            url=url or f"https://{name.lower()}.example.com/feed.xml",
            user=user,
            last_fetched_at=last_fetched_at,
        )

    return create
