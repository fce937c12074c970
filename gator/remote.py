#!/usr/bin/env python3

# Imports {{{
# builtins
import asyncio
import html
import io
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

# 3rd party
import aiohttp
import feedparser
from feedparser.exceptions import ThingsNobodyCaresAboutButMe

# local modules
from gator.constants import DATE_FORMATS
from gator.exceptions import NetworkError, ParseError
from gator.structs import FeedChannel, RawItem
from gator.utils import generate_headers

# }}}


log = logging.getLogger(__name__)


def parse_pub_date(raw: Optional[str]) -> Optional[datetime]:
    """
    Turn a feed's publish date into an aware UTC datetime.

    Publish dates are best-effort: an empty or unrecognized value gives None
    instead of raising. Dates without a zone are taken as UTC.
    """
    text = (raw or "").strip()
    if not text:
        return None

    for fmt in DATE_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return _to_utc(parsed)

    # RFC 2822 allows obsolete zone names like EST that strptime won't take
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        log.debug(f"Unrecognized publish date: {text!r}")
        return None
    return _to_utc(parsed) if parsed is not None else None


def _to_utc(value: datetime) -> Optional[datetime]:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError:
        log.debug(f"Publish date out of range: {value!r}")
        return None


def decode_feed(content: bytes) -> FeedChannel:
    """
    Decode an RSS or Atom document into a channel and its items.
    """
    parsed = feedparser.parse(io.BytesIO(content))

    if not parsed.get("version"):
        reason = parsed.get("bozo_exception") or "not a recognized feed document"
        raise ParseError(f"Failed to parse feed: {reason}")

    problem = parsed.get("bozo_exception")
    if parsed.get("bozo") and not isinstance(problem, ThingsNobodyCaresAboutButMe):
        raise ParseError(f"Malformed feed document: {problem}")

    channel = parsed.feed
    items = [
        RawItem(
            title=html.unescape(entry.get("title", "")),
            link=(entry.get("link") or "").strip(),
            description=html.unescape(entry.get("description", "")),
            pub_date=entry.get("published") or entry.get("updated") or "",
        )
        for entry in parsed.entries
    ]

    return FeedChannel(
        title=html.unescape(channel.get("title", "")),
        link=channel.get("link", ""),
        description=html.unescape(channel.get("description", "")),
        items=items,
    )


class FeedReader(object):
    """
    Fetches remote RSS/Atom feeds over a shared HTTP session.

    Some resources:
    https://validator.w3.org/feed/docs/atom.html
    https://validator.w3.org/feed/docs/rss2.html
    """

    def __init__(self, session: aiohttp.ClientSession, timeout: float = 10.0):
        self.session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch(self, url: str) -> FeedChannel:
        """
        Download and decode the feed at the given URL.

        Raises NetworkError when the document can't be retrieved, and
        ParseError when it isn't a usable feed.
        """
        try:
            async with self.session.get(
                url, headers=generate_headers(), timeout=self.timeout
            ) as response:
                if response.status >= 400:
                    raise NetworkError(f"{url} responded with HTTP {response.status}")
                content = await response.read()
        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"Timed out after {self.timeout.total}s fetching {url}"
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Failed to fetch {url}: {e}") from e
        except ValueError as e:
            # yarl rejects some malformed URLs before aiohttp sees them
            raise NetworkError(f"Invalid feed URL {url!r}: {e}") from e

        return decode_feed(content)

    def __repr__(self):
        return f"{self.__class__.__name__}(timeout={self.timeout.total!r})"
