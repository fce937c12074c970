#!/usr/bin/env python3

# Imports {{{
# builtins
import asyncio
import logging
import re
import sys
import textwrap
from collections import defaultdict
from datetime import datetime, timezone
from traceback import format_exception
from typing import (
    Any,
    Callable,
    Coroutine,
    Dict,
    Iterable,
    List,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

# 3rd party
from bs4 import BeautifulSoup

# local modules
from gator.constants import BROTLI_SUPPORTED, USER_AGENT

# }}}


log = logging.getLogger(__name__)


def strip_html(string: str):
    """
    Use BeautifulSoup to strip out any HTML tags from strings.
    """
    return BeautifulSoup(string, "html.parser").get_text()


def condense(text: str) -> str:
    """
    Collapse all extraneous whitespace, keeping paragraph breaks.
    """
    paragraphs = [
        re.sub(r"\s+", " ", part).strip() for part in text.split("\n\n") if part.strip()
    ]
    filled = (textwrap.fill(paragraph) for paragraph in paragraphs)
    return "\n\n".join(filled)


def summarize(text: Optional[str], width: int = 150) -> str:
    return textwrap.shorten(
        condense(strip_html(text or "")), width=width, placeholder="..."
    )


def list_items(items: Iterable, found_msg: str, not_found_msg: str, line_fmt: str):
    items = list(items)
    if not items:
        log.info(not_found_msg)
        sys.exit(0)

    log.info(found_msg)
    for item in items:
        data = item if isinstance(item, dict) else item.__data__
        log.info(line_fmt.format(**data))


class Reporter(object):
    def __init__(self, success: str, failure: str, pre: Optional[str] = None):
        self.pre = pre
        self.success = success
        self.failure = failure

    def __enter__(self):
        if self.pre is not None:
            log.info(self.pre)

    def __exit__(self, exception_cls, exception, traceback):
        if exception is None:
            log.info(self.success)
        else:
            log.error(self.failure.format(exception=exception))
            return True  # suppress traceback


def get_traceback(exception: BaseException):
    msg = format_exception(type(exception), exception, exception.__traceback__)
    return "".join(msg).strip()


def generate_headers():
    """
    Headers sent with every feed request.

    The User-Agent identifies the aggregator so feed owners can tell who is
    polling them.
    """
    return {
        "User-Agent": USER_AGENT,
        "Accept": "application/rss+xml, application/atom+xml, application/xml;q=0.9, text/xml;q=0.8, */*;q=0.5",
        "Accept-Encoding": "gzip, deflate" + (", br" if BROTLI_SUPPORTED else ""),
    }


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Convert an aware datetime to the naive UTC form stored in the database.

    Naive values are assumed to already be UTC.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600}


def parse_duration(value: Union[str, int, float]) -> float:
    """
    Parse a duration such as "30s", "1m", "1h30m" or "500ms" into seconds.

    Bare numbers are taken as seconds.
    """
    if isinstance(value, (int, float)):
        return float(value)

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:g}ms"

    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if hours or minutes:
        parts.append(f"{int(minutes)}m")
    parts.append(f"{secs:g}s")
    return "".join(parts)


Item = TypeVar("Item")
Result = TypeVar("Result")


def partition(
    items: Iterable[Item], test: Callable[[Item], Result]
) -> Dict[Result, List[Item]]:
    partitions: Dict[Result, List[Item]] = defaultdict(list)

    for item in items:
        partitions[test(item)].append(item)

    return partitions


K = TypeVar("K")
V = TypeVar("V")
TaskResult = TypeVar("TaskResult")
TaskKey = TypeVar("TaskKey")
ResultList = List[Tuple[K, V]]


async def pool(
    *tasks: Union[Coroutine[Any, Any, TaskResult], "asyncio.Future[TaskResult]"],
    keys: Iterable[TaskKey],
) -> Tuple[ResultList[TaskKey, TaskResult], ResultList[TaskKey, BaseException]]:
    """
    Pool and execute a list of tasks.

    Returns a tuple containing a list of completed results and a list of exceptions that occurred.
    """
    results = await asyncio.gather(*tasks, return_exceptions=True)

    partitioned = partition(
        zip(keys, results), lambda item: isinstance(item[1], BaseException)
    )
    exceptions = partitioned.get(True, [])
    completed = partitioned.get(False, [])

    return (completed, exceptions)
