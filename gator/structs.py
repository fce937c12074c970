#!/usr/bin/env python3

# Imports {{{
from __future__ import annotations

# builtins
import logging
from datetime import datetime
from typing import TYPE_CHECKING, List, NamedTuple, Optional

# local modules
from gator.enums import FetchOutcome

if TYPE_CHECKING:
    # local modules
    from gator.db.feed import Feed

# }}}


log = logging.getLogger(__name__)


class RawItem(NamedTuple):
    """
    A single entry of a fetched feed, before it is stored.
    """

    title: str
    link: str
    description: str
    pub_date: str


class FeedChannel(NamedTuple):
    title: str
    link: str
    description: str
    items: List[RawItem]


class FeedReport(NamedTuple):
    """
    What happened to a single feed during a tick.
    """

    feed: Feed
    outcome: FetchOutcome
    fetched_at: Optional[datetime] = None
    found: int = 0
    created: int = 0
    duplicates: int = 0
    failed: int = 0
    error: Optional[Exception] = None

    def __bool__(self):
        return self.created > 0

    @property
    def ok(self):
        return self.outcome is FetchOutcome.Stored


class TickReport(NamedTuple):
    selected: List[Feed]
    reports: List[FeedReport]

    def __bool__(self):
        return any(self.reports)

    @property
    def created(self):
        return sum(report.created for report in self.reports)

    @property
    def errors(self):
        return [report for report in self.reports if not report.ok]
