#!/usr/bin/env python3

# Imports {{{
# builtins
import asyncio
import logging
import signal
import sys
from textwrap import dedent
from typing import NamedTuple, Optional

# 3rd party
import click

# local modules
from gator.aggregator import run_aggregation_loop
from gator.constants import DEFAULT_DB_PATH, DEFAULT_SETTINGS
from gator.db import Feed, Post, Setting, User, init_db
from gator.storage import DatabaseStorage
from gator.structs import FeedReport
from gator.utils import Reporter, format_duration, list_items, parse_duration, summarize

# }}}


# setup logging
log = logging.getLogger("gator")
log.setLevel(logging.INFO)
sh = logging.StreamHandler(sys.stdout)
sh.setLevel(logging.DEBUG)
log.addHandler(sh)


class Duration(click.ParamType):
    name = "duration"

    def convert(self, value, param, ctx):
        try:
            seconds = parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)
        if seconds <= 0:
            self.fail(f"{value!r} is not a positive duration", param, ctx)
        return seconds


class EngineSettings(NamedTuple):
    poll_interval: float
    concurrency: int
    request_timeout: float
    storage_timeout: float

    @classmethod
    def load(
        cls, interval: Optional[float] = None, concurrency: Optional[int] = None
    ) -> "EngineSettings":
        """
        Stored settings, with any command line overrides applied.
        """
        stored = Setting.as_dict()
        if interval is not None:
            stored["poll_interval"] = interval
        if concurrency is not None:
            stored["concurrency"] = concurrency
        return cls(**stored)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--debug", is_flag=True, help="Show debug logging messages")
@click.option(
    "--db",
    "db_path",
    type=click.Path(),
    help="Path to an SQLite database, or where to save a new one",
)
def cli(debug, db_path):
    if debug:
        log.setLevel(logging.DEBUG)
        formatter = logging.Formatter("%(levelname)s: %(message)s")
        sh.setFormatter(formatter)
    if db_path is None:
        DEFAULT_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        path = DEFAULT_DB_PATH
    else:
        path = db_path

    init_db(path)


def report_feed(report: FeedReport):
    if report:
        log.info(f"{report.created} new posts in {report.feed.name}")


@cli.command()
@click.option(
    "-i", "--interval", type=Duration(), help="Time between ticks, e.g. 30s or 1m"
)
@click.option(
    "-c",
    "--concurrency",
    type=click.IntRange(min=1),
    help="Maximum number of feeds fetched at once",
)
@click.option("--once", is_flag=True, help="Run a single tick and exit")
def run(interval, concurrency, once):
    settings = EngineSettings.load(interval, concurrency)

    preamble = dedent(
        f"""
    ============ Gator ============
     * Feeds configured: {Feed.select().count()}
     * Poll Interval: {format_duration(settings.poll_interval)}
     * Concurrency: {settings.concurrency}
    ===============================
    """
    )
    log.info(preamble)

    asyncio.run(aggregate(settings, once))


async def aggregate(settings: EngineSettings, once: bool = False):
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop.set)
        except (NotImplementedError, RuntimeError):
            # not available on every platform, ctrl-c still works there
            pass

    await run_aggregation_loop(
        DatabaseStorage(),
        interval=settings.poll_interval,
        concurrency=settings.concurrency,
        request_timeout=settings.request_timeout,
        storage_timeout=settings.storage_timeout,
        stop=stop,
        once=once,
        on_feed_fetched=report_feed,
    )


@cli.group(name="list")
def show():
    ...


@cli.group()
def add():
    ...


@cli.group()
def delete():
    ...


@add.command(name="user")
@click.argument("name")
def add_user(name):
    with Reporter(f"User {name} was created!", "Failed to add user: {exception}"):
        User.create(name=name)


@add.command(name="feed")
@click.argument("name")
@click.argument("url")
@click.option("-u", "--user", "username", required=True, help="Owner of the feed")
def add_feed(name, url, username):
    with Reporter(f"Added {name}!", "Failed to add feed: {exception}"):
        user = User.get_or_add(username)
        Feed.create(name=name, url=url, user=user)


@delete.command(name="feed")
@click.argument("name")
def delete_feed(name):
    with Reporter(f"Deleted {name}!", "Failed to delete feed: {exception}"):
        deleted = Feed.delete().where(Feed.name == name).execute()
        if not deleted:
            raise LookupError(f"no feed named {name}")


@show.command(name="users")
def list_users():
    list_items(
        items=User.select().order_by(User.name),
        not_found_msg="No users found.",
        found_msg="Users:",
        line_fmt="  * {name}",
    )


@show.command(name="feeds")
def list_feeds():
    feeds = Feed.select(Feed, User).join(User).order_by(Feed.name)
    list_items(
        items=[
            {
                "name": feed.name,
                "url": feed.url,
                "user": feed.user.name,
                "fetched": feed.last_fetched_at or "never",
            }
            for feed in feeds
        ],
        not_found_msg="No feeds found.",
        found_msg="Currently watching:",
        line_fmt="  {name} ({url}), added by {user}, last fetched {fetched}",
    )


@show.command(name="posts")
@click.option("-l", "--limit", type=click.IntRange(min=1), default=10, show_default=True)
@click.option("-f", "--feed", "feed_name", help="Only show feeds matching this name")
def list_posts(limit, feed_name):
    posts = Post.latest(limit, feed_name)
    list_items(
        items=[
            {
                "title": post.title,
                "url": post.url,
                "feed": post.feed.name,
                "published": post.published_at or "unknown",
                "summary": summarize(post.description),
            }
            for post in posts
        ],
        not_found_msg="No posts found.",
        found_msg="Latest posts:",
        line_fmt="* {title}\n  {summary}\n  Link: {url}\n  Feed: {feed}\n  Published: {published}\n",
    )


@show.command(name="settings")
def list_settings():
    list_items(
        items=[{"key": key, "value": value} for key, value in Setting.as_dict().items()],
        not_found_msg="No settings configured.",
        found_msg="Settings:",
        line_fmt="  {key} = {value}",
    )


@cli.command(name="set")
@click.argument("key", type=click.Choice(list(DEFAULT_SETTINGS.keys())))
@click.argument("value")
def set_settings(key, value):
    with Reporter(f"Set {key} to {value}!", f"Failed to set {key}: {{exception}}"):
        Setting.set_value(key, value)
