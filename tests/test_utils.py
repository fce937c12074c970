"""Tests for the small helpers shared across the package."""

# Imports {{{
# builtins
import asyncio

# 3rd party
import pytest

# local modules
from gator.constants import USER_AGENT
from gator.utils import (
    Reporter,
    format_duration,
    generate_headers,
    parse_duration,
    pool,
    summarize,
)

# }}}


@pytest.mark.parametrize(
    "value, seconds",
    [
        ("30s", 30),
        ("1m", 60),
        ("1h30m", 5400),
        ("1m30.5s", 90.5),
        ("500ms", 0.5),
        ("45", 45),
        (12, 12),
    ],
)
def test_parse_duration(value, seconds):
    assert parse_duration(value) == seconds


@pytest.mark.parametrize("value", ["", "soon", "1m30", "m1", "10x"])
def test_parse_duration_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_duration(value)


@pytest.mark.parametrize(
    "seconds, text",
    [(60, "1m0s"), (90, "1m30s"), (5, "5s"), (3600, "1h0m0s"), (0.25, "250ms")],
)
def test_format_duration(seconds, text):
    assert format_duration(seconds) == text


def test_summarize_strips_html_and_shortens():
    text = "<p>Hello   <b>world</b></p>" + " words" * 100

    summary = summarize(text)

    assert summary.startswith("Hello world words")
    assert summary.endswith("...")
    assert len(summary) <= 150
    assert summarize(None) == ""


def test_headers_identify_the_client():
    assert generate_headers()["User-Agent"] == USER_AGENT


def test_reporter_suppresses_and_logs(caplog):
    with Reporter("done", "failed: {exception}"):
        raise RuntimeError("boom")

    assert "failed: boom" in caplog.text


@pytest.mark.asyncio
async def test_pool_separates_results_from_exceptions():
    async def ok(value):
        await asyncio.sleep(0)
        return value

    async def fail():
        raise ValueError("nope")

    results, exceptions = await pool(ok(1), fail(), ok(3), keys=["a", "b", "c"])

    assert results == [("a", 1), ("c", 3)]
    assert [(key, str(error)) for key, error in exceptions] == [("b", "nope")]
