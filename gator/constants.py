#!/usr/bin/env python3

# Imports {{{
# builtins
import pathlib
from importlib.util import find_spec

# 3rd party
import appdirs

# local modules
from gator import __version__

# }}}


BROTLI_SUPPORTED = find_spec("brotli") is not None
DEFAULT_DB_PATH = pathlib.Path(appdirs.user_config_dir("gator")) / "gator.db"
USER_AGENT = f"gator/{__version__}"
DEFAULT_SETTINGS = {
    "poll_interval": 60.0,  # seconds
    "concurrency": 5,
    "request_timeout": 10.0,  # seconds
    "storage_timeout": 10.0,  # seconds
}

# tried in order, first match wins
DATE_FORMATS = [
    "%a, %d %b %Y %H:%M:%S %z",  # RFC 1123 with numeric zone
    "%a, %d %b %Y %H:%M:%S GMT",  # RFC 1123
    "%a, %d %b %Y %H:%M:%S UTC",
    "%a, %d %b %Y %H:%M %z",
    "%d %b %Y %H:%M:%S %z",
    "%Y-%m-%dT%H:%M:%S%z",  # ISO 8601, also accepts a trailing Z
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
]
