#!/usr/bin/env python3

# Imports {{{
# builtins
from enum import Enum, IntEnum

# }}}


class EngineState(IntEnum):
    Idle = 1
    Fetching = 2


class FetchOutcome(Enum):
    Stored = "stored"
    MarkFailed = "mark_failed"
    FetchFailed = "fetch_failed"
