#!/usr/bin/env python3

# Imports {{{
# builtins
import logging
from typing import Any, Dict

# 3rd party
from peewee import CharField, TextField

# local modules
from gator.constants import DEFAULT_SETTINGS
from gator.db.base import Database
from gator.utils import parse_duration

# }}}


log = logging.getLogger(__name__)

DURATIONS = {"poll_interval", "request_timeout", "storage_timeout"}


def coerce(key: str, value: Any) -> Any:
    """
    Convert a raw value to the type of the setting's default.

    Raises KeyError for unknown settings and ValueError for values that
    don't make sense.
    """
    if key not in DEFAULT_SETTINGS:
        raise KeyError(f"Unknown setting: {key}")

    if key in DURATIONS:
        converted = parse_duration(value)
    else:
        converted = type(DEFAULT_SETTINGS[key])(value)

    if converted <= 0:
        raise ValueError(f"{key} must be positive, got {value!r}")
    return converted


class Setting(Database):
    """
    Persistent engine settings, stored as text and typed on the way out.
    """

    key: str = CharField(max_length=255, primary_key=True)  # type: ignore
    value: str = TextField()  # type: ignore

    @classmethod
    def get_value(cls, key: str) -> Any:
        row = cls.get_or_none(cls.key == key)
        if row is None:
            if key not in DEFAULT_SETTINGS:
                raise KeyError(f"Unknown setting: {key}")
            return DEFAULT_SETTINGS[key]
        return coerce(key, row.value)

    @classmethod
    def set_value(cls, key: str, value: Any) -> Any:
        converted = coerce(key, value)
        cls.replace(key=key, value=str(converted)).execute()
        log.debug(f"Setting {key} = {converted!r}")
        return converted

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        return {key: cls.get_value(key) for key in DEFAULT_SETTINGS}
