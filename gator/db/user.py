#!/usr/bin/env python3

# Imports {{{
# builtins
import logging

# 3rd party
from peewee import TextField

# local modules
from gator.db.base import Record

# }}}


log = logging.getLogger(__name__)


class User(Record):
    """
    Someone who owns feeds.
    """

    name: str = TextField(unique=True)  # type: ignore

    @classmethod
    def get_or_add(cls, name: str) -> "User":
        user, created = cls.get_or_create(name=name)
        if created:
            log.debug(f"Created user {name}")
        return user
