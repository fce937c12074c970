#!/usr/bin/env python3

# Imports {{{
# builtins
import logging
import uuid

# 3rd party
from peewee import (
    DatabaseProxy,
    DateTimeField,
    Model,
    SqliteDatabase,
    UUIDField,
    make_snake_case,
)

# local modules
from gator.utils import to_naive_utc, utcnow

# }}}


log = logging.getLogger(__name__)


def create_table_name(model):
    snake = make_snake_case(model.__name__)
    pluralized = snake + "s"
    return pluralized


def now():
    return to_naive_utc(utcnow())


db_proxy = DatabaseProxy()


class Database(Model):
    class Meta:
        database = db_proxy
        table_function = create_table_name

    _abstract = True

    @classmethod
    def models(cls):
        """
        Every concrete model below this one.
        """
        for subcls in cls.__subclasses__():
            if not subcls.__dict__.get("_abstract", False):
                yield subcls
            yield from subcls.models()

    @classmethod
    def seed(cls):
        nonexistent = [model for model in cls.models() if not model.table_exists()]

        if cls._meta and cls._meta.database:
            cls._meta.database.create_tables(nonexistent)

        for subcls in nonexistent:
            if hasattr(subcls, "seed"):
                subcls.seed()


class Record(Database):
    """
    Rows with a UUID identity and bookkeeping timestamps (naive UTC).
    """

    _abstract = True

    id: uuid.UUID = UUIDField(primary_key=True, default=uuid.uuid4)  # type: ignore
    created_at = DateTimeField(default=now)
    updated_at = DateTimeField(default=now)


def init_db(path, busy_timeout: float = 10.0):
    """
    Open (or create) the SQLite database at `path` and create missing tables.
    """
    # TODO: allow more DB connection types
    db = SqliteDatabase(
        str(path),
        timeout=busy_timeout,
        pragmas={
            "journal_mode": "wal",
            "cache_size": -1 * 64000,  # 64MB
            "foreign_keys": 1,
            "ignore_check_constraints": 0,
            "synchronous": 0,
        },
    )

    db_proxy.initialize(db)
    Database.seed()
    db_proxy.close()
    return db
