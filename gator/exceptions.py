#!/usr/bin/env python3


class GatorError(Exception):
    """
    Base class for everything the aggregation engine raises on purpose.
    """


class FetchError(GatorError):
    """
    A feed could not be retrieved or understood.
    """


class NetworkError(FetchError):
    ...


class ParseError(FetchError):
    ...


class StorageError(GatorError):
    ...


class DuplicateKeyError(StorageError):
    """
    A post with the same canonical URL is already stored.
    """
