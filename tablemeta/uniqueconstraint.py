"""Sources of the unique-constraint columns of tables."""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

import msgpack
from cachetools import TTLCache

from tablemeta.spec import UniqueConstraintNotFoundError

logger = logging.getLogger(__name__)

CACHE_KEY = "spreadsheet"
UNIQUE_CONSTRAINT_CACHE_EXPIRATION_SECONDS = 120

Dictionary = dict[str, list[str]]


class CSVFormatError(ValueError):
    """Raised when a line of a constraint file is malformed."""

    def __init__(self, message: str = "csv format error") -> None:
        super().__init__(message)


class DictionaryStore(ABC):
    """A source of the table-to-constraint-columns dictionary."""

    @abstractmethod
    def get(self) -> Dictionary:
        """Return the whole dictionary."""


class FileReader(ABC):
    """Reads the raw content of a file."""

    @abstractmethod
    def read_file(self, file_path: str) -> bytes:
        """Return the bytes stored at file_path."""


class DefaultFileReader(FileReader):
    """Reads files from the local file system."""

    def read_file(self, file_path: str) -> bytes:
        return Path(file_path).read_bytes()


def parse_line(line: str) -> tuple[str, list[str]]:
    """Split a line "table_id;col1,col2" into the id and its columns."""
    row = line.split(";")
    if len(row) != 2:
        raise CSVFormatError()
    table_id, columns = row
    return table_id, columns.split(",")


def parse(content: str) -> Dictionary:
    """Parse semicolon-separated constraint lines into a dictionary."""
    return dict(parse_line(line) for line in content.split("\n"))


class CSVDictionaryStore(DictionaryStore):
    """Constraint dictionary read from a semicolon-separated file.

    Each line reads ``project.dataset.table;column1,column2``.
    """

    def __init__(self, file_path: str, file_reader: FileReader | None = None) -> None:
        self.file_path = file_path
        self.file_reader = file_reader if file_reader is not None else DefaultFileReader()

    def get(self) -> Dictionary:
        logger.info("reading csv from %s", self.file_path)
        content = self.file_reader.read_file(self.file_path)
        dictionary = parse(content.decode("utf-8"))
        logger.info("get dictionary from csv file, found : %d tables", len(dictionary))
        return dictionary


class CachedDictionaryStore(DictionaryStore):
    """Dictionary store that loads from a source and keeps it for a while."""

    def __init__(
        self,
        cache_expiration_seconds: int,
        source: DictionaryStore,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=cache_expiration_seconds, timer=timer)
        self._lock = threading.Lock()

    def _load(self) -> bytes:
        dictionary = self._source.get()
        logger.info("load unique constraint dictionary")
        return msgpack.packb(dictionary)

    def get(self) -> Dictionary:
        with self._lock:
            packed = self._cache.get(CACHE_KEY)
            if packed is None:
                packed = self._load()
                self._cache[CACHE_KEY] = packed
        return msgpack.unpackb(packed)


class ConstraintStore:
    """Looks up the unique-constraint columns of a table."""

    def __init__(self, dictionary_store: DictionaryStore) -> None:
        self.dictionary_store = dictionary_store

    def fetch_constraints(self, table_id: str) -> list[str]:
        """Return the constraint columns of table_id.

        Raises UniqueConstraintNotFoundError when the table is unknown.
        """
        dictionary = self.dictionary_store.get()
        try:
            return dictionary[table_id]
        except KeyError:
            raise UniqueConstraintNotFoundError() from None


class DictionaryStoreFactory:
    """Creates dictionary stores from a location."""

    def create_dictionary_store(self, url: str) -> DictionaryStore:
        return CSVDictionaryStore(url, DefaultFileReader())


class StoreFactory:
    """Creates cached constraint stores from a location."""

    def __init__(self, dictionary_store_factory: DictionaryStoreFactory | None = None) -> None:
        self.dictionary_store_factory = (
            dictionary_store_factory
            if dictionary_store_factory is not None
            else DictionaryStoreFactory()
        )

    def create_unique_constraint_store(self, url: str) -> ConstraintStore:
        source = self.dictionary_store_factory.create_dictionary_store(url)
        cached = CachedDictionaryStore(UNIQUE_CONSTRAINT_CACHE_EXPIRATION_SECONDS, source)
        return ConstraintStore(cached)