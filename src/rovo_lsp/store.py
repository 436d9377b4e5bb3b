"""In-memory document store shared by the language server handlers."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or a single writer."""

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._condition:
            while self._writing:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._condition:
            while self._writing or self._readers:
                self._condition.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._condition:
                self._writing = False
                self._condition.notify_all()


class DocumentStore:
    """Latest full text of every open document, keyed by URI."""

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._documents: dict[str, str] = {}

    def set(self, uri: str, text: str) -> None:
        with self._lock.write():
            self._documents[uri] = text
        logger.debug("stored %s (%d chars)", uri, len(text))

    def get(self, uri: str) -> str | None:
        with self._lock.read():
            return self._documents.get(uri)

    def remove(self, uri: str) -> bool:
        with self._lock.write():
            removed = self._documents.pop(uri, None) is not None
        if removed:
            logger.debug("dropped %s", uri)
        return removed

    def uris(self) -> list[str]:
        with self._lock.read():
            return sorted(self._documents)

    def __contains__(self, uri: object) -> bool:
        with self._lock.read():
            return uri in self._documents

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._documents)
