"""Repository layer: DB access helpers (SQLite).

Keep functions thin and focused, so services avoid SQL strings.
Every function takes an open connection and never commits or closes it.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator


class PersistenceError(Exception):
    """A statement could not be prepared or executed. Carries the driver message."""


@contextmanager
def translate_errors() -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        raise PersistenceError(str(e)) from e
