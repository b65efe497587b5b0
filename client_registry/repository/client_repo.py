from __future__ import annotations

from sqlite3 import Connection
from typing import Mapping, Optional

from . import translate_errors
from ..db import get_clients_table
from ..domain.client import CLIENT_FIELDS, Client

_COLUMNS = "id, name, address, phone_number"


def ensure_schema(conn: Connection):
    table = get_clients_table()
    with translate_errors():
        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                address TEXT NOT NULL,
                phone_number TEXT NOT NULL
            )
            """
        )


def create(conn: Connection, name: str, address: str, phone_number: str) -> int:
    table = get_clients_table()
    with translate_errors():
        cur = conn.execute(
            f"INSERT INTO {table}(name, address, phone_number) VALUES(?, ?, ?)",
            (name, address, phone_number),
        )
    return int(cur.lastrowid)


def list_all(conn: Connection) -> list[Client]:
    table = get_clients_table()
    with translate_errors():
        rows = conn.execute(f"SELECT {_COLUMNS} FROM {table} ORDER BY id").fetchall()
    return [Client.from_row(r) for r in rows]


def get_by_id(conn: Connection, client_id: int) -> Optional[Client]:
    table = get_clients_table()
    with translate_errors():
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM {table} WHERE id = ? LIMIT 1", (int(client_id),)
        ).fetchone()
    return Client.from_row(row) if row else None


def search(conn: Connection, attr: str) -> list[Client]:
    """Rows where `attr` occurs in name, address or phone_number (any of them).

    Plain case-sensitive substring match; `%` and `_` have no special meaning.
    """
    table = get_clients_table()
    sql = (
        f"SELECT {_COLUMNS} FROM {table} "
        "WHERE instr(name, :q) > 0 "
        "OR instr(address, :q) > 0 "
        "OR instr(phone_number, :q) > 0 "
        "ORDER BY id"
    )
    with translate_errors():
        rows = conn.execute(sql, {"q": attr}).fetchall()
    return [Client.from_row(r) for r in rows]


def update(conn: Connection, client_id: int, changes: Mapping[str, str]) -> bool:
    """Apply a partial update; returns False when no row has this id."""
    if not changes:
        raise ValueError("no fields to update")
    unknown = sorted(k for k in changes if k not in CLIENT_FIELDS)
    if unknown:
        raise ValueError(f"unknown client fields: {', '.join(unknown)}")

    # column names come from the allow-list, never from the caller
    cols = [c for c in CLIENT_FIELDS if c in changes]
    params: dict = {c: changes[c] for c in cols}
    params["id"] = int(client_id)
    table = get_clients_table()
    sql = f"UPDATE {table} SET " + ", ".join(f"{c} = :{c}" for c in cols) + " WHERE id = :id"
    with translate_errors():
        cur = conn.execute(sql, params)
    return cur.rowcount > 0


def delete(conn: Connection, client_id: int) -> bool:
    table = get_clients_table()
    with translate_errors():
        cur = conn.execute(f"DELETE FROM {table} WHERE id = ?", (int(client_id),))
    return cur.rowcount > 0


def count(conn: Connection) -> int:
    table = get_clients_table()
    with translate_errors():
        row = conn.execute(f"SELECT COUNT(1) AS cnt FROM {table}").fetchone()
    return int(row[0])
