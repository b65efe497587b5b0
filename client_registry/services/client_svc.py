from __future__ import annotations

# client_registry/services/client_svc.py
import logging
from typing import Any, Mapping, Optional

import pandas as pd

from ..db import get_conn
from ..domain.client import CLIENT_FIELDS
from ..logs import LogContext
from ..repository import client_repo

logger = logging.getLogger(__name__)


def ensure_client_schema(db_path: str | None = None):
    with get_conn(db_path) as conn:
        client_repo.ensure_schema(conn)


def add_client(name: str, address: str, phone_number: str, log: LogContext, db_path: str | None = None) -> int:
    with get_conn(db_path) as conn:
        new_id = client_repo.create(conn, name, address, phone_number)
        conn.commit()
    logger.info(f"Client created with ID: {new_id}")
    log.set_entity("CLIENT", new_id)
    log.set_after({"id": new_id, "name": name, "address": address, "phone_number": phone_number})
    return new_id


def list_clients(db_path: str | None = None) -> list[dict[str, Any]]:
    with get_conn(db_path) as conn:
        return [c.to_dict() for c in client_repo.list_all(conn)]


def get_client(client_id: int, db_path: str | None = None) -> Optional[dict[str, Any]]:
    with get_conn(db_path) as conn:
        c = client_repo.get_by_id(conn, client_id)
    return c.to_dict() if c else None


def find_clients(text: str, db_path: str | None = None) -> list[dict[str, Any]]:
    with get_conn(db_path) as conn:
        return [c.to_dict() for c in client_repo.search(conn, text)]


def edit_client(client_id: int, changes: Mapping[str, str], log: LogContext, db_path: str | None = None) -> bool:
    """Partial update. Returns False when the id does not exist."""
    log.set_entity("CLIENT", client_id)
    log.set_payload(dict(changes))
    with get_conn(db_path) as conn:
        before = client_repo.get_by_id(conn, client_id)
        ok = client_repo.update(conn, client_id, changes)
        conn.commit()
        after = client_repo.get_by_id(conn, client_id) if ok else None
    if before:
        log.set_before(before.to_dict())
    if after:
        log.set_after(after.to_dict())
        logger.info(f"Client {client_id} updated: {', '.join(sorted(changes))}")
    return ok


def remove_client(client_id: int, log: LogContext, db_path: str | None = None) -> bool:
    log.set_entity("CLIENT", client_id)
    with get_conn(db_path) as conn:
        before = client_repo.get_by_id(conn, client_id)
        deleted = client_repo.delete(conn, client_id)
        conn.commit()
    if before:
        log.set_before(before.to_dict())
    if deleted:
        logger.info(f"Client {client_id} deleted")
    return deleted


def import_clients_csv(csv_path: str, log: LogContext, db_path: str | None = None) -> dict:
    """Bulk insert from a CSV with columns name, address, phone_number.
    Values go in exactly as read; other columns (such as id) are ignored.
    """
    log.set_payload({"path": csv_path})
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
    missing = [c for c in CLIENT_FIELDS if c not in df.columns]
    if missing:
        raise ValueError(f"missing columns: {', '.join(missing)}")

    created = 0
    with get_conn(db_path) as conn:
        for r in df[list(CLIENT_FIELDS)].itertuples(index=False):
            client_repo.create(conn, r.name, r.address, r.phone_number)
            created += 1
        conn.commit()

    logger.info(f"Imported {created} clients from {csv_path}")
    log.set_after({"created": created})
    return {"created": created}


def export_clients_csv(csv_path: str, db_path: str | None = None) -> int:
    rows = list_clients(db_path)
    df = pd.DataFrame(rows, columns=["id", *CLIENT_FIELDS])
    df.to_csv(csv_path, index=False, encoding="utf-8")
    return len(df)
