from __future__ import annotations

# client_registry/db.py
import os
import re
import sqlite3
from contextlib import contextmanager
from typing import Iterator

import yaml

# DB path resolution order:
# 1) env CLIENTS_DB_PATH (highest priority)
# 2) test_db_path from config.yaml when running under tests
# 3) db_path from config.yaml
# 4) fallback: clients.db at the project root
_PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
_ROOT_DB = os.path.join(_PROJECT_ROOT, "clients.db")

DEFAULT_CLIENTS_TABLE = "clients"
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _read_config_yaml() -> dict:
    cfg_path = os.environ.get("CLIENTS_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        try:
            cfg = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"invalid config file {cfg_path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ValueError(f"invalid config file {cfg_path}: expected a mapping")
    out = {}
    for k in ("db_path", "test_db_path", "clients_table"):
        v = cfg.get(k)
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
    return out


def get_db_path(_: str | None = None) -> str:
    env_path = os.environ.get("CLIENTS_DB_PATH")
    cfg = _read_config_yaml()
    cfg_db = cfg.get("db_path")
    cfg_test = cfg.get("test_db_path")
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        path = env_path
    elif is_test and cfg_test:
        path = cfg_test
    elif cfg_db:
        path = cfg_db
    else:
        path = _ROOT_DB

    dirn = os.path.dirname(path) or "."
    os.makedirs(dirn, exist_ok=True)
    return path


def get_clients_table() -> str:
    """Name of the clients table: env CLIENTS_TABLE > config.yaml clients_table > 'clients'.

    The name ends up in statement text, so only plain identifiers are accepted.
    """
    name = os.environ.get("CLIENTS_TABLE") or _read_config_yaml().get("clients_table") or DEFAULT_CLIENTS_TABLE
    if not _IDENT_RE.match(name):
        raise ValueError(f"invalid clients table name: {name!r}")
    return name


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    Open a SQLite connection. An explicit db_path wins, otherwise get_db_path().
    Foreign keys on, rows come back as sqlite3.Row.
    """
    path = db_path or get_db_path()
    conn = sqlite3.connect(
        path,
        detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        check_same_thread=False,
        isolation_level=None,
    )
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()
