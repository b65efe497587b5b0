import json, time, uuid, datetime as dt
from typing import Optional
from .db import get_conn

DDL = """
CREATE TABLE IF NOT EXISTS operation_log (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  user TEXT NOT NULL,
  action TEXT NOT NULL,
  entity_type TEXT,
  entity_id TEXT,
  request_id TEXT,
  before_json TEXT,
  after_json TEXT,
  payload_json TEXT,
  result TEXT,
  err_msg TEXT,
  latency_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_log_ts ON operation_log(ts);
CREATE INDEX IF NOT EXISTS idx_log_action ON operation_log(action);
"""


def ensure_log_schema(db_path: str | None = None):
    with get_conn(db_path) as conn:
        conn.executescript(DDL)


def _dump(obj) -> Optional[str]:
    return None if obj is None else json.dumps(obj, ensure_ascii=False)


class LogContext:
    """Audit record for one client operation.

    Use as a context manager: leaving the block writes result OK, or ERROR
    with the exception message, and the exception keeps propagating.
    """

    def __init__(self, action: str, user: str = "owner", db_path: str | None = None):
        self.action = action
        self.user = user
        self.db_path = db_path
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.before = None
        self.after = None
        self.payload = None
        self.entity_type = None
        self.entity_id = None

    def set_entity(self, etype: str, eid):
        self.entity_type = etype
        self.entity_id = str(eid)

    def set_before(self, obj): self.before = obj
    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc is None:
            self.write("OK")
        else:
            self.write("ERROR", str(exc) or exc_type.__name__)
        return False

    def record(self, result: str, err: Optional[str]) -> dict:
        return {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
            "user": self.user,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "request_id": self.request_id,
            "before_json": _dump(self.before),
            "after_json": _dump(self.after),
            "payload_json": _dump(self.payload),
            "result": result,
            "err_msg": err,
            "latency_ms": int((time.perf_counter() - self.start) * 1000),
        }

    def write(self, result: str = "OK", err: Optional[str] = None):
        rec = self.record(result, err)
        cols = ",".join(rec)
        marks = ",".join(f":{k}" for k in rec)
        with get_conn(self.db_path) as conn:
            conn.execute(f"INSERT INTO operation_log({cols}) VALUES({marks})", rec)


def search_logs(
    q: str | None = None,
    action: str | None = None,
    ts_from: str | None = None,
    ts_to: str | None = None,
    client_id: int | None = None,
    page: int = 1,
    size: int = 20,
    db_path: str | None = None,
) -> tuple[int, list[dict]]:
    """Newest first. ts_from/ts_to compare against the ISO timestamp text,
    so a bare date like 2026-01-31 works as a lower bound.
    """
    where = []
    params: dict = {}
    if q:
        where.append("(payload_json LIKE :q OR before_json LIKE :q OR after_json LIKE :q)")
        params["q"] = f"%{q}%"
    if action:
        where.append("action = :action")
        params["action"] = action
    if ts_from:
        where.append("ts >= :from")
        params["from"] = ts_from
    if ts_to:
        where.append("ts <= :to")
        params["to"] = ts_to
    if client_id is not None:
        where.append("entity_type = 'CLIENT' AND entity_id = :eid")
        params["eid"] = str(client_id)
    wh = " WHERE " + " AND ".join(where) if where else ""
    with get_conn(db_path) as conn:
        total = conn.execute(f"SELECT COUNT(1) AS cnt FROM operation_log{wh}", params).fetchone()["cnt"]
        rows = conn.execute(
            f"SELECT * FROM operation_log{wh} ORDER BY id DESC LIMIT :limit OFFSET :offset",
            {**params, "limit": size, "offset": (page - 1) * size},
        ).fetchall()
    return total, [dict(r) for r in rows]
