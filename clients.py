#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Client registry (SQLite)

Commands:
  init                Create the clients and audit tables
  add                 Add a client (name, address, phone number)
  list                Print every client
  show                Print one client by id
  find                Substring search across name, address and phone number
  update              Change any of name/address/phone of one client
  delete              Remove one client
  import-csv          Bulk add clients from a CSV (name,address,phone_number)
  export-csv          Write every client to a CSV
  logs                Print recent audit entries

Notes:
- The DB path comes from --db, then CLIENTS_DB_PATH, then config.yaml.
- Every change is recorded in the operation_log table.
"""

import argparse
import logging
import sqlite3
import sys

from client_registry.logs import LogContext, ensure_log_schema, search_logs
from client_registry.repository import PersistenceError
from client_registry.services import client_svc


def _print_client(c: dict):
    print(f"{c['id']:>5}  {c['name']}  |  {c['address']}  |  {c['phone_number']}")


def cmd_init(args):
    ensure_log_schema(args.db)
    client_svc.ensure_client_schema(args.db)
    print("DB initialized.")
    return 0


def cmd_add(args):
    with LogContext("CREATE_CLIENT", db_path=args.db) as log:
        log.set_payload({"name": args.name, "address": args.address, "phone_number": args.phone})
        new_id = client_svc.add_client(args.name, args.address, args.phone, log, args.db)
    print(new_id)
    return 0


def cmd_list(args):
    for c in client_svc.list_clients(args.db):
        _print_client(c)
    return 0


def cmd_show(args):
    c = client_svc.get_client(args.id, args.db)
    if c is None:
        print(f"[WARN] client {args.id} not found", file=sys.stderr)
        return 1
    _print_client(c)
    return 0


def cmd_find(args):
    for c in client_svc.find_clients(args.text, args.db):
        _print_client(c)
    return 0


def cmd_update(args):
    changes = {}
    if args.name is not None:
        changes["name"] = args.name
    if args.address is not None:
        changes["address"] = args.address
    if args.phone is not None:
        changes["phone_number"] = args.phone
    with LogContext("UPDATE_CLIENT", db_path=args.db) as log:
        ok = client_svc.edit_client(args.id, changes, log, args.db)
    if not ok:
        print(f"[WARN] client {args.id} not found", file=sys.stderr)
        return 1
    print("Client updated.")
    return 0


def cmd_delete(args):
    with LogContext("DELETE_CLIENT", db_path=args.db) as log:
        deleted = client_svc.remove_client(args.id, log, args.db)
    if not deleted:
        print(f"[WARN] client {args.id} not found", file=sys.stderr)
        return 1
    print("Client deleted.")
    return 0


def cmd_import_csv(args):
    with LogContext("IMPORT_CLIENTS", db_path=args.db) as log:
        res = client_svc.import_clients_csv(args.path, log, args.db)
    print(f"Imported {res['created']} clients.")
    return 0


def cmd_export_csv(args):
    n = client_svc.export_clients_csv(args.path, args.db)
    print(f"Exported {n} clients to {args.path}")
    return 0


def cmd_logs(args):
    total, items = search_logs(
        q=args.q,
        action=args.action,
        ts_from=args.ts_from,
        ts_to=args.ts_to,
        client_id=args.client,
        size=args.size,
        db_path=args.db,
    )
    for it in items:
        print(f"{it['ts']}  {it['action']:<16} {it['entity_id'] or '-':>5}  {it['result']}  {it['err_msg'] or ''}")
    print(f"({len(items)} of {total})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Client registry (SQLite)")
    parser.add_argument("--db", default=None, help="SQLite file (overrides CLIENTS_DB_PATH)")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers()

    p_init = sub.add_parser("init", help="create tables")
    p_init.set_defaults(func=cmd_init)

    p_add = sub.add_parser("add", help="add a client")
    p_add.add_argument("--name", required=True)
    p_add.add_argument("--address", required=True)
    p_add.add_argument("--phone", required=True)
    p_add.set_defaults(func=cmd_add)

    p_list = sub.add_parser("list", help="list all clients")
    p_list.set_defaults(func=cmd_list)

    p_show = sub.add_parser("show", help="show one client")
    p_show.add_argument("id", type=int)
    p_show.set_defaults(func=cmd_show)

    p_find = sub.add_parser("find", help="search name/address/phone")
    p_find.add_argument("text")
    p_find.set_defaults(func=cmd_find)

    p_upd = sub.add_parser("update", help="update fields of a client")
    p_upd.add_argument("id", type=int)
    p_upd.add_argument("--name", required=False)
    p_upd.add_argument("--address", required=False)
    p_upd.add_argument("--phone", required=False)
    p_upd.set_defaults(func=cmd_update)

    p_del = sub.add_parser("delete", help="delete a client")
    p_del.add_argument("id", type=int)
    p_del.set_defaults(func=cmd_delete)

    p_imp = sub.add_parser("import-csv", help="import clients from CSV")
    p_imp.add_argument("path")
    p_imp.set_defaults(func=cmd_import_csv)

    p_exp = sub.add_parser("export-csv", help="export clients to CSV")
    p_exp.add_argument("path")
    p_exp.set_defaults(func=cmd_export_csv)

    p_logs = sub.add_parser("logs", help="recent audit entries")
    p_logs.add_argument("--action", required=False)
    p_logs.add_argument("--q", required=False)
    p_logs.add_argument("--from", dest="ts_from", required=False, help="ISO date/time, inclusive")
    p_logs.add_argument("--to", dest="ts_to", required=False, help="ISO timestamp upper bound")
    p_logs.add_argument("--client", type=int, required=False, help="only entries for this client id")
    p_logs.add_argument("--size", type=int, default=20)
    p_logs.set_defaults(func=cmd_logs)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    try:
        ensure_log_schema(args.db)
        client_svc.ensure_client_schema(args.db)
        return args.func(args)
    except (ValueError, PersistenceError, sqlite3.Error, OSError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
