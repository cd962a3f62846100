#!/usr/bin/env python3
"""
Maintenance commands for Sound Map API users (SQLite).

Admins cannot be created over HTTP; use this script to grant or revoke
the admin flag.  It can also set a new password for a user.  The
script never reads or reveals existing passwords.

Usage:
    python manage_users.py --db ./soundmap_api/soundmap.db grant-admin Jules
    python manage_users.py --db ./soundmap_api/soundmap.db revoke-admin Jules
    python manage_users.py --db ./soundmap_api/soundmap.db reset-password Jules

If --password is omitted for reset-password, you will be prompted.
"""

import argparse
import getpass
import os
import sqlite3
import sys

from soundmap_api.app.core.security import hash_password
from soundmap_api.app.services.validation import validate_password


def _set_admin(conn: sqlite3.Connection, username: str, flag: bool) -> None:
    cur = conn.execute("UPDATE users SET is_admin = ? WHERE username = ?", (int(flag), username))
    if cur.rowcount == 0:
        print(f"[!] No user found with username: {username}", file=sys.stderr)
        sys.exit(2)
    conn.commit()
    state = "granted to" if flag else "revoked from"
    print(f"[+] Admin role {state} {username}")


def _reset_password(conn: sqlite3.Connection, username: str, password: str | None) -> None:
    new_password = password or getpass.getpass("Enter NEW password: ")
    result = validate_password(new_password)
    if not result.ok:
        print(f"[!] {result.errors[0][1]}", file=sys.stderr)
        sys.exit(1)
    cur = conn.execute(
        "UPDATE users SET password = ? WHERE username = ?", (hash_password(new_password), username)
    )
    if cur.rowcount == 0:
        print(f"[!] No user found with username: {username}", file=sys.stderr)
        sys.exit(2)
    conn.commit()
    print(f"[+] Password updated for user: {username}")


def main() -> None:
    ap = argparse.ArgumentParser(description="Manage Sound Map API users (SQLite).")
    ap.add_argument("--db", required=True, help="Path to SQLite DB file")
    sub = ap.add_subparsers(dest="command", required=True)
    for name in ("grant-admin", "revoke-admin"):
        cmd = sub.add_parser(name)
        cmd.add_argument("username")
    reset = sub.add_parser("reset-password")
    reset.add_argument("username")
    reset.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args()

    if not os.path.exists(args.db):
        print(f"[!] DB not found: {args.db}", file=sys.stderr)
        sys.exit(1)

    conn = sqlite3.connect(args.db)
    try:
        if args.command == "reset-password":
            _reset_password(conn, args.username, args.password)
        else:
            _set_admin(conn, args.username, args.command == "grant-admin")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
