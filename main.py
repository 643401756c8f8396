#!/usr/bin/env python3
"""
Intelligencer admin -- account provisioning.

There is no sign-up page. Admin accounts are created from the command line
against the same database the web app uses (DATABASE_URL).

Usage:
  python main.py create-admin --email editor@example.com --name "Editor"
  python main.py create-admin --email editor@example.com --name "Editor" --password '...'
  python main.py list-admins

When --password is omitted the password is prompted for twice without echo.
"""

import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import Admin
from auth.store import AdminStore, normalize_email
from auth.tokens import hash_password
from core.config import get_settings

MIN_PASSWORD_LENGTH = 8


def _prompt_password() -> Optional[str]:
    """Ask for a password twice. Returns None if the entries differ."""
    first = getpass.getpass("  Password: ")
    second = getpass.getpass("  Confirm password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return None
    return first


def create_admin(store: AdminStore, email: str, name: str, password: str) -> int:
    """Validate input and insert a new admin. Returns the new admin's id.

    Raises ValueError with a user-facing message on invalid input or a
    duplicate email.
    """
    email_clean = normalize_email(email)
    name_clean = name.strip()
    if "@" not in email_clean:
        raise ValueError(f"'{email}' is not a valid email address.")
    if not name_clean:
        raise ValueError("Name is required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    admin = Admin(email=email_clean, name=name_clean, hashed_password=hash_password(password))
    try:
        return store.create_admin(admin)
    except IntegrityError as exc:
        raise ValueError(f"An admin with email {email_clean} already exists.") from exc


def _cmd_create_admin(store: AdminStore, args: argparse.Namespace) -> int:
    password = args.password
    if password is None:
        password = _prompt_password()
        if password is None:
            return 1
    try:
        admin_id = create_admin(store, args.email, args.name, password)
    except ValueError as exc:
        print(f"  [!] {exc}")
        return 1
    print(f"  Created admin {normalize_email(args.email)} (id {admin_id}).")
    return 0


def _cmd_list_admins(store: AdminStore, args: argparse.Namespace) -> int:
    admins = store.list_admins()
    if not admins:
        print("  No admin accounts. Create one with: python main.py create-admin")
        return 0
    for admin in admins:
        last = admin.last_login or "never"
        print(f"  {admin.id:>4}  {admin.email:<40} {admin.name:<24} last login: {last}")
    return 0


def main(argv: Optional[list[str]] = None, store: Optional[AdminStore] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="intelligencer-admin",
        description="Manage admin accounts for The Artificial Intelligencer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-admin --email editor@example.com --name "Editor"
  python main.py list-admins
  DATABASE_URL=sqlite:////srv/intelligencer.db python main.py list-admins
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    create = sub.add_parser("create-admin", help="Create an admin account")
    create.add_argument("--email", required=True, help="Sign-in email (stored lowercased)")
    create.add_argument("--name", required=True, help="Display name")
    create.add_argument(
        "--password",
        default=None,
        help=f"Password, at least {MIN_PASSWORD_LENGTH} characters (prompted when omitted)",
    )
    create.set_defaults(handler=_cmd_create_admin)

    listing = sub.add_parser("list-admins", help="List admin accounts")
    listing.set_defaults(handler=_cmd_list_admins)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    owns_store = store is None
    if store is None:
        store = AdminStore(db_url=get_settings().database_url)
    try:
        return args.handler(store, args)
    finally:
        if owns_store:
            store.close()


if __name__ == "__main__":
    sys.exit(main())
