#!/usr/bin/env python3
"""
Menu service operator CLI.

Bootstraps accounts without going through the HTTP API (the first
administrator cannot be created over HTTP, since creating cafés requires an
admin token) and inspects bearer tokens.

Usage:
  python main.py create-admin --phone +99361000000
  python main.py create-admin --phone +99361000000 --password s3cret --first-name Aman
  python main.py create-cafe --login bluecup --name "Blue Cup" --phone +99312000000
  python main.py inspect-token eyJhbGciOi...

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the service database (default sqlite:///menuservice.db)
  SECRET_KEY    Token signing key; inspect-token must use the same key as the server
"""

import argparse
import getpass
import json
import sys
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.errors import TokenError
from auth.models import Admin, Cafe
from auth.passwords import MAX_PASSWORD_BYTES, hash_password, password_too_long
from auth.store import PrincipalStore
from auth.tokens import TokenService
from core.config import get_settings


def _checked(password: str) -> str:
    if password_too_long(password):
        raise SystemExit(f"  [!] Password is longer than {MAX_PASSWORD_BYTES} bytes.")
    return password


def _read_password(given: Optional[str]) -> str:
    """Use --password when given, otherwise prompt twice without echo."""
    if given:
        return _checked(given)
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Repeat password: ")
    if not first or first != second:
        raise SystemExit("  [!] Passwords are empty or do not match.")
    return _checked(first)


def _create_admin(args: argparse.Namespace) -> int:
    store = PrincipalStore(get_settings().database_url)
    try:
        first = not store.has_admins()
        admin = Admin(
            phone_number=args.phone,
            hashed_password=hash_password(_read_password(args.password)),
            first_name=args.first_name,
            last_name=args.last_name,
            email=args.email,
        )
        try:
            admin_id = store.create_admin(admin)
        except IntegrityError:
            print(f"  [!] An administrator with phone number {args.phone} already exists.")
            return 1
        print(f"Administrator {admin_id} created." + (" (first administrator)" if first else ""))
        return 0
    finally:
        store.close()


def _create_cafe(args: argparse.Namespace) -> int:
    store = PrincipalStore(get_settings().database_url)
    try:
        cafe = Cafe(
            login=args.login,
            name=args.name,
            hashed_password=hash_password(_read_password(args.password)),
            code=args.code,
            phone_numbers=args.phone or [],
        )
        try:
            cafe_id = store.create_cafe(cafe)
        except IntegrityError:
            print(f"  [!] A cafe with login {args.login!r} already exists.")
            return 1
        print(f"Cafe {cafe_id} created.")
        return 0
    finally:
        store.close()


def _inspect_token(args: argparse.Namespace) -> int:
    tokens = TokenService.from_settings(get_settings())
    try:
        claims = tokens.validate(args.token)
    except TokenError as exc:
        print(f"  [!] {exc.code}: {exc.message}")
        return 1
    expires = datetime.fromtimestamp(claims.expiry, tz=timezone.utc).isoformat()
    print(json.dumps({"id": claims.identity, "role": claims.role, "exp": claims.expiry, "expires_at": expires}, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="menu-service",
        description="Operator tools for the menu service: account bootstrap and token inspection.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    admin = sub.add_parser("create-admin", help="Create an administrator account")
    admin.add_argument("--phone", required=True, help="Phone number used as the admin login")
    admin.add_argument("--password", help="Password (prompted when omitted)")
    admin.add_argument("--first-name", default="")
    admin.add_argument("--last-name", default="")
    admin.add_argument("--email", default="")
    admin.set_defaults(func=_create_admin)

    cafe = sub.add_parser("create-cafe", help="Create a cafe account")
    cafe.add_argument("--login", required=True, help="Login name used at /cafe/auth/login")
    cafe.add_argument("--name", required=True, help="Display name of the cafe")
    cafe.add_argument("--password", help="Password (prompted when omitted)")
    cafe.add_argument("--code", default="", help="Short public cafe code")
    cafe.add_argument("--phone", action="append", metavar="NUMBER", help="Contact number (repeatable)")
    cafe.set_defaults(func=_create_cafe)

    inspect = sub.add_parser("inspect-token", help="Validate a token and print its claims")
    inspect.add_argument("token")
    inspect.set_defaults(func=_inspect_token)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
