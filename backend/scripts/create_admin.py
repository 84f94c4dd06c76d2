"""Create an admin account, or promote an existing user to admin."""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from pydantic import ValidationError  # noqa: E402

from storefront.db.session import SessionLocal  # noqa: E402
from storefront.models.enums import UserRole  # noqa: E402
from storefront.schemas.user import RegisterRequest  # noqa: E402
from storefront.services.auth import find_user_by_username, register_user  # noqa: E402
from storefront.services.users import update_role  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or promote a storefront admin account")
    parser.add_argument("username", help="Login id of the admin")
    parser.add_argument("--email", default="", help="Email for a new account")
    parser.add_argument("--name", default="Administrator", help="Display name for a new account")
    parser.add_argument("--password", default="", help="Password for a new account (prompted when omitted)")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    db = SessionLocal()
    try:
        existing = find_user_by_username(db, args.username)
        if existing:
            update_role(db, str(existing.id), UserRole.admin)
            print(f"promoted={existing.username}")
            return 0

        if not args.email:
            print("A new account needs --email.")
            return 1
        password = args.password or getpass.getpass("Password: ")
        try:
            payload = RegisterRequest(username=args.username, email=args.email, name=args.name, password=password)
        except ValidationError as exc:
            print(f"Invalid account data: {exc}")
            return 1

        user = register_user(db, payload)
        update_role(db, str(user.id), UserRole.admin)
        print(f"created={user.username}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
