#!/usr/bin/env python3
"""
Ubiquitous -- Project access control: accounts, sessions, and admin-approved
project access.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py create-user --username admin --email admin@example.com --role Admin
  python main.py create-user --username alice --email alice@example.com --role Client --password 'Passw0rd!'

Environment variables:
  DATABASE_URL   SQLAlchemy URL of the store (default: sqlite:///./ubiquitous.db)
  See core/config.py for the full list.

create-user is how the first Admin gets into a fresh deployment, and the only
way in at all when SELF_REGISTRATION_ENABLED=false. It runs the same
validation and hashing as the signup endpoint. When --password is omitted the
password is read with getpass so it never lands in shell history.
"""

import argparse
import getpass
import sys
from typing import Optional

from auth.authenticator import Authenticator
from auth.store import UserStore
from core.config import get_settings
from core.errors import AccessControlError


def _read_password() -> Optional[str]:
    """Prompt twice for a password. Returns None if the entries differ."""
    first = getpass.getpass("  Password: ")
    second = getpass.getpass("  Confirm password: ")
    if first != second:
        return None
    return first


def create_user(args: argparse.Namespace) -> int:
    password = args.password
    if password is None:
        password = _read_password()
        if password is None:
            print("  [!] Passwords do not match.")
            return 1

    store = UserStore(get_settings().database_url)
    try:
        identity = Authenticator(store).signup(args.username, password, args.email, args.role)
    except AccessControlError as e:
        print(f"  [!] {e.message}")
        return 1
    finally:
        store.close()

    print(f"  Created {identity.role.value} '{identity.username}' (id={identity.id}, email={identity.email}).")
    return 0


def serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="ubiquitous",
        description="Project access control server and administration commands.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py create-user --username admin --email admin@example.com --role Admin
        """,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    p_user = subparsers.add_parser("create-user", help="Create an account directly in the store")
    p_user.add_argument("--username", required=True, help="Login name (stored lower-cased)")
    p_user.add_argument("--email", required=True, help="Email address (stored lower-cased)")
    p_user.add_argument(
        "--role",
        required=True,
        choices=["Admin", "Client"],
        help="Account role: Admin or Client",
    )
    p_user.add_argument(
        "--password",
        default=None,
        help="Password. Prompted for interactively when omitted.",
    )
    p_user.set_defaults(func=create_user)

    p_serve = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    p_serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    p_serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    p_serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    p_serve.set_defaults(func=serve)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
