#!/usr/bin/env python3
"""
siteadmin -- command-line administration for the site's database and server.

Usage:
  python main.py migrate
  python main.py status
  python main.py create-user --username alice --email alice@example.com --role admin
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8000 --reload

Environment variables (or .env):
  SECRET_KEY     Required. At least 32 characters. Signs session tokens.
  DATABASE_URL   SQLAlchemy URL of the SQLite database (default: sqlite:///data/database.sqlite)
  PORT           Port for `serve` (default: 5000)

There is no self-registration over HTTP. The first admin account is created
here with create-user; further accounts can be created by that admin through
POST /api/v1/auth/users.
"""

import argparse
import getpass
import logging
import sys
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from auth.models import KNOWN_ROLES, ROLE_EDITOR, Principal
from auth.store import PrincipalStore
from auth.tokens import hash_password
from core.config import Settings, get_settings
from core.database import create_db_engine
from migrations import MIGRATIONS, MigrationError, applied_migrations, pending_migrations, run_migrations

logger = logging.getLogger("siteadmin.cli")

MIN_PASSWORD_LENGTH = 8


def _load_settings() -> Optional[Settings]:
    """Return the process Settings, or None after printing why they are invalid."""
    try:
        return get_settings()
    except ValidationError as e:
        print("  [!] Invalid configuration:")
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"]) or "settings"
            print(f"      {field}: {err['msg']}")
        return None


def cmd_migrate(settings: Settings) -> int:
    engine = create_db_engine(settings.database_url)
    try:
        applied = run_migrations(engine, MIGRATIONS)
    except MigrationError as e:
        logger.error("Migration pass aborted at %s", e.migration_id)
        print(f"  [!] {e}")
        return 1
    finally:
        engine.dispose()

    if applied:
        for migration_id in applied:
            print(f"  applied  {migration_id}")
    else:
        print("  Schema is up to date.")
    return 0


def cmd_status(settings: Settings) -> int:
    engine = create_db_engine(settings.database_url)
    try:
        records = applied_migrations(engine)
        pending = pending_migrations(engine, MIGRATIONS)
    finally:
        engine.dispose()

    for record in records:
        print(f"  applied  {record.id:<28} {record.applied_at}  {record.description}")
    for migration in pending:
        print(f"  pending  {migration.id:<28} {'':<32}  {migration.description}")
    print(f"\n  {len(records)} applied, {len(pending)} pending.")
    return 0


def cmd_create_user(settings: Settings, args: argparse.Namespace) -> int:
    password = args.password
    if password is None:
        password = getpass.getpass("Password: ")
        if password != getpass.getpass("Repeat password: "):
            print("  [!] Passwords do not match.")
            return 1
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"  [!] Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        return 1

    engine = create_db_engine(settings.database_url)
    try:
        run_migrations(engine, MIGRATIONS)
        store = PrincipalStore(engine)
        principal_id = store.create_principal(
            Principal(
                username=args.username,
                email=args.email,
                role=args.role,
                password_hash=hash_password(password),
            )
        )
    except MigrationError as e:
        print(f"  [!] {e}")
        return 1
    except IntegrityError:
        print(f"  [!] A user with username '{args.username}' or email '{args.email}' already exists.")
        return 1
    finally:
        engine.dispose()

    logger.info("Principal %s (role=%s) created from the command line", principal_id, args.role)
    print(f"  Created {args.role} '{args.username}' ({principal_id}).")
    return 0


def cmd_serve(settings: Settings, args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "asgi:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="siteadmin",
        description="Database and server administration for the siteadmin API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py migrate
  python main.py status
  python main.py create-user --username admin --email admin@example.com --role admin
  SECRET_KEY=... python main.py serve --port 8000
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    sub.add_parser("migrate", help="Apply all pending schema migrations")
    sub.add_parser("status", help="List applied and pending migrations")

    create = sub.add_parser("create-user", help="Create an account (the only way to bootstrap an admin)")
    create.add_argument("--username", required=True)
    create.add_argument("--email", required=True)
    create.add_argument(
        "--role",
        choices=sorted(KNOWN_ROLES),
        default=ROLE_EDITOR,
        help="Account role (default: editor)",
    )
    create.add_argument(
        "--password",
        default=None,
        help="Password; prompted for when omitted (recommended, keeps it out of shell history)",
    )

    serve = sub.add_parser("serve", help="Run the API server with uvicorn")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT setting)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    settings = _load_settings()
    if settings is None:
        return 1

    if args.command == "migrate":
        return cmd_migrate(settings)
    if args.command == "status":
        return cmd_status(settings)
    if args.command == "create-user":
        return cmd_create_user(settings, args)
    return cmd_serve(settings, args)


if __name__ == "__main__":
    sys.exit(main())
