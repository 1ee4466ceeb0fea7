"""``lockbox`` command line: maintenance shells run against the configured database."""

import argparse
import json
import logging
import sys

from .core.config import settings
from .core.logging_config import setup_logging
from .core.migrator import MigrationError, run_migrations
from .database import Base, SessionLocal, engine
from .exceptions import LockboxException
from .models.user import ROLE_ADMIN, ROLE_USER
from .services import auth_service, cleanup_service
from .services.healthcheck import DOMAIN_APPLICATION, DOMAIN_CORE, DOMAIN_DATABASE, DOMAIN_ENVIRONMENT
from .services.healthcheck import build_collector, count_errors, render_report, to_legacy_array

logger = logging.getLogger(__name__)

CLEANUP_DESCRIPTION = "Identify and fix database relational integrity issues."
NO_USERS_TABLE_MESSAGE = "Cleanup command cannot be executed on an instance having no users table."
NO_ADMIN_MESSAGE = "Cleanup command cannot be executed on an instance having no active administrator."


def cmd_cleanup(args) -> int:
    mode = "(dry-run)" if args.dry_run else "(fix mode)"
    print(f" Cleanup shell {mode}")
    print("")

    db = SessionLocal()
    try:
        if not cleanup_service.has_users_table(db):
            print(NO_USERS_TABLE_MESSAGE, file=sys.stderr)
            return 0
        if not cleanup_service.has_active_admin(db):
            print(NO_ADMIN_MESSAGE, file=sys.stderr)
            return 0

        results = cleanup_service.run_cleanups(db, dry_run=args.dry_run)
    finally:
        db.close()

    for result in results:
        print(f" {result.message()}")
    total = sum(r.count for r in results)
    print("")
    if args.dry_run:
        print(f" {total} issue(s) found. Run without --dry-run to fix them.")
    else:
        print(f" {total} issue(s) fixed.")
    return 0


def cmd_healthcheck(args) -> int:
    results = build_collector(engine).run(domain=args.domain)
    if args.json:
        print(json.dumps(to_legacy_array(results), indent=2))
    else:
        print(" Healthcheck shell")
        print("")
        for line in render_report(results):
            print(line)
    errors = count_errors(results)
    if errors and not args.json:
        print(f" {errors} error(s) found. Fix them before using the instance in production.")
    return 1 if errors else 0


def cmd_migrate(args) -> int:
    try:
        result = run_migrations(engine, Base)
    except MigrationError as e:
        print(f"Migration failed: {e}", file=sys.stderr)
        return 1
    print(f" Applied: {result.applied}, baselined: {result.baselined}, up to date: {result.skipped}")
    return 0


def cmd_create_user(args) -> int:
    db = SessionLocal()
    try:
        user = auth_service.create_user(db, args.username, args.password, role=args.role)
    except LockboxException as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f" User {user.username} created with id {user.id}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="lockbox", description="Lockbox server maintenance commands.")
    sub = p.add_subparsers(dest="cmd")

    s = sub.add_parser("cleanup", help=CLEANUP_DESCRIPTION, description=CLEANUP_DESCRIPTION)
    s.add_argument("--dry-run", action="store_true", help="Report the issues without fixing them")
    s.set_defaults(func=cmd_cleanup)

    s = sub.add_parser("healthcheck", help="Run the instance healthchecks")
    s.add_argument(
        "--domain",
        choices=[DOMAIN_ENVIRONMENT, DOMAIN_CORE, DOMAIN_APPLICATION, DOMAIN_DATABASE],
        help="Only run the checks of one domain",
    )
    s.add_argument("--json", action="store_true", help="Print the legacy nested JSON report")
    s.set_defaults(func=cmd_healthcheck)

    s = sub.add_parser("migrate", help="Create tables and apply pending migrations")
    s.set_defaults(func=cmd_migrate)

    s = sub.add_parser("create-user", help="Create a user account")
    s.add_argument("username", help="Email address")
    s.add_argument("password")
    s.add_argument("--role", choices=[ROLE_USER, ROLE_ADMIN], default=ROLE_USER)
    s.set_defaults(func=cmd_create_user)
    return p


def main(argv=None) -> int:
    setup_logging(log_level=settings.log_level, log_format=settings.log_format)
    p = build_parser()
    args = p.parse_args(argv)
    if not hasattr(args, "func"):
        p.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
