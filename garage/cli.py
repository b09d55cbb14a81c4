"""CLI for the garage backend: bootstrap users, run maintenance."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

from garage.errors import GarageError


async def cmd_create_user(args):
    """Create a user (typically the first admin)."""
    from garage.db.engine import async_session_factory, create_all
    from garage.services.users import create_user_record

    await create_all()

    password = args.password
    if not password:
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match")
            sys.exit(1)

    async with async_session_factory() as db:
        user = await create_user_record(
            db,
            email=args.email,
            password=password,
            role=args.role,
            display_name=args.display_name or "",
            branch_id=args.branch_id,
        )
    print(f"User created: {user.email} (id={user.id}, role={user.role})")


async def cmd_sweep(args):
    """Delete expired notifications and conversations once."""
    from garage.db.engine import async_session_factory, create_all
    from garage.services.retention import sweep_expired

    await create_all()
    async with async_session_factory() as db:
        counts = await sweep_expired(db)
    print(
        f"Removed {counts['notifications']} notifications, "
        f"{counts['conversations']} conversations ({counts['messages']} messages)"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="garage", description="Garage operations CLI")
    sub = parser.add_subparsers(dest="command")

    p_user = sub.add_parser("create-user", help="Create a staff user")
    p_user.add_argument("--email", required=True)
    p_user.add_argument("--password", default="", help="Prompted if omitted")
    p_user.add_argument("--role", default="admin")
    p_user.add_argument("--display-name", default="")
    p_user.add_argument("--branch-id", default=None)

    sub.add_parser("sweep", help="Run the expiry sweep once")
    return parser


def main(argv: list[str] | None = None):
    from garage.main import configure_logging

    parser = build_parser()
    args = parser.parse_args(argv)

    commands = {
        "create-user": cmd_create_user,
        "sweep": cmd_sweep,
    }
    if args.command not in commands:
        parser.print_help()
        sys.exit(1)

    configure_logging()
    try:
        asyncio.run(commands[args.command](args))
    except GarageError as exc:
        print(f"Error: {exc.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
