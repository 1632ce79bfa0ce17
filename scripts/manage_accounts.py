#!/usr/bin/env python3
"""
Account Management Script

Moderator roles and spammy email domains, straight against the database.
There is no API for either.

Usage:
    # Make a user a moderator
    ENV=staging python scripts/manage_accounts.py grant-role someuser

    # Remove a role
    ENV=staging python scripts/manage_accounts.py revoke-role someuser --role Administrator

    # Block script posting from a domain
    ENV=staging python scripts/manage_accounts.py spammy-domain example.com --block-type script_posting

    # Show a user's report outcomes and recompute trust
    ENV=staging python scripts/manage_accounts.py trust someuser
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

env_file = os.getenv("ENV", "local")
load_dotenv(f".env.{env_file}")

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from scripthub.db import AsyncSessionLocal
from scripthub.models import ADMINISTRATOR_ROLE, MODERATOR_ROLE, BlockType, Role, SpammyEmailDomain, User
from scripthub.services.moderation import moderation_service


async def find_user(db, name_or_id: str) -> User:
    query = select(User).options(selectinload(User.roles))
    if name_or_id.isdigit():
        query = query.where(User.id == int(name_or_id))
    else:
        query = query.where(User.name == name_or_id)
    user = (await db.execute(query)).scalar_one_or_none()
    if user is None:
        print(f"No user {name_or_id!r}")
        sys.exit(1)
    return user


async def grant_role(name_or_id: str, role_name: str):
    async with AsyncSessionLocal() as db:
        user = await find_user(db, name_or_id)
        if any(r.name == role_name for r in user.roles):
            print(f"{user.name} already has role {role_name}")
            return

        role = (await db.execute(select(Role).where(Role.name == role_name))).scalar_one_or_none()
        user.roles.append(role or Role(name=role_name))
        await db.commit()
        print(f"Granted {role_name} to {user.name} (id={user.id})")


async def revoke_role(name_or_id: str, role_name: str):
    async with AsyncSessionLocal() as db:
        user = await find_user(db, name_or_id)
        user.roles = [r for r in user.roles if r.name != role_name]
        await db.commit()
        print(f"Revoked {role_name} from {user.name} (id={user.id})")


async def set_spammy_domain(domain: str, block_type: str):
    async with AsyncSessionLocal() as db:
        domain = domain.lower()
        record = (
            await db.execute(select(SpammyEmailDomain).where(SpammyEmailDomain.domain == domain))
        ).scalar_one_or_none()
        if record is None:
            record = SpammyEmailDomain(domain=domain)
            db.add(record)
        record.block_type = block_type
        await db.commit()
        print(f"{domain}: block_type={block_type}")


async def show_trust(name_or_id: str):
    async with AsyncSessionLocal() as db:
        user = await find_user(db, name_or_id)
        stats = await moderation_service.report_stats(user, db)
        trusted = await moderation_service.trusted_reports_recompute(user, db)
        print(f"{user.name} (id={user.id})")
        print(f"  Filed reports: {stats['pending']} pending, {stats['dismissed']} dismissed, {stats['upheld']} upheld")
        print(f"  Trusted reports: {trusted}")


def main():
    parser = argparse.ArgumentParser(
        description="Manage roles, spammy domains and report trust",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    for command, help_text in (("grant-role", "Give a user a role"), ("revoke-role", "Take a role away")):
        role_parser = subparsers.add_parser(command, help=help_text)
        role_parser.add_argument("user", help="User name or id")
        role_parser.add_argument(
            "--role",
            choices=[MODERATOR_ROLE, ADMINISTRATOR_ROLE],
            default=MODERATOR_ROLE,
        )

    domain_parser = subparsers.add_parser("spammy-domain", help="Add or update a spammy email domain")
    domain_parser.add_argument("domain")
    domain_parser.add_argument(
        "--block-type",
        choices=[b.value for b in BlockType],
        default=BlockType.NONE.value,
    )

    trust_parser = subparsers.add_parser("trust", help="Report stats and trusted-reports recompute")
    trust_parser.add_argument("user", help="User name or id")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    print(f"Environment: {env_file}")

    if args.command == "grant-role":
        asyncio.run(grant_role(args.user, args.role))
    elif args.command == "revoke-role":
        asyncio.run(revoke_role(args.user, args.role))
    elif args.command == "spammy-domain":
        asyncio.run(set_spammy_domain(args.domain, args.block_type))
    elif args.command == "trust":
        asyncio.run(show_trust(args.user))


if __name__ == "__main__":
    main()
