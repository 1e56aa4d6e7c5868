#!/usr/bin/env python3
"""
Seed script to create user accounts.

Usage:
    # Accounts as "email:password_env" pairs
    export SEED_USERS="me@example.com:SEED_PASSWORD_ME"
    export SEED_PASSWORD_ME="your_password"

    # Run the script
    python scripts/seed_users.py
"""
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from smartnotes.database import SessionLocal, init_db
from smartnotes.auth import create_user


def parse_user_defs(raw: str):
    """'a@x.com:ENV_A,b@x.com:ENV_B' -> [(email, password_env), ...]"""
    defs = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        email, _, password_env = item.partition(":")
        defs.append((email.strip(), password_env.strip()))
    return defs


def seed_users():
    """Create user accounts from environment variables."""
    init_db()
    db = SessionLocal()
    created = []
    skipped = []
    errors = []

    try:
        for email, password_env in parse_user_defs(os.getenv("SEED_USERS", "")):
            # Get password from environment
            password = os.getenv(password_env) if password_env else None
            if not password:
                errors.append(f"{email} - missing {password_env or 'password env'} env var")
                continue

            try:
                create_user(db, email, password)
                created.append(email)
            except ValueError as e:
                skipped.append(f"{email} - {e}")

    finally:
        db.close()

    # Print summary
    print("\n=== User Seed Summary ===\n")

    if created:
        print("Created:")
        for item in created:
            print(f"  + {item}")

    if skipped:
        print("\nSkipped:")
        for item in skipped:
            print(f"  - {item}")

    if errors:
        print("\nErrors:")
        for item in errors:
            print(f"  ! {item}")

    print(f"\nTotal: {len(created)} created, {len(skipped)} skipped, {len(errors)} errors")

    if errors:
        sys.exit(1)


if __name__ == "__main__":
    seed_users()
