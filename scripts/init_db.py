#!/usr/bin/env python3
"""
Initialize the Tea Logistics database.

Creates all tables and, when --admin-email and --admin-password are given,
an administrator account (skipped if the email is already registered).

    python scripts/init_db.py --admin-email admin@example.com --admin-password secret123
"""

import sys
import argparse
import logging
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("init_db")


def init_tables() -> bool:
    """Create tables and report what exists afterwards"""
    try:
        from sqlalchemy import inspect
        from domain.models.database import init_database, engine

        init_database()
        tables = inspect(engine).get_table_names()
        logger.info(f"Created {len(tables)} tables: {', '.join(sorted(tables))}")
        return True
    except Exception as e:
        logger.exception(f"Failed to initialize database: {e}")
        return False


def create_admin(email: str, password: str, username: str = None) -> bool:
    from domain.models import SessionLocal
    from services.auth_service import AuthService
    from app.exceptions import AppError

    db = SessionLocal()
    try:
        user = AuthService.create_admin(db, email, password, username)
        if user is None:
            logger.info(f"User {email} already exists, admin not created")
        else:
            logger.info(f"Created admin {user.username} <{user.email}>")
        return True
    except AppError as e:
        logger.error(f"Failed to create admin: {e.message}")
        return False
    except Exception as e:
        logger.exception(f"Failed to create admin: {e}")
        return False
    finally:
        db.close()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Initialize the Tea Logistics database")
    parser.add_argument("--admin-email", help="Email of the admin account to create")
    parser.add_argument("--admin-password", help="Password of the admin account")
    parser.add_argument("--admin-username", help="Username (defaults to email prefix)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    if bool(args.admin_email) != bool(args.admin_password):
        logger.error("--admin-email and --admin-password must be given together")
        return 1

    if not init_tables():
        return 1
    if args.admin_email and not create_admin(
        args.admin_email, args.admin_password, args.admin_username
    ):
        return 1
    logger.info("Database initialization complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
