#!/usr/bin/env python3
"""
Database initialization script

Creates the support_tickets table and its indexes if they do not exist.
Safe to run repeatedly.

Usage:
    python scripts/init_db.py
"""
import asyncio
import sys

from support_lab.config import get_settings
from support_lab.errors import StoreFailure
from support_lab.services.database import SCHEMA_STATEMENTS, Database


async def init_schema() -> int:
    """
    Initialize PostgreSQL schema

    Creates:
    - support_tickets table
    - idx_status / idx_severity indexes
    """
    database = Database(get_settings())

    try:
        await database.connect()
        await database.ping()
        await database.initialize_schema()
    except StoreFailure as e:
        print(f"❌ Schema initialization failed: {e.message}")
        if e.detail:
            print(f"   {e.detail}")
        return 1
    finally:
        await database.close()

    print("✅ Schema initialized")
    for name, _ in SCHEMA_STATEMENTS:
        print(f"   - {name}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(init_schema()))
