#!/usr/bin/env python3
"""
Seed the support_tickets table with realistic sample tickets

Usage:
    python scripts/seed_data.py
    python scripts/seed_data.py --reset
"""
import argparse
import asyncio
import sys
from typing import Any, Dict, List

from dotenv import load_dotenv

load_dotenv()

from support_lab.config import get_settings
from support_lab.errors import StoreFailure
from support_lab.services.database import Database


SAMPLE_TICKETS: List[Dict[str, Any]] = [
    {
        "title": "Deployment failing with 502 error",
        "description": "Application deployment succeeds but health checks fail with 502 Bad Gateway. Logs show server is running on port 3000.",
        "severity": "critical",
        "status": "open",
        "customer_id": 1001,
        "assigned_to": "Sarah Chen",
    },
    {
        "title": "DATABASE_URL not connecting",
        "description": "PostgreSQL connection keeps timing out. Error: connection to server at \"containers.internal\" timed out",
        "severity": "high",
        "status": "in_progress",
        "customer_id": 1002,
        "assigned_to": "Mike Rodriguez",
    },
    {
        "title": "Build succeeds but deploy crashes",
        "description": "Docker build completes successfully but deployment crashes immediately. Exit code 1.",
        "severity": "high",
        "status": "resolved",
        "customer_id": 1003,
        "assigned_to": "Sarah Chen",
        "resolution_time": 45,
    },
    {
        "title": "Slow API response times",
        "description": "API endpoints taking 5-10 seconds to respond. Database queries seem slow.",
        "severity": "medium",
        "status": "in_progress",
        "customer_id": 1001,
        "assigned_to": "Alex Kim",
    },
    {
        "title": "Environment variables not loading",
        "description": "App crashes on startup with \"Missing required env vars\" despite variables being set in the dashboard.",
        "severity": "high",
        "status": "resolved",
        "customer_id": 1004,
        "assigned_to": "Mike Rodriguez",
        "resolution_time": 30,
    },
    {
        "title": "Memory usage growing continuously",
        "description": "Application memory usage grows from 200MB to 2GB over 24 hours. Eventually crashes with OOM.",
        "severity": "critical",
        "status": "escalated",
        "customer_id": 1005,
    },
    {
        "title": "CORS errors in production",
        "description": "Frontend can't connect to API in production. CORS policy blocking requests. Works fine locally.",
        "severity": "medium",
        "status": "resolved",
        "customer_id": 1006,
        "assigned_to": "Alex Kim",
        "resolution_time": 20,
    },
    {
        "title": "Database migrations not running",
        "description": "Schema changes not applied after deployment. Old schema still in database.",
        "severity": "medium",
        "status": "open",
        "customer_id": 1007,
        "assigned_to": "Sarah Chen",
    },
    {
        "title": "Webhook integration timing out",
        "description": "External webhook calls timing out after 30 seconds. Affecting order processing.",
        "severity": "high",
        "status": "in_progress",
        "customer_id": 1008,
        "assigned_to": "Mike Rodriguez",
    },
    {
        "title": "Logs not showing application output",
        "description": "Application seems to be running but no logs appearing in the dashboard.",
        "severity": "low",
        "status": "resolved",
        "customer_id": 1009,
        "assigned_to": "Alex Kim",
        "resolution_time": 10,
    },
    {
        "title": "SSL certificate issues",
        "description": "Custom domain showing \"Not Secure\" warning in browser. Certificate not provisioned.",
        "severity": "medium",
        "status": "open",
        "customer_id": 1010,
    },
    {
        "title": "Dockerfile CMD not executing",
        "description": "Container builds but process doesn't start. Service stuck on \"Waiting for service to be ready\".",
        "severity": "high",
        "status": "resolved",
        "customer_id": 1011,
        "assigned_to": "Sarah Chen",
        "resolution_time": 60,
    },
    {
        "title": "Rate limiting from external API",
        "description": "Getting 429 Too Many Requests from the payments API. Need to implement backoff.",
        "severity": "medium",
        "status": "in_progress",
        "customer_id": 1012,
        "assigned_to": "Alex Kim",
    },
    {
        "title": "Database connection pool exhausted",
        "description": "Error: remaining connection slots are reserved. Pool size maxed out.",
        "severity": "critical",
        "status": "open",
        "customer_id": 1013,
        "assigned_to": "Mike Rodriguez",
    },
    {
        "title": "Static files not serving",
        "description": "404 errors on all /public/* routes. Files exist in repository.",
        "severity": "low",
        "status": "resolved",
        "customer_id": 1014,
        "assigned_to": "Sarah Chen",
        "resolution_time": 15,
    },
    {
        "title": "Health check endpoint timing out",
        "description": "/health endpoint taking too long. Load balancer marking service as unhealthy.",
        "severity": "high",
        "status": "resolved",
        "customer_id": 1015,
        "assigned_to": "Mike Rodriguez",
        "resolution_time": 25,
    },
    {
        "title": "Question about pricing",
        "description": "Customer wants to understand usage-based pricing. How are database queries billed?",
        "severity": "low",
        "status": "resolved",
        "customer_id": 1016,
        "assigned_to": "Alex Kim",
        "resolution_time": 5,
    },
    {
        "title": "Cannot connect to Redis",
        "description": "Redis plugin added but connection refused. Hostname resolution failing.",
        "severity": "medium",
        "status": "open",
        "customer_id": 1017,
    },
    {
        "title": "Deployment rollback needed",
        "description": "Latest deployment introduced critical bug. How to rollback to previous version?",
        "severity": "critical",
        "status": "resolved",
        "customer_id": 1018,
        "assigned_to": "Sarah Chen",
        "resolution_time": 10,
    },
    {
        "title": "Private networking setup help",
        "description": "Want to connect frontend and backend services privately. How to configure?",
        "severity": "low",
        "status": "open",
        "customer_id": 1019,
        "assigned_to": "Alex Kim",
    },
]

INSERT_STATEMENT = """
    INSERT INTO support_tickets
        (title, description, severity, status, customer_id, assigned_to, resolution_time)
    VALUES ($1, $2, $3, $4, $5, $6, $7)
    RETURNING id
"""


class DataSeeder:
    """Loads sample tickets through the store gateway"""

    def __init__(self, database: Database):
        self.db = database

    async def reset(self):
        """Remove all tickets and restart id assignment at 1"""
        print("🧹 Clearing existing tickets...")
        await self.db.execute("seed.clear", "DELETE FROM support_tickets")
        await self.db.execute("seed.restart_ids", "ALTER SEQUENCE support_tickets_id_seq RESTART WITH 1")

    async def seed_tickets(self) -> int:
        print(f"🎫 Inserting {len(SAMPLE_TICKETS)} sample tickets...")
        for ticket in SAMPLE_TICKETS:
            await self.db.execute(
                "seed.insert",
                INSERT_STATEMENT,
                ticket["title"],
                ticket["description"],
                ticket["severity"],
                ticket["status"],
                ticket["customer_id"],
                ticket.get("assigned_to"),
                ticket.get("resolution_time")
            )
        return len(SAMPLE_TICKETS)

    async def print_summary(self):
        rows = await self.db.execute(
            "seed.summary",
            "SELECT status, COUNT(*) AS count FROM support_tickets GROUP BY status ORDER BY status"
        )
        total = sum(row["count"] for row in rows)
        print(f"\n📊 Total tickets: {total}")
        for row in rows:
            print(f"   {row['status']}: {row['count']}")


async def main(reset: bool) -> int:
    settings = get_settings()
    database = Database(settings)
    seeder = DataSeeder(database)

    print("🌱 Starting database seeding...")
    try:
        await database.connect()
        await database.ping()
        await database.initialize_schema()

        if reset:
            await seeder.reset()

        await seeder.seed_tickets()
        await seeder.print_summary()
    except StoreFailure as e:
        print(f"❌ Seeding failed: {e.message}")
        if e.detail:
            print(f"   {e.detail}")
        return 1
    finally:
        await database.close()

    print("\n✅ Seeding complete!")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed support_tickets with sample data")
    parser.add_argument("--reset", action="store_true", help="Delete existing tickets and restart ids at 1 first")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.reset)))
