"""Seed sample search history so pagination can be exercised locally.

Usage:
    PYTHONPATH=src python scripts/seed_history.py [email] [count]

Idempotent: tops the partition up to ``count`` rows and never deletes.
Timestamps step back one minute per row from now, newest first.

Then page through it with:
    curl 'http://localhost:8000/api/history?email=demo@example.com&limit=10'
"""

import asyncio
import logging
import sys
from datetime import datetime, timedelta, timezone

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logger = logging.getLogger("seed_history")
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

DEFAULT_EMAIL = "demo@example.com"
DEFAULT_COUNT = 25

SAMPLE_SEARCHES = [
    ("bitcoin", "usd", {"bitcoin": {"usd": "50000"}}),
    ("bitcoin,ethereum", "usd,aud", {"bitcoin": {"usd": "50000", "aud": "75000"}, "ethereum": {"usd": "3000"}}),
    ("solana", "eur", {"solana": {"eur": "140.25"}}),
]


def separator(title: str) -> None:
    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print(f"{'=' * 60}\n")


async def main(email: str, count: int) -> None:
    from pricealert.config import settings
    from pricealert.db.session import build_engine, build_session_factory, create_all

    separator("Seed: Search History")
    print(f"Database: {settings.db_host}:{settings.db_port}/{settings.db_name}\n")

    engine = build_engine(settings.database_url, echo=False)
    if settings.create_tables:
        await create_all(engine)
    session_factory = build_session_factory(engine)

    async with session_factory() as session:
        try:
            created = await seed(session, email, count)
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Seeding failed")
            sys.exit(1)

    await engine.dispose()
    separator(f"Seeding Complete: {created} rows created")


async def seed(session, email: str, count: int) -> int:
    from pricealert.db.repos.history_repo import HistoryRepo

    repo = HistoryRepo(session)
    existing = await repo.count_for_email(email)
    if existing >= count:
        print(f"{email} already has {existing} rows, nothing to do.")
        return 0

    now = datetime.now(timezone.utc)
    created = 0
    for i in range(existing, count):
        crypto, currency, prices = SAMPLE_SEARCHES[i % len(SAMPLE_SEARCHES)]
        ts = (now - timedelta(minutes=i)).isoformat(timespec="microseconds")
        record = await repo.append(email=email, crypto=crypto, currency=currency, prices=prices, timestamp=ts)
        print(f"  [created] {record.timestamp}  {crypto:<20s} {currency}")
        created += 1
    return created


if __name__ == "__main__":
    arg_email = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_EMAIL
    arg_count = int(sys.argv[2]) if len(sys.argv) > 2 else DEFAULT_COUNT
    asyncio.run(main(arg_email, arg_count))
