#!/usr/bin/env python3
"""
Container entrypoint for the Travelify API.

Blocks until Postgres answers, upgrades the schema to head, seeds the admin
account and sample tours, then execs uvicorn on $PORT.
"""
import os
import sys

import wait_for_db  # noqa: F401  (blocks until the database accepts connections)

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
import structlog

from travelify.core.config import settings
from travelify.core.logging import setup_logging

logger = structlog.get_logger("start_api")


def migrate() -> None:
    cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    command.upgrade(cfg, "head")
    # alembic's fileConfig replaces the root handlers
    setup_logging()
    logger.info("migrations_applied")


def seed() -> None:
    from travelify.seed import run

    # Fresh engine: the app engine may have been created against the pre-migration schema.
    engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        run(session)
    finally:
        session.close()
        engine.dispose()


def main() -> None:
    migrate()
    seed()
    port = os.getenv("PORT", "8000")
    logger.info("starting_uvicorn", port=port, env=settings.ENV)
    os.execv(
        sys.executable,
        [sys.executable, "-m", "uvicorn", "travelify.main:app", "--host", "0.0.0.0", "--port", port],
    )


if __name__ == "__main__":
    main()
