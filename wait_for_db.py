import os, time
from urllib.parse import urlparse

import psycopg2
import structlog

from travelify.core.logging import setup_logging

setup_logging()
logger = structlog.get_logger("wait_for_db")

DATABASE_URL = os.getenv("DATABASE_URL") or os.getenv("SQLALCHEMY_DATABASE_URI")
if not DATABASE_URL:
    raise SystemExit("DATABASE_URL is not set")

# SQLAlchemy URL may start with postgresql+psycopg2://
url = DATABASE_URL.replace("postgresql+psycopg2://", "postgresql://").replace("postgres://", "postgresql://")
p = urlparse(url)

host = p.hostname or "db"
port = p.port or 5432
user = p.username or "travelify"
password = p.password or "travelify"
dbname = (p.path or "/travelify").lstrip("/") or "travelify"

timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))
start = time.time()

logger.info("waiting_for_db", host=host, port=port, db=dbname, user=user, timeout=timeout_s)
while True:
    try:
        conn = psycopg2.connect(host=host, port=port, user=user, password=password, dbname=dbname)
        conn.close()
        logger.info("db_ready", host=host, port=port)
        break
    except psycopg2.OperationalError as e:
        if time.time() - start > timeout_s:
            logger.error("db_wait_timeout", error=str(e))
            raise
        time.sleep(1)
