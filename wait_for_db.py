"""Block until DATABASE_URL accepts connections (container start-up)."""
import logging
import os
import time

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError

logger = logging.getLogger("wait_for_db")

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise SystemExit("DATABASE_URL is not set")
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = "postgresql+psycopg2://" + DATABASE_URL[11:]

timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))
engine = create_engine(DATABASE_URL, pool_pre_ping=True)
start = time.time()

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
logger.info("Waiting for database %s (timeout=%ss)", engine.url.render_as_string(hide_password=True), timeout_s)
while True:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database is ready.")
        break
    except OperationalError as e:
        if time.time() - start > timeout_s:
            logger.error("Timed out waiting for DB. Last error: %s", e)
            raise
        time.sleep(1)
engine.dispose()
