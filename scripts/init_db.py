import logging
import sys

from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from shopdesk.db.engine import get_engine
from shopdesk.db.schema import metadata, settings
from shopdesk.services.settings import DEFAULT_STORE_NAME

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

# written only when the key is missing; edits made through /settings survive re-runs
DEFAULT_SETTINGS = {
    "store_name": DEFAULT_STORE_NAME,
}


def seed_default_settings(conn) -> int:
    added = 0
    for key, value in DEFAULT_SETTINGS.items():
        stmt = sqlite_insert(settings).values(key=key, value=value)
        result = conn.execute(stmt.on_conflict_do_nothing(index_elements=[settings.c.key]))
        added += result.rowcount
    return added


def main(reset: bool = False):
    """
    Create any missing tables and seed default settings. With reset=True
    every table is dropped first, which deletes all shop data.
    """
    engine = get_engine()

    if reset:
        logger.warning("Dropping all tables in %s", engine.url)
        metadata.drop_all(engine)
    metadata.create_all(engine)

    with engine.begin() as conn:
        added = seed_default_settings(conn)

    logger.info("Schema ready: %d table(s)", len(metadata.tables))
    logger.info("Default settings added: %d", added)


if __name__ == "__main__":
    main(reset="--reset" in sys.argv[1:])
