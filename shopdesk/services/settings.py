# shopdesk/services/settings.py

import logging
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection

from shopdesk.db.schema import settings
from shopdesk.models.settings import BusinessDetails

logger = logging.getLogger(__name__)

DEFAULT_STORE_NAME = "Store"


def load_settings(conn: Connection) -> Dict[str, Optional[str]]:
    rows = conn.execute(select(settings.c.key, settings.c.value)).all()
    return {row.key: row.value for row in rows}


def save_settings(conn: Connection, values: Dict[str, Optional[str]]) -> None:
    """
    Insert or replace each key (idempotent). Caller owns the transaction, so a
    failure part-way leaves no key changed.
    """
    for key, value in values.items():
        stmt = sqlite_insert(settings).values(key=key, value=value)
        stmt = stmt.on_conflict_do_update(
            index_elements=[settings.c.key],
            set_={"value": stmt.excluded.value},
        )
        conn.execute(stmt)
    logger.info("Saved %d setting(s): %s", len(values), ", ".join(sorted(values)))


def business_details_from_settings(values: Dict[str, Optional[str]]) -> BusinessDetails:
    logo_path = values.get("store_logo_path")
    return BusinessDetails(
        name=values.get("store_name") or DEFAULT_STORE_NAME,
        address_line1=values.get("store_address_line1") or "",
        address_line2=values.get("store_address_line2") or "",
        city_state_zip=values.get("store_city_state_zip") or "",
        phone=values.get("store_phone") or "",
        email=values.get("store_email") or "",
        logo_url=f"/uploads/{logo_path}" if logo_path else None,
    )


def load_business_details(conn: Connection) -> BusinessDetails:
    return business_details_from_settings(load_settings(conn))
