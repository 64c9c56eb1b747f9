# shopdesk/config.py

import os
from datetime import date, datetime
from zoneinfo import ZoneInfo

DB_URL = os.getenv("SHOPDESK_DB_URL", "sqlite:///db.sqlite")  # file in project root
LOG_LEVEL = os.getenv("SHOPDESK_LOG_LEVEL", "INFO")
TIMEZONE = os.getenv("SHOPDESK_TIMEZONE", "UTC")
CURRENCY = os.getenv("SHOPDESK_CURRENCY", "IRR")


def local_now() -> datetime:
    return datetime.now(ZoneInfo(TIMEZONE))


def local_today() -> date:
    """Business date used to stamp orders and sales."""
    return local_now().date()
