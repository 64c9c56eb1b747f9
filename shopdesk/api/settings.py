# shopdesk/api/settings.py

from typing import Dict, Optional

from fastapi import APIRouter

from shopdesk.db.engine import get_engine
from shopdesk.models.settings import BusinessDetails
from shopdesk.services.settings import load_business_details, load_settings, save_settings

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=Dict[str, Optional[str]])
def get_settings() -> Dict[str, Optional[str]]:
    engine = get_engine()

    with engine.connect() as conn:
        return load_settings(conn)


@router.put("/", response_model=Dict[str, Optional[str]])
def update_settings(values: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
    """
    Upsert the given keys in one transaction and return the full settings map.
    """
    engine = get_engine()

    with engine.begin() as conn:
        save_settings(conn, values)
        return load_settings(conn)


@router.get("/business", response_model=BusinessDetails)
def get_business_details() -> BusinessDetails:
    """
    Invoice letterhead derived from the store_* settings.
    """
    engine = get_engine()

    with engine.connect() as conn:
        return load_business_details(conn)
