# shopdesk/models/settings.py

from typing import Optional

from pydantic import BaseModel


class BusinessDetails(BaseModel):
    """Letterhead printed on every invoice."""

    name: str
    address_line1: str = ""
    address_line2: str = ""
    city_state_zip: str = ""
    phone: str = ""
    email: str = ""
    logo_url: Optional[str] = None
