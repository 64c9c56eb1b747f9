# tests/conftest.py
# ---------------------------------------------------------------------
# - Every test gets its own SQLite file under tmp_path
# - shopdesk.config.DB_URL is pointed at it, so get_engine() picks it up
# - Schema is created from shopdesk.db.schema.metadata
# - `seed` inserts one customer, one supplier, one product and two phones
# ---------------------------------------------------------------------

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from shopdesk import config
from shopdesk.db.engine import get_engine
from shopdesk.db.schema import customers, metadata, partners, phones, products
from shopdesk.enums import PhoneStatus
from shopdesk.main import app


@pytest.fixture
def engine(tmp_path, monkeypatch):
    db_file = tmp_path / "shop.sqlite"
    monkeypatch.setattr(config, "DB_URL", f"sqlite:///{db_file}")
    eng = get_engine()
    metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def client(engine):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def seed(engine):
    """Returns the ids of the seeded rows."""
    with engine.begin() as conn:
        customer_id = conn.execute(
            customers.insert().values(full_name="Sara Ahmadi", phone_number="0912000001")
        ).inserted_primary_key[0]
        supplier_id = conn.execute(
            partners.insert().values(partner_name="Mobile Wholesale Co", partner_type="Supplier")
        ).inserted_primary_key[0]
        product_id = conn.execute(
            products.insert().values(
                name="USB-C charger",
                purchase_price=Decimal("60000"),
                selling_price=Decimal("100000"),
                stock_quantity=10,
            )
        ).inserted_primary_key[0]
        phone_id = conn.execute(
            phones.insert().values(
                model="Galaxy A54",
                imei="356938035643809",
                purchase_price=Decimal("15000000"),
                sale_price=Decimal("17500000"),
                register_date=datetime(2025, 8, 1, 10, 0),
                status=PhoneStatus.IN_STOCK,
            )
        ).inserted_primary_key[0]
        sold_phone_id = conn.execute(
            phones.insert().values(
                model="iPhone 13",
                imei="353918104567890",
                purchase_price=Decimal("30000000"),
                sale_price=Decimal("34000000"),
                register_date=datetime(2025, 7, 1, 10, 0),
                status=PhoneStatus.SOLD,
            )
        ).inserted_primary_key[0]

    return {
        "customer_id": customer_id,
        "supplier_id": supplier_id,
        "product_id": product_id,
        "phone_id": phone_id,
        "sold_phone_id": sold_phone_id,
    }


@pytest.fixture
def count_rows(engine):
    def _count(table) -> int:
        with engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(table)).scalar_one()
    return _count
