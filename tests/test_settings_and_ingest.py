from decimal import Decimal

from sqlalchemy import select

from scripts import init_db
from scripts.ingest import load_into_db, parse_phones_csv
from shopdesk.db.schema import phones, settings
from shopdesk.enums import PhoneStatus
from shopdesk.services.settings import business_details_from_settings, load_settings

CSV_HEADER = "Model,IMEI,Color,Storage,RAM,Condition,PurchasePrice,SalePrice,PurchaseDate\n"


def test_business_details_defaults():
    details = business_details_from_settings({})

    assert details.name == "Store"
    assert details.address_line1 == ""
    assert details.city_state_zip == ""
    assert details.logo_url is None


def test_settings_upsert(client, engine):
    client.put("/settings/", json={"store_name": "First", "store_email": "a@b.com"})
    resp = client.put("/settings/", json={"store_name": "Second"})

    assert resp.status_code == 200
    assert resp.json() == {"store_name": "Second", "store_email": "a@b.com"}

    business = client.get("/settings/business").json()
    assert business["name"] == "Second"
    assert business["email"] == "a@b.com"


def test_parse_phones_csv_collects_errors_and_duplicates(tmp_path):
    csv_file = tmp_path / "phones.csv"
    csv_file.write_text(
        CSV_HEADER
        + "Galaxy A54,356938035643809,Black,128GB,8GB,New,15000000,17500000,2025-08-01\n"
        + "iPhone 13,353918104567890,Blue,128GB,4GB,Used,\"30,000,000\",,08/02/25\n"
        + ",111111111111111,,,,,100,,\n"
        + "Pixel 7,222222222222222,,,,,abc,,\n"
        + "Galaxy A54,356938035643809,White,256GB,8GB,New,16000000,18000000,2025-08-03\n"
    )

    phones_list, stats = parse_phones_csv(str(csv_file))

    assert stats["n_rows"] == 5
    assert stats["n_phones"] == 3
    assert stats["n_errors"] == 2
    assert stats["n_duplicate_imeis"] == 1
    assert phones_list[1]["purchase_price"] == Decimal("30000000")
    assert phones_list[1]["sale_price"] is None
    assert phones_list[1]["purchase_date"].isoformat() == "2025-08-02"


def test_load_upserts_by_imei_without_reviving_sold_phones(tmp_path, engine, seed):
    csv_file = tmp_path / "phones.csv"
    csv_file.write_text(
        CSV_HEADER
        + "iPhone 13 Pro,353918104567890,Gold,256GB,6GB,Used,31000000,35000000,2025-08-05\n"
        + "Nokia G21,990000862471854,Blue,64GB,4GB,New,4000000,4800000,2025-08-05\n"
    )

    phones_list, _ = parse_phones_csv(str(csv_file))
    load_into_db(phones_list)
    load_into_db(phones_list)

    with engine.connect() as conn:
        rows = conn.execute(select(phones).order_by(phones.c.id)).mappings().all()

    assert len(rows) == 3
    updated = next(r for r in rows if r["imei"] == "353918104567890")
    assert updated["model"] == "iPhone 13 Pro"
    assert updated["status"] is PhoneStatus.SOLD
    added = next(r for r in rows if r["imei"] == "990000862471854")
    assert added["status"] is PhoneStatus.IN_STOCK


def test_init_db_seeds_defaults_without_overwriting(engine):
    with engine.begin() as conn:
        conn.execute(settings.insert().values(key="store_name", value="Kourosh Mobile"))

    init_db.main()

    with engine.connect() as conn:
        values = load_settings(conn)
    assert values == {"store_name": "Kourosh Mobile"}


def test_init_db_reset_drops_existing_rows(engine, seed, count_rows):
    init_db.main(reset=True)

    assert count_rows(phones) == 0
    with engine.connect() as conn:
        assert load_settings(conn) == {"store_name": "Store"}
