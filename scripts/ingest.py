# scripts/ingest.py

import csv
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from shopdesk import config
from shopdesk.db.engine import get_engine
from shopdesk.db.schema import phones
from shopdesk.enums import PhoneStatus

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

FILE_PATH = "data/phones.csv"

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%y", "%m/%d/%Y")


# ---- Helpers ----

def parse_money(value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    value = value.strip().replace(",", "")
    if value == "":
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        raise ValueError(f"invalid amount {value!r}")


def parse_date(value: Optional[str]):
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    value = value.split()[0]
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised date {value!r}")


def clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def upsert_phone(conn, phone_row: dict) -> None:
    """
    Insert or update a phone by IMEI (idempotent ingest).

    status and sale_date are never overwritten, so re-running the import
    cannot put a sold phone back on the shelf.
    """
    stmt = sqlite_insert(phones).values(**phone_row)

    update_cols = {
        "model": stmt.excluded.model,
        "color": stmt.excluded.color,
        "storage": stmt.excluded.storage,
        "ram": stmt.excluded.ram,
        "condition": stmt.excluded.condition,
        "purchase_price": stmt.excluded.purchase_price,
        "sale_price": stmt.excluded.sale_price,
        "purchase_date": stmt.excluded.purchase_date,
    }

    stmt = stmt.on_conflict_do_update(
        index_elements=[phones.c.imei],
        set_=update_cols,
    )

    conn.execute(stmt)


def parse_phones_csv(file_path: str = FILE_PATH):
    phones_list = []

    n_rows = 0
    n_errors = 0
    error_examples = []

    seen_imeis: set[str] = set()
    duplicate_imei_examples: list[str] = []
    duplicate_imei_count = 0

    with open(file_path, newline="") as f:
        reader = csv.DictReader(f)

        for row in reader:
            n_rows += 1

            try:
                imei = clean(row.get("IMEI"))
                model = clean(row.get("Model"))
                if not imei:
                    raise ValueError("missing IMEI")
                if not model:
                    raise ValueError("missing Model")

                purchase_price = parse_money(row.get("PurchasePrice"))
                if purchase_price is None:
                    raise ValueError("missing PurchasePrice")

                phone_record = {
                    "model": model,
                    "imei": imei,
                    "color": clean(row.get("Color")),
                    "storage": clean(row.get("Storage")),
                    "ram": clean(row.get("RAM")),
                    "condition": clean(row.get("Condition")),
                    "purchase_price": purchase_price,
                    "sale_price": parse_money(row.get("SalePrice")),
                    "purchase_date": parse_date(row.get("PurchaseDate")),
                }

                phones_list.append(phone_record)

                if imei in seen_imeis:
                    duplicate_imei_count += 1
                    if len(duplicate_imei_examples) < 5:
                        duplicate_imei_examples.append(
                            f"Duplicate IMEI {imei!r} at CSV row {n_rows}"
                        )
                else:
                    seen_imeis.add(imei)

            except (KeyError, ValueError) as e:
                n_errors += 1
                if len(error_examples) < 5:
                    error_examples.append(
                        {
                            "row_number": n_rows,
                            "row": dict(row),
                            "error": repr(e),
                        }
                    )

    stats = {
        "n_rows": n_rows,
        "n_phones": len(phones_list),
        "n_errors": n_errors,
        "error_examples": error_examples,
        "n_duplicate_imeis": duplicate_imei_count,
        "duplicate_imei_examples": duplicate_imei_examples,
    }
    return phones_list, stats


def load_into_db(phones_list):
    engine = get_engine()
    register_date = config.local_now().replace(tzinfo=None)

    with engine.begin() as conn:
        for phone in phones_list:
            upsert_phone(
                conn,
                {
                    **phone,
                    "register_date": register_date,
                    "status": PhoneStatus.IN_STOCK,
                },
            )


def main():
    phones_list, stats = parse_phones_csv(FILE_PATH)
    load_into_db(phones_list)

    logger.info(f"Total CSV rows read:   {stats['n_rows']}")
    logger.info(f"Phones parsed:         {stats['n_phones']}")
    logger.info(f"Rows with errors:      {stats['n_errors']}")
    logger.info(
        "Duplicate phones (by IMEI): %s",
        stats["n_duplicate_imeis"],
    )
    for example in stats["duplicate_imei_examples"]:
        logger.warning("Duplicate phone example: %s", example)

    if stats["error_examples"]:
        logger.warning("Example errors:")
        for ex in stats["error_examples"]:
            logger.warning("Row %s: %s", ex["row_number"], ex["error"])


if __name__ == "__main__":
    main()
