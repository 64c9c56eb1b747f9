# shopdesk/api/sellable_items.py

from fastapi import APIRouter
from sqlalchemy import select

from shopdesk.db.engine import get_engine
from shopdesk.db.schema import phones, products
from shopdesk.enums import ItemType, PhoneStatus
from shopdesk.models.products import SellableItem, SellableItemsOut

router = APIRouter(prefix="/sellable-items", tags=["sales-orders"])


@router.get("/", response_model=SellableItemsOut)
def list_sellable_items() -> SellableItemsOut:
    """
    Everything that can go into a cart right now: in-stock phones with a sale
    price, and products with stock and a selling price.
    """
    engine = get_engine()

    with engine.connect() as conn:
        phone_rows = conn.execute(
            select(phones.c.id, phones.c.model, phones.c.imei, phones.c.sale_price)
            .where(phones.c.status == PhoneStatus.IN_STOCK)
            .where(phones.c.sale_price > 0)
            .order_by(phones.c.id)
        ).mappings().all()

        product_rows = conn.execute(
            select(
                products.c.id,
                products.c.name,
                products.c.selling_price,
                products.c.stock_quantity,
            )
            .where(products.c.stock_quantity > 0)
            .where(products.c.selling_price > 0)
            .order_by(products.c.name)
        ).mappings().all()

    return SellableItemsOut(
        phones=[
            SellableItem(
                id=row["id"],
                type=ItemType.PHONE.value,
                name=f"{row['model']} (IMEI: {row['imei']})",
                price=row["sale_price"],
                stock=1,
            )
            for row in phone_rows
        ],
        inventory=[
            SellableItem(
                id=row["id"],
                type=ItemType.INVENTORY.value,
                name=row["name"],
                price=row["selling_price"],
                stock=row["stock_quantity"],
            )
            for row in product_rows
        ],
    )
