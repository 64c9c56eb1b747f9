# shopdesk/api/products.py

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response
from sqlalchemy import select

from shopdesk.db.engine import get_engine
from shopdesk.db.schema import partners, products
from shopdesk.models.products import ProductIn, ProductOut, ProductUpdate
from shopdesk.services import errors
from shopdesk.services.stock import delete_product, receive_product, update_product

router = APIRouter(prefix="/products", tags=["products"])


def _product_select():
    return (
        select(products, partners.c.partner_name.label("supplier_name"))
        .select_from(products.outerjoin(partners))
    )


def _fetch_product(conn, product_id: int):
    return conn.execute(
        _product_select().where(products.c.id == product_id)
    ).mappings().first()


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(payload: ProductIn) -> ProductOut:
    """
    Register inventory received into stock. A supplier's ledger is credited
    with purchase_price * stock_quantity.
    """
    engine = get_engine()

    try:
        with engine.begin() as conn:
            product_id = receive_product(conn, payload)
            row = conn.execute(
                _product_select().where(products.c.id == product_id)
            ).mappings().one()
    except errors.NotFoundError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return ProductOut.model_validate(dict(row))


@router.get("/", response_model=List[ProductOut])
def list_products(
    supplier_id: Optional[int] = Query(default=None, description="Only products from this supplier"),
) -> List[ProductOut]:
    engine = get_engine()

    stmt = _product_select().order_by(products.c.date_added.desc(), products.c.id.desc())
    if supplier_id is not None:
        stmt = stmt.where(products.c.supplier_id == supplier_id)

    with engine.connect() as conn:
        rows = conn.execute(stmt).mappings().all()

    return [ProductOut.model_validate(dict(row)) for row in rows]


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int) -> ProductOut:
    engine = get_engine()

    with engine.connect() as conn:
        row = _fetch_product(conn, product_id)

    if row is None:
        raise HTTPException(status_code=404, detail="Product not found")

    return ProductOut.model_validate(dict(row))


@router.put("/{product_id}", response_model=ProductOut)
def edit_product(product_id: int, payload: ProductUpdate) -> ProductOut:
    engine = get_engine()

    try:
        with engine.begin() as conn:
            if _fetch_product(conn, product_id) is None:
                raise HTTPException(status_code=404, detail="Product not found")
            update_product(conn, product_id, payload)
            row = _fetch_product(conn, product_id)
    except (errors.NotFoundError, errors.ValidationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return ProductOut.model_validate(dict(row))


@router.delete("/{product_id}", status_code=204)
def remove_product(product_id: int) -> Response:
    """
    Delete a product that was never sold; remaining stock is returned to the supplier.
    """
    engine = get_engine()

    try:
        with engine.begin() as conn:
            delete_product(conn, product_id)
    except errors.NotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")
    except errors.ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    return Response(status_code=204)
