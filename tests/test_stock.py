from decimal import Decimal

from shopdesk.db.schema import partner_ledger, phones, products
from shopdesk.services import stock


def test_product_receipt_credits_supplier(client, seed):
    resp = client.post(
        "/products/",
        json={
            "name": "Screen protector",
            "purchase_price": 20000,
            "selling_price": 50000,
            "stock_quantity": 30,
            "supplier_id": seed["supplier_id"],
        },
    )

    assert resp.status_code == 201
    product = resp.json()
    assert product["supplier_name"] == "Mobile Wholesale Co"

    ledger = client.get(f"/partners/{seed['supplier_id']}/ledger").json()
    assert len(ledger) == 1
    assert Decimal(ledger[0]["credit"]) == Decimal("600000")
    assert ledger[0]["reference_type"] == "product_purchase"
    assert ledger[0]["reference_id"] == product["id"]


def test_product_without_supplier_posts_nothing(client, seed, count_rows):
    resp = client.post(
        "/products/",
        json={"name": "Cable", "purchase_price": 10000, "selling_price": 25000, "stock_quantity": 5},
    )

    assert resp.status_code == 201
    assert count_rows(partner_ledger) == 0


def test_product_unknown_supplier_is_rejected(client, engine):
    resp = client.post("/products/", json={"name": "Case", "stock_quantity": 1, "supplier_id": 404})

    assert resp.status_code == 400


def test_list_products_by_supplier(client, seed):
    client.post(
        "/products/",
        json={"name": "Earbuds", "purchase_price": 1, "stock_quantity": 1, "supplier_id": seed["supplier_id"]},
    )

    everything = client.get("/products/").json()
    supplied = client.get("/products/", params={"supplier_id": seed["supplier_id"]}).json()

    assert len(everything) == 2
    assert [p["name"] for p in supplied] == ["Earbuds"]


def test_product_not_found(client, engine):
    assert client.get("/products/31").status_code == 404


def test_phone_registration_credits_supplier(client, seed):
    resp = client.post(
        "/phones/",
        json={
            "model": "Redmi Note 12",
            "imei": "861234567890123",
            "purchase_price": 8000000,
            "sale_price": 9500000,
            "purchase_date": "2025-08-10",
            "supplier_id": seed["supplier_id"],
        },
    )

    assert resp.status_code == 201
    phone = resp.json()
    assert phone["status"] == "in_stock"
    assert phone["sale_date"] is None

    partner = client.get(f"/partners/{seed['supplier_id']}").json()
    assert Decimal(partner["current_balance"]) == Decimal("8000000")


def test_duplicate_imei_is_conflict(client, seed, count_rows):
    before = count_rows(phones)

    resp = client.post(
        "/phones/",
        json={"model": "Galaxy A54", "imei": "356938035643809", "purchase_price": 1},
    )

    assert resp.status_code == 409
    assert count_rows(phones) == before


def test_list_phones_by_status(client, seed):
    in_stock = client.get("/phones/", params={"status": "in_stock"}).json()
    sold = client.get("/phones/", params={"status": "sold"}).json()

    assert [p["id"] for p in in_stock] == [seed["phone_id"]]
    assert [p["id"] for p in sold] == [seed["sold_phone_id"]]


def test_sellable_items(client, seed):
    client.post(
        "/products/",
        json={"name": "Out of stock case", "selling_price": 10, "stock_quantity": 0},
    )

    items = client.get("/sellable-items/").json()

    assert [p["id"] for p in items["phones"]] == [seed["phone_id"]]
    assert items["phones"][0]["name"] == "Galaxy A54 (IMEI: 356938035643809)"
    assert items["phones"][0]["stock"] == 1
    assert [i["name"] for i in items["inventory"]] == ["USB-C charger"]
    assert items["inventory"][0]["stock"] == 10


def test_sold_phone_leaves_sellable_items(client, seed):
    client.post(
        "/sales-orders/",
        json={
            "items": [
                {
                    "item_type": "phone",
                    "item_id": seed["phone_id"],
                    "description": "Galaxy A54",
                    "quantity": 1,
                    "unit_price": 17500000,
                }
            ]
        },
    )

    items = client.get("/sellable-items/").json()
    phone = client.get(f"/phones/{seed['phone_id']}").json()

    assert items["phones"] == []
    assert phone["status"] == "sold"
    assert phone["sale_date"] is not None


def test_imei_race_lost_at_insert_is_conflict(client, seed, count_rows, monkeypatch):
    # the pre-insert lookup misses a row committed by a concurrent request
    monkeypatch.setattr(stock, "imei_taken", lambda conn, imei, exclude_id=None: False)
    before = count_rows(phones)

    resp = client.post(
        "/phones/",
        json={
            "model": "Galaxy A54",
            "imei": "356938035643809",
            "purchase_price": 1,
            "supplier_id": seed["supplier_id"],
        },
    )

    assert resp.status_code == 409
    assert count_rows(phones) == before
    assert count_rows(partner_ledger) == 0


def register(client, supplier_id, purchase_price=8000000, imei="861234567890123"):
    return client.post(
        "/phones/",
        json={
            "model": "Redmi Note 12",
            "imei": imei,
            "purchase_price": purchase_price,
            "supplier_id": supplier_id,
        },
    ).json()


def test_phone_edit_without_price_change_leaves_ledger(client, seed):
    phone = register(client, seed["supplier_id"])

    resp = client.put(f"/phones/{phone['id']}", json={"color": "Green", "sale_price": 9900000})

    assert resp.status_code == 200
    assert resp.json()["color"] == "Green"
    assert resp.json()["model"] == "Redmi Note 12"
    assert len(client.get(f"/partners/{seed['supplier_id']}/ledger").json()) == 1


def test_phone_edit_moves_purchase_to_new_supplier(client, seed):
    phone = register(client, seed["supplier_id"])
    other = client.post("/partners/", json={"partner_name": "Bazaar Traders"}).json()

    resp = client.put(
        f"/phones/{phone['id']}",
        json={"supplier_id": other["id"], "purchase_price": 7500000},
    )

    assert resp.status_code == 200
    assert resp.json()["supplier_name"] == "Bazaar Traders"

    old_ledger = client.get(f"/partners/{seed['supplier_id']}/ledger").json()
    new_ledger = client.get(f"/partners/{other['id']}/ledger").json()
    assert old_ledger[-1]["reference_type"] == "phone_purchase_reversal_on_edit"
    assert Decimal(old_ledger[-1]["debit"]) == Decimal("8000000")
    assert Decimal(old_ledger[-1]["balance"]) == Decimal("0")
    assert new_ledger[0]["reference_type"] == "phone_purchase_edit"
    assert Decimal(new_ledger[0]["credit"]) == Decimal("7500000")


def test_phone_edit_to_taken_imei_is_conflict(client, seed):
    phone = register(client, seed["supplier_id"])

    resp = client.put(f"/phones/{phone['id']}", json={"imei": "356938035643809"})

    assert resp.status_code == 409
    assert client.get(f"/phones/{phone['id']}").json()["imei"] == "861234567890123"


def test_phone_edit_cannot_clear_model(client, seed):
    resp = client.put(f"/phones/{seed['phone_id']}", json={"model": None})

    assert resp.status_code == 400


def test_phone_edit_not_found(client, engine):
    assert client.put("/phones/404", json={"color": "Red"}).status_code == 404


def test_phone_delete_returns_it_to_supplier(client, seed, count_rows):
    phone = register(client, seed["supplier_id"])

    resp = client.delete(f"/phones/{phone['id']}")

    assert resp.status_code == 204
    assert client.get(f"/phones/{phone['id']}").status_code == 404
    ledger = client.get(f"/partners/{seed['supplier_id']}/ledger").json()
    assert ledger[-1]["reference_type"] == "phone_delete"
    assert Decimal(ledger[-1]["balance"]) == Decimal("0")


def test_sold_phone_cannot_be_deleted(client, seed):
    resp = client.delete(f"/phones/{seed['sold_phone_id']}")

    assert resp.status_code == 409
    assert client.get(f"/phones/{seed['sold_phone_id']}").status_code == 200


def test_phone_delete_not_found(client, engine):
    assert client.delete("/phones/404").status_code == 404


def test_product_edit_is_partial_and_posts_nothing(client, seed, count_rows):
    resp = client.put(
        f"/products/{seed['product_id']}",
        json={"selling_price": 120000, "stock_quantity": 12},
    )

    assert resp.status_code == 200
    product = resp.json()
    assert product["name"] == "USB-C charger"
    assert Decimal(product["selling_price"]) == Decimal("120000")
    assert product["stock_quantity"] == 12
    assert count_rows(partner_ledger) == 0


def test_product_edit_unknown_supplier_is_rejected(client, seed):
    resp = client.put(f"/products/{seed['product_id']}", json={"supplier_id": 404})

    assert resp.status_code == 400


def test_product_edit_not_found(client, engine):
    assert client.put("/products/404", json={"name": "X"}).status_code == 404


def test_product_delete_returns_stock_to_supplier(client, seed, count_rows):
    product = client.post(
        "/products/",
        json={
            "name": "Screen protector",
            "purchase_price": 20000,
            "stock_quantity": 30,
            "supplier_id": seed["supplier_id"],
        },
    ).json()

    resp = client.delete(f"/products/{product['id']}")

    assert resp.status_code == 204
    ledger = client.get(f"/partners/{seed['supplier_id']}/ledger").json()
    assert ledger[-1]["reference_type"] == "product_return_on_delete"
    assert Decimal(ledger[-1]["debit"]) == Decimal("600000")
    assert Decimal(ledger[-1]["balance"]) == Decimal("0")
    assert count_rows(products) == 1


def test_sold_product_cannot_be_deleted(client, seed):
    client.post(
        "/sales-orders/",
        json={
            "items": [
                {
                    "item_type": "inventory",
                    "item_id": seed["product_id"],
                    "description": "USB-C charger",
                    "quantity": 1,
                    "unit_price": 100000,
                }
            ]
        },
    )

    resp = client.delete(f"/products/{seed['product_id']}")

    assert resp.status_code == 409
    assert client.get(f"/products/{seed['product_id']}").status_code == 200
