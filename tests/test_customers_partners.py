from decimal import Decimal


def test_create_and_get_customer(client, engine):
    resp = client.post(
        "/customers/",
        json={"full_name": "Reza Karimi", "phone_number": "0912111222", "address": "Tehran"},
    )

    assert resp.status_code == 201
    customer = resp.json()
    assert customer["full_name"] == "Reza Karimi"
    assert Decimal(customer["current_balance"]) == Decimal("0")

    fetched = client.get(f"/customers/{customer['id']}").json()
    assert fetched["address"] == "Tehran"


def test_duplicate_customer_phone_is_conflict(client, seed):
    resp = client.post("/customers/", json={"full_name": "Someone", "phone_number": "0912000001"})

    assert resp.status_code == 409


def test_customer_not_found(client, engine):
    assert client.get("/customers/999").status_code == 404
    assert client.get("/customers/999/ledger").status_code == 404
    assert client.put("/customers/999", json={"full_name": "X"}).status_code == 404


def test_update_customer(client, seed):
    resp = client.put(
        f"/customers/{seed['customer_id']}",
        json={"full_name": "Sara A.", "phone_number": "0912000001", "notes": "VIP"},
    )

    assert resp.status_code == 200
    assert resp.json()["full_name"] == "Sara A."
    assert resp.json()["notes"] == "VIP"


def test_list_customers_sorted_with_balances(client, seed):
    client.post("/customers/", json={"full_name": "Ali Rostami"})
    client.post(
        f"/customers/{seed['customer_id']}/ledger",
        json={"description": "Opening balance", "debit": 500000},
    )

    rows = client.get("/customers/").json()

    assert [r["full_name"] for r in rows] == ["Ali Rostami", "Sara Ahmadi"]
    assert Decimal(rows[0]["current_balance"]) == Decimal("0")
    assert Decimal(rows[1]["current_balance"]) == Decimal("500000")


def test_customer_ledger_running_balance(client, seed):
    cid = seed["customer_id"]
    client.post(f"/customers/{cid}/ledger", json={"description": "Credit sale", "debit": 300000})
    resp = client.post(f"/customers/{cid}/ledger", json={"description": "Cash received", "credit": 120000})

    assert resp.status_code == 201
    assert Decimal(resp.json()["balance"]) == Decimal("180000")

    ledger = client.get(f"/customers/{cid}/ledger").json()
    assert [Decimal(e["balance"]) for e in ledger] == [Decimal("300000"), Decimal("180000")]


def test_ledger_entry_needs_an_amount(client, seed):
    resp = client.post(
        f"/customers/{seed['customer_id']}/ledger",
        json={"description": "Nothing", "debit": 0, "credit": 0},
    )

    assert resp.status_code == 422


def test_partner_ledger_balance_grows_with_credit(client, seed):
    pid = seed["supplier_id"]
    client.post(f"/partners/{pid}/ledger", json={"description": "Invoice 88", "credit": 1000000})
    resp = client.post(f"/partners/{pid}/ledger", json={"description": "Paid", "debit": 400000})

    entry = resp.json()
    assert Decimal(entry["balance"]) == Decimal("600000")
    assert entry["reference_type"] == "manual"

    partner = client.get(f"/partners/{pid}").json()
    assert Decimal(partner["current_balance"]) == Decimal("600000")


def test_partner_create_list_and_filter(client, engine):
    client.post("/partners/", json={"partner_name": "Zed Parts", "email": "sales@zedparts.com"})
    client.post("/partners/", json={"partner_name": "Alpha Repair", "partner_type": "Service"})

    everyone = client.get("/partners/").json()
    suppliers = client.get("/partners/", params={"partner_type": "Supplier"}).json()

    assert [p["partner_name"] for p in everyone] == ["Alpha Repair", "Zed Parts"]
    assert [p["partner_name"] for p in suppliers] == ["Zed Parts"]


def test_partner_invalid_email_is_rejected(client, engine):
    resp = client.post("/partners/", json={"partner_name": "Bad", "email": "not-an-email"})

    assert resp.status_code == 422


def test_partner_not_found(client, engine):
    assert client.get("/partners/5").status_code == 404
    assert client.post("/partners/5/ledger", json={"description": "x", "debit": 1}).status_code == 404


def test_delete_customer_keeps_orders_as_guest(client, seed):
    cid = seed["customer_id"]
    client.post(f"/customers/{cid}/ledger", json={"description": "Opening balance", "debit": 1000})
    client.post(
        "/sales-orders/",
        json={
            "customer_id": cid,
            "items": [
                {
                    "item_type": "inventory",
                    "item_id": seed["product_id"],
                    "description": "USB-C charger",
                    "quantity": 1,
                    "unit_price": 100000,
                }
            ],
        },
    )

    resp = client.delete(f"/customers/{cid}")

    assert resp.status_code == 204
    assert client.get(f"/customers/{cid}").status_code == 404
    assert [o["customer_name"] for o in client.get("/sales-orders/").json()] == ["Guest"]


def test_delete_customer_with_repair_is_conflict(client, seed):
    cid = seed["customer_id"]
    client.post(
        "/repairs/",
        json={"customer_id": cid, "device_model": "Galaxy S21", "problem_description": "Cracked screen"},
    )

    resp = client.delete(f"/customers/{cid}")

    assert resp.status_code == 409
    assert client.get(f"/customers/{cid}").status_code == 200


def test_delete_partner_clears_supplier_reference(client, seed):
    pid = seed["supplier_id"]
    phone = client.post(
        "/phones/",
        json={"model": "Nokia G21", "imei": "990000862471854", "purchase_price": 4000000, "supplier_id": pid},
    ).json()

    resp = client.delete(f"/partners/{pid}")

    assert resp.status_code == 204
    assert client.get(f"/partners/{pid}").status_code == 404
    assert client.get(f"/phones/{phone['id']}").json()["supplier_id"] is None


def test_delete_missing_customer_or_partner(client, engine):
    assert client.delete("/customers/999").status_code == 404
    assert client.delete("/partners/999").status_code == 404


def test_update_partner(client, seed):
    pid = seed["supplier_id"]

    resp = client.put(
        f"/partners/{pid}",
        json={"partner_name": "Mobile Wholesale Ltd", "contact_person": "Mr. Naderi"},
    )

    assert resp.status_code == 200
    assert resp.json()["partner_name"] == "Mobile Wholesale Ltd"
    assert resp.json()["partner_type"] == "Supplier"
    assert client.put("/partners/999", json={"partner_name": "X"}).status_code == 404
