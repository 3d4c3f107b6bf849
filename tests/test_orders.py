import uuid

import pytest


def _checkout(client, headers, product, quantity=1):
    client.post(
        "/api/cart",
        json={"productId": str(product.id), "quantity": quantity},
        headers=headers,
    )
    resp = client.post("/api/checkout", headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def _set_status(client, headers, order_id, **payload):
    return client.put(f"/api/orders/{order_id}", json=payload, headers=headers)


def test_orders_require_authentication(client):
    assert client.get("/api/orders").status_code == 401
    assert client.post("/api/checkout").status_code == 401


def test_customers_only_see_their_own_orders(
    client, customer, other_customer, admin, make_product
):
    _, headers = customer
    _, other_headers = other_customer
    _, admin_headers = admin
    product = make_product(stock=10)
    mine = _checkout(client, headers, product)
    theirs = _checkout(client, other_headers, product)

    resp = client.get("/api/orders", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [o["id"] for o in body["data"]] == [mine["orderId"]]
    assert body["pagination"] == {"page": 1, "limit": 50, "total": 1, "totalPages": 1}

    resp = client.get(f"/api/orders/{theirs['orderId']}", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["error"] == "Order not found"

    all_orders = client.get("/api/orders", headers=admin_headers).json()
    assert {o["id"] for o in all_orders["data"]} == {mine["orderId"], theirs["orderId"]}
    assert all_orders["pagination"]["total"] == 2


def test_order_listing_is_paginated(client, customer, make_product):
    _, headers = customer
    product = make_product(stock=10)
    for _ in range(3):
        session = _checkout(client, headers, product)
        _set_status(client, headers, session["orderId"], status="cancelled")

    body = client.get("/api/orders?page=2&limit=2", headers=headers).json()
    assert len(body["data"]) == 1
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}


def test_order_detail_includes_items(client, customer, make_product):
    _, headers = customer
    product = make_product(price="4.25", stock=10)
    session = _checkout(client, headers, product, quantity=2)

    resp = client.get(f"/api/orders/{session['orderId']}", headers=headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["order"]["status"] == "pending"
    assert data["order"]["shippingAddress"] == "12 Market Street, Pune"
    assert len(data["items"]) == 1
    assert data["items"][0]["productId"] == str(product.id)
    assert data["items"][0]["quantity"] == 2


def test_unknown_order(client, customer):
    _, headers = customer
    resp = client.get(f"/api/orders/{uuid.uuid4()}", headers=headers)
    assert resp.status_code == 404


@pytest.mark.parametrize(
    "first, second",
    [
        ("cancelled", "completed"),
        ("cancelled", "pending"),
    ],
)
def test_cancelled_orders_are_terminal(client, customer, admin, make_product, first, second):
    _, headers = customer
    _, admin_headers = admin
    session = _checkout(client, headers, make_product())
    assert _set_status(client, headers, session["orderId"], status=first).status_code == 200

    resp = _set_status(client, admin_headers, session["orderId"], status=second)

    assert resp.status_code == 400
    assert resp.json()["error"] == f"Invalid status transition: {first} -> {second}"


def test_completed_orders_are_terminal(client, customer, make_product, fake_gateway):
    _, headers = customer
    session = _checkout(client, headers, make_product())
    signature = fake_gateway.pay(session["sessionId"])
    _set_status(
        client,
        headers,
        session["orderId"],
        status="completed",
        paymentId="pay_1",
        signature=signature,
    )

    resp = _set_status(client, headers, session["orderId"], status="cancelled")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid status transition: completed -> cancelled"

    # Re-asserting the current status is a no-op.
    resp = _set_status(
        client,
        headers,
        session["orderId"],
        status="completed",
        paymentId="pay_1",
        signature=signature,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "completed"


def test_pending_to_pending_is_a_no_op(client, customer, make_product):
    _, headers = customer
    session = _checkout(client, headers, make_product())

    resp = _set_status(client, headers, session["orderId"], status="pending")

    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "pending"


def test_failed_is_not_a_client_status(client, customer, make_product):
    _, headers = customer
    session = _checkout(client, headers, make_product())

    resp = _set_status(client, headers, session["orderId"], status="failed")

    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request payload"


def test_admin_can_complete_without_payment_proof(client, customer, admin, make_product):
    _, headers = customer
    _, admin_headers = admin
    session = _checkout(client, headers, make_product())

    resp = _set_status(client, admin_headers, session["orderId"], status="completed")

    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "completed"
    assert client.get("/api/cart", headers=headers).json()["data"]["items"] == []


def test_other_customers_cannot_update_an_order(
    client, customer, other_customer, make_product
):
    _, headers = customer
    _, other_headers = other_customer
    session = _checkout(client, headers, make_product())

    resp = _set_status(client, other_headers, session["orderId"], status="cancelled")

    assert resp.status_code == 404
