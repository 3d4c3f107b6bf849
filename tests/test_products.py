import uuid
from decimal import Decimal

from sqlmodel import select

from onestore.models.product import Product
from onestore.services import product_service


def _payload(**overrides):
    payload = {
        "name": "Blue Mug",
        "slug": "blue-mug",
        "description": "A ceramic mug",
        "price": "12.99",
        "stock": 8,
    }
    payload.update(overrides)
    return payload


def test_health(client):
    assert client.get("/").json() == {"status": "ok", "service": "onestore-backend"}


def test_public_listing(client, make_product):
    make_product(name="Tea Cup")
    make_product(name="Coffee Cup", is_active=False)
    make_product(name="Plate")

    body = client.get("/api/products").json()
    assert body["success"] is True
    assert body["pagination"]["total"] == 3
    assert len(body["data"]) == 3

    active = client.get("/api/products", params={"activeOnly": "true"}).json()
    assert {p["name"] for p in active["data"]} == {"Tea Cup", "Plate"}

    search = client.get("/api/products", params={"q": "cup"}).json()
    assert {p["name"] for p in search["data"]} == {"Tea Cup", "Coffee Cup"}
    assert search["pagination"]["total"] == 2


def test_listing_limit_is_capped(client):
    resp = client.get("/api/products", params={"limit": 500})
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "limit"


def test_get_product(client, make_product):
    product = make_product(price="3.40")

    resp = client.get(f"/api/products/{product.id}")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["slug"] == product.slug
    assert data["isActive"] is True
    assert Decimal(data["price"]) == Decimal("3.40")

    assert client.get(f"/api/products/{uuid.uuid4()}").status_code == 404


def test_create_requires_admin(client, customer):
    _, headers = customer
    assert client.post("/api/products", json=_payload()).status_code == 401

    resp = client.post("/api/products", json=_payload(), headers=headers)
    assert resp.status_code == 403
    assert resp.json()["error"] == "Admin access required"


def test_create_product(client, admin):
    _, headers = admin

    resp = client.post(
        "/api/products",
        json=_payload(name="  Blue Mug  ", isActive=False),
        headers=headers,
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Product created successfully"
    assert body["data"]["name"] == "Blue Mug"
    assert body["data"]["stock"] == 8
    assert body["data"]["isActive"] is False


def test_duplicate_slug_is_rejected(client, admin, db):
    _, headers = admin
    assert client.post("/api/products", json=_payload(), headers=headers).status_code == 201

    resp = client.post("/api/products", json=_payload(name="Other"), headers=headers)

    assert resp.status_code == 409
    assert resp.json()["error"] == "A product with this slug already exists"
    rows = db.exec(select(Product).where(Product.slug == "blue-mug")).all()
    assert len(rows) == 1


def test_create_validation(client, admin):
    _, headers = admin

    resp = client.post(
        "/api/products",
        json=_payload(name="   ", price="-1"),
        headers=headers,
    )

    assert resp.status_code == 400
    fields = {d["field"] for d in resp.json()["details"]}
    assert {"name", "price"} <= fields


def test_update_product(client, admin, make_product):
    _, headers = admin
    product = make_product()

    resp = client.put(
        f"/api/products/{product.id}",
        json=_payload(slug=product.slug, price="20.00", stock=0),
        headers=headers,
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "Blue Mug"
    assert Decimal(data["price"]) == Decimal("20.00")
    assert data["stock"] == 0


def test_update_to_taken_slug(client, admin, make_product):
    _, headers = admin
    first = make_product()
    second = make_product()

    resp = client.put(
        f"/api/products/{second.id}",
        json=_payload(slug=first.slug),
        headers=headers,
    )

    assert resp.status_code == 409


def test_delete_product(client, admin, customer, make_product):
    _, headers = admin
    _, customer_headers = customer
    product = make_product()
    client.post(
        "/api/cart",
        json={"productId": str(product.id), "quantity": 1},
        headers=customer_headers,
    )

    resp = client.delete(f"/api/products/{product.id}", headers=headers)

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "data": None,
        "message": "Product deleted successfully",
    }
    assert client.get(f"/api/products/{product.id}").status_code == 404
    cart = client.get("/api/cart", headers=customer_headers).json()["data"]
    assert cart["items"] == []


def test_upload_image(client, admin, make_product, monkeypatch):
    _, headers = admin
    product = make_product()
    uploads = []
    deleted = []

    def fake_upload(path, file_bytes, content_type):
        uploads.append((path, content_type))
        return f"https://cdn.test/{path}"

    monkeypatch.setattr(product_service, "upload_to_storage", fake_upload)
    monkeypatch.setattr(product_service, "delete_public_url", deleted.append)

    files = {"file": ("mug.png", b"\x89PNG fake", "image/png")}
    first = client.post(f"/api/products/{product.id}/image", files=files, headers=headers)
    second = client.post(f"/api/products/{product.id}/image", files=files, headers=headers)

    assert first.status_code == 200
    assert second.status_code == 200
    assert uploads[0][0].startswith(f"products/{product.id}/")
    assert uploads[0][0].endswith(".png")
    assert second.json()["data"]["image"] == f"https://cdn.test/{uploads[1][0]}"
    assert deleted == [f"https://cdn.test/{uploads[0][0]}"]


def test_upload_rejects_unsupported_type(client, admin, make_product):
    _, headers = admin
    product = make_product()

    resp = client.post(
        f"/api/products/{product.id}/image",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=headers,
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == "Unsupported image type. Allowed: JPEG, PNG, WEBP."


def test_upload_failure_is_reported(client, admin, make_product, monkeypatch):
    _, headers = admin
    product = make_product()

    def broken_upload(path, file_bytes, content_type):
        raise RuntimeError("storage down")

    monkeypatch.setattr(product_service, "upload_to_storage", broken_upload)

    resp = client.post(
        f"/api/products/{product.id}/image",
        files={"file": ("mug.png", b"png", "image/png")},
        headers=headers,
    )

    assert resp.status_code == 502
    assert resp.json()["error"] == "Failed to upload image"
