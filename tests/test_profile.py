import uuid

from conftest import auth_headers, make_token
from onestore.models.user import User


def test_auth_check_for_guest(client):
    resp = client.get("/api/auth/check")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"isAuthenticated": False, "user": None}


def test_first_request_provisions_user(client, db):
    user_id = uuid.uuid4()
    headers = {"Authorization": f"Bearer {make_token(user_id, 'new.person@example.com')}"}

    resp = client.get("/api/auth/check", headers=headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["isAuthenticated"] is True
    assert data["user"]["id"] == str(user_id)
    assert data["user"]["name"] == "new.person"
    assert data["user"]["userData"] is None
    assert db.get(User, user_id) is not None


def test_session_cookie_is_accepted(client, customer):
    user, _ = customer
    client.cookies.set("onestore_session", make_token(user.id, user.email))
    try:
        resp = client.get("/api/cart")
    finally:
        client.cookies.clear()
    assert resp.status_code == 200


def test_invalid_token(client):
    resp = client.get("/api/cart", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid or expired token"


def test_token_without_email(client):
    token = make_token(uuid.uuid4(), "")
    resp = client.get("/api/cart", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_read_user_data(client, customer, make_user):
    _, headers = customer
    resp = client.get("/api/user-data", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["address"] == "12 Market Street, Pune"

    bare = make_user("bare@example.com")
    resp = client.get("/api/user-data", headers=auth_headers(bare.id, bare.email))
    assert resp.json()["data"] is None


def test_update_profile_creates_user_data(client, make_user):
    user = make_user("frank@example.com")
    headers = auth_headers(user.id, user.email)

    resp = client.put(
        "/api/user-data",
        json={"name": " Frank ", "address": "1 High St", "phone": "0123"},
        headers=headers,
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "Frank"
    assert data["userData"]["address"] == "1 High St"
    assert data["userData"]["role"] == "user"


def test_update_profile_never_changes_role(client, admin):
    _, headers = admin

    resp = client.put(
        "/api/user-data",
        json={"name": "Boss", "address": "HQ"},
        headers=headers,
    )

    assert resp.json()["data"]["userData"]["role"] == "admin"


def test_update_profile_validates_name(client, customer):
    _, headers = customer
    resp = client.put("/api/user-data", json={"name": "A"}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "name"

    resp = client.put("/api/user-data", json={"name": "Alice", "role": "admin"}, headers=headers)
    assert resp.status_code == 400
