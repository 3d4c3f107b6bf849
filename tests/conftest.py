import hashlib
import hmac
import os
import time
import uuid
from decimal import Decimal

# Settings are read at import time; point them at test values first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

import pytest
import razorpay
from fastapi.testclient import TestClient
from jose import jwt
from razorpay.errors import BadRequestError, ServerError
from sqlmodel import Session

from onestore.core.config import get_settings
from onestore.core.payment_gateway import PaymentGateway
from onestore.database import build_engine
from onestore.main import create_app
from onestore.models.product import Product
from onestore.models.user import User, UserData

GATEWAY_KEY_ID = "rzp_test_key"
GATEWAY_KEY_SECRET = "rzp_test_secret"


class FakeGateway:
    """
    In-memory stand-in for the Razorpay order and payment resources.

    `install` swaps them into a real razorpay.Client, so signature
    checks still run through the SDK.
    """

    def __init__(self):
        self.orders: dict[str, dict] = {}
        self.payments: dict[str, dict] = {}
        self.fail_create = False
        self.created: list[dict] = []

    def install(self, client: razorpay.Client) -> razorpay.Client:
        client.order.create = self.create_order
        client.payment.fetch = self.fetch_payment
        return client

    def create_order(self, data=None, **kwargs) -> dict:
        self.created.append(data)
        if self.fail_create:
            raise ServerError("The server encountered an error")
        order_id = f"order_{len(self.orders) + 1}"
        order = {
            "id": order_id,
            "amount": data["amount"],
            "currency": data["currency"],
            "receipt": data["receipt"],
            "status": "created",
        }
        self.orders[order_id] = order
        return order

    def fetch_payment(self, payment_id, data=None, **kwargs) -> dict:
        payment = self.payments.get(payment_id)
        if payment is None:
            raise BadRequestError("The id provided does not exist")
        return payment

    def pay(self, gateway_order_id: str, payment_id: str = "pay_1", status: str = "captured") -> str:
        """Record a payment for a session and return the matching signature."""
        self.payments[payment_id] = {
            "id": payment_id,
            "order_id": gateway_order_id,
            "status": status,
        }
        return sign(gateway_order_id, payment_id)


def sign(gateway_order_id: str, payment_id: str) -> str:
    message = f"{gateway_order_id}|{payment_id}".encode()
    return hmac.new(GATEWAY_KEY_SECRET.encode(), message, hashlib.sha256).hexdigest()


def make_token(user_id: uuid.UUID, email: str, **claims) -> str:
    payload = {
        "sub": str(user_id),
        "email": email,
        "exp": int(time.time()) + 3600,
        **claims,
    }
    settings = get_settings()
    return jwt.encode(payload, settings.SUPABASE_JWT_SECRET, algorithm=settings.SUPABASE_JWT_ALG)


def auth_headers(user_id: uuid.UUID, email: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def client(engine, fake_gateway):
    rz = fake_gateway.install(razorpay.Client(auth=(GATEWAY_KEY_ID, GATEWAY_KEY_SECRET)))
    gateway = PaymentGateway(rz, GATEWAY_KEY_ID)
    app = create_app(engine=engine, payment_gateway=gateway)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(engine, client):
    """Session for arranging and inspecting rows; tables exist once the client started."""
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_user(db):
    def _make_user(
        email: str,
        role: str | None = None,
        address: str | None = None,
        name: str | None = None,
    ) -> User:
        user = User(name=name or email.split("@")[0], email=email)
        db.add(user)
        db.commit()
        db.refresh(user)
        if role is not None or address is not None:
            db.add(UserData(user_id=user.id, role=role or "user", address=address))
            db.commit()
        return user

    return _make_user


@pytest.fixture
def customer(make_user):
    user = make_user("alice@example.com", address="12 Market Street, Pune")
    return user, auth_headers(user.id, user.email)


@pytest.fixture
def other_customer(make_user):
    user = make_user("bob@example.com", address="7 Lake Road, Mumbai")
    return user, auth_headers(user.id, user.email)


@pytest.fixture
def admin(make_user):
    user = make_user("admin@example.com", role="admin")
    return user, auth_headers(user.id, user.email)


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make_product(
        price: str = "10.50",
        stock: int = 5,
        is_active: bool = True,
        name: str | None = None,
    ) -> Product:
        counter["n"] += 1
        product = Product(
            name=name or f"Product {counter['n']}",
            slug=f"product-{counter['n']}",
            description="A product",
            price=Decimal(price),
            stock=stock,
            is_active=is_active,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make_product
