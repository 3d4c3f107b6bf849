# onestore/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from onestore.core.auth import is_admin, require_auth
from onestore.core.config import get_settings
from onestore.core.payment_gateway import PaymentGateway, get_payment_gateway
from onestore.database import get_session
from onestore.models.user import User
from onestore.repositories.cart_repo import CartRepository
from onestore.repositories.order_repo import OrderRepository
from onestore.repositories.product_repo import ProductRepository
from onestore.repositories.user_repo import UserRepository
from onestore.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ApiResponse,
    PaginatedResponse,
    Pagination,
)
from onestore.schemas.order import (
    CheckoutSession,
    OrderDetail,
    OrderRead,
    OrderStatusUpdate,
)
from onestore.services.checkout_service import CheckoutService
from onestore.services.order_service import OrderService

settings = get_settings()

router = APIRouter(tags=["Orders"])

order_repo = OrderRepository()
checkout = CheckoutService(order_repo, CartRepository(), ProductRepository(), UserRepository())
service = OrderService(order_repo, checkout)


# -------- Checkout --------


@router.post("/checkout", response_model=ApiResponse[CheckoutSession])
def start_checkout(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Turn the current cart into a pending order and open a payment
    session. The client opens the hosted payment UI with the returned
    `gatewayKey` / `sessionId`, then reports back via PUT /orders/{id}.
    """
    checkout_session = checkout.start_checkout(
        session, gateway, settings.PAYMENT_CURRENCY, current_user
    )
    return ApiResponse[CheckoutSession](
        data=checkout_session,
        message="Payment session created",
    )


# -------- Orders --------


@router.get("/orders", response_model=PaginatedResponse[OrderRead])
def list_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    """
    List orders, newest first. Admins see every order,
    everyone else only their own.
    """
    owner = None if is_admin(session, current_user.id) else current_user.id
    orders, total = service.list_orders(
        session, owner, skip=(page - 1) * limit, limit=limit
    )
    return PaginatedResponse[OrderRead](
        data=[OrderRead.model_validate(o) for o in orders],
        pagination=Pagination.build(page, limit, total),
        message="Orders fetched successfully",
    )


@router.get("/orders/{order_id}", response_model=ApiResponse[OrderDetail])
def get_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Get an order with its items (owner or admin).
    """
    detail = service.get_order_detail(
        session, order_id, current_user.id, is_admin(session, current_user.id)
    )
    return ApiResponse[OrderDetail](
        data=detail,
        message="Order details fetched successfully",
    )


@router.put("/orders/{order_id}", response_model=ApiResponse[OrderRead])
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """
    Move an order out of `pending`.

      pending -> completed : requires paymentId + signature,
                             verified with the gateway
      pending -> cancelled : payment UI dismissed

    Other transitions are rejected; asking for the current status
    is a no-op.
    """
    order = service.update_status(
        session,
        gateway,
        order_id,
        current_user.id,
        is_admin(session, current_user.id),
        payload,
    )
    return ApiResponse[OrderRead](
        data=OrderRead.model_validate(order),
        message="Order status updated successfully",
    )
