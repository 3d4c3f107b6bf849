# onestore/services/order_service.py
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from onestore.core.payment_gateway import PaymentGateway
from onestore.models.order import Order
from onestore.repositories.order_repo import OrderRepository
from onestore.schemas.order import (
    OrderDetail,
    OrderItemRead,
    OrderRead,
    OrderStatusUpdate,
)
from onestore.services.checkout_service import CheckoutService


class OrderService:
    """
    Business logic for reading orders and moving them through
    their lifecycle.

    Responsibilities:
      - scope listings/lookups to the owner unless the caller is admin
      - route status updates through the checkout state machine
    """

    def __init__(self, order_repo: OrderRepository, checkout: CheckoutService):
        self.order_repo = order_repo
        self.checkout = checkout

    def list_orders(
        self,
        session: Session,
        user_id: uuid.UUID | None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[Order], int]:
        """
        One page of orders, newest first, plus the total count.
        user_id=None lists every order (admin).
        """
        orders = self.order_repo.list_orders(session, user_id, skip, limit)
        return orders, self.order_repo.count(session, user_id)

    def get_order(
        self,
        session: Session,
        order_id: uuid.UUID,
        user_id: uuid.UUID,
        admin: bool,
    ) -> Order:
        """
        404 if the order does not exist or, for non-admins,
        belongs to someone else.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order or (not admin and order.user_id != user_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        return order

    def get_order_detail(
        self,
        session: Session,
        order_id: uuid.UUID,
        user_id: uuid.UUID,
        admin: bool,
    ) -> OrderDetail:
        order = self.get_order(session, order_id, user_id, admin)
        items = self.order_repo.list_items_for_order(session, order.id)
        return OrderDetail(
            order=OrderRead.model_validate(order),
            items=[OrderItemRead.model_validate(it) for it in items],
        )

    def update_status(
        self,
        session: Session,
        gateway: PaymentGateway,
        order_id: uuid.UUID,
        user_id: uuid.UUID,
        admin: bool,
        payload: OrderStatusUpdate,
    ) -> Order:
        """
        Status update with the checkout state machine:

          pending   -> completed (verified payment), cancelled
          completed -> (no change)
          cancelled -> (no change)
          failed    -> (no change)

        Asking for the current status is a no-op; any other
        transition raises 400.
        """
        order = self.get_order(session, order_id, user_id, admin)

        if payload.status == "completed":
            # Admins may reconcile manually without a payment proof.
            verify = not admin or bool(payload.payment_id or payload.signature)
            return self.checkout.confirm_payment(
                session,
                gateway,
                order,
                payload.payment_id,
                payload.signature,
                verify=verify,
            )

        if payload.status == "cancelled":
            return self.checkout.cancel_checkout(session, order)

        self.checkout.check_transition(order.status, payload.status)
        return order
