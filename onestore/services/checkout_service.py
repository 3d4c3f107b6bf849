# onestore/services/checkout_service.py
import logging
from decimal import Decimal

from fastapi import HTTPException, status
from sqlmodel import Session

from onestore.core import email_client
from onestore.core.payment_gateway import (
    CONFIRMED_PAYMENT_STATUSES,
    PaymentGateway,
    PaymentGatewayError,
    to_minor_units,
)
from onestore.models.order import Order, OrderItem
from onestore.models.user import User
from onestore.repositories.cart_repo import CartRepository
from onestore.repositories.order_repo import OrderRepository
from onestore.repositories.product_repo import ProductRepository
from onestore.repositories.user_repo import UserRepository
from onestore.schemas.order import CheckoutSession

logger = logging.getLogger(__name__)

# Order lifecycle. An order leaves `pending` exactly once:
#   pending -> completed  (payment verified with the gateway)
#   pending -> cancelled  (customer dismissed the payment UI)
#   pending -> failed     (payment session could not be opened)
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"completed", "cancelled", "failed"},
    "completed": set(),
    "cancelled": set(),
    "failed": set(),
}


class CheckoutService:
    """
    Turns a cart into a paid order with a single gateway round-trip.

    Steps and their compensations:
      1. reserve  : order + items + stock decrement (one DB transaction)
      2. session  : open a gateway payment session
                    -> on failure: order failed, stock restored
      3. confirm  : verify the payment with the gateway, complete the
                    order and drop the cart lines it consumed
         cancel   : order cancelled, stock restored, cart untouched
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        user_repo: UserRepository,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.user_repo = user_repo

    # -------- State machine --------

    @staticmethod
    def check_transition(current: str, new: str) -> bool:
        """
        Return False when `new` equals `current` (nothing to do),
        True when the move is legal.

        Raises:
            HTTPException(400): illegal transition.
        """
        if current == new:
            return False
        if new not in ALLOWED_TRANSITIONS.get(current, set()):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status transition: {current} -> {new}",
            )
        return True

    def _release_stock(self, session: Session, order: Order) -> None:
        """Give back the units reserved for this order. Does not commit."""
        for it in self.order_repo.list_items_for_order(session, order.id):
            self.product_repo.release_stock(session, it.product_id, it.quantity)

    # -------- Step 1 + 2: start --------

    def start_checkout(
        self,
        session: Session,
        gateway: PaymentGateway,
        currency: str,
        user: User,
    ) -> CheckoutSession:
        """
        Convert the user's cart into a pending order and open a
        payment session for it.

        Raises:
            HTTPException(400): no shipping address, or empty cart
            HTTPException(409): a line exceeds the stock on hand
            HTTPException(502): the gateway could not open a session
        """
        user_data = self.user_repo.get_data(session, user.id)
        if user_data is None or not (user_data.address or "").strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Please add a shipping address to your profile before checkout",
            )

        rows = self.cart_repo.list_with_products(session, user.id)
        if not rows:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty",
            )

        errors: list[dict[str, str]] = []
        for item, product in rows:
            if not product.is_active:
                errors.append({"productId": str(product.id), "reason": "Product is inactive"})
            elif item.quantity > product.stock:
                errors.append(
                    {
                        "productId": str(product.id),
                        "reason": f"Insufficient stock (have {product.stock}, requested {item.quantity})",
                    }
                )
        if errors:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"message": "Cart validation failed", "items": errors},
            )

        total = sum(
            (product.price * item.quantity for item, product in rows),
            Decimal("0"),
        ).quantize(Decimal("0.01"))

        # 1) Reserve: stock, order and snapshot items in one transaction.
        # The conditional decrement re-checks stock against the stored row.
        shortages = [
            {
                "productId": str(product.id),
                "reason": "Insufficient stock",
            }
            for item, product in rows
            if not self.product_repo.reserve_stock(session, product.id, item.quantity)
        ]
        if shortages:
            session.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"message": "Cart validation failed", "items": shortages},
            )

        order = self.order_repo.create_order(
            session,
            Order(
                user_id=user.id,
                total_amount=total,
                status="pending",
                customer_name=user.name or "Customer",
                customer_email=user.email,
                shipping_address=user_data.address.strip(),
            ),
        )
        self.order_repo.create_items(
            session,
            [
                OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    product_name=product.name,
                    quantity=item.quantity,
                    price=product.price,
                )
                for item, product in rows
            ],
        )
        session.commit()
        session.refresh(order)

        # 2) Open the payment session
        amount = to_minor_units(total)
        try:
            gateway_order = gateway.create_order(amount, currency, receipt=str(order.id))
        except PaymentGatewayError:
            logger.exception("Payment session failed for order %s; compensating", order.id)
            self.check_transition(order.status, "failed")
            order.status = "failed"
            self._release_stock(session, order)
            self.order_repo.update_order(session, order)
            session.commit()
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to create payment session",
            )

        order.gateway_order_id = gateway_order["id"]
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)

        logger.info(
            "Checkout started: order=%s user=%s amount=%s %s",
            order.id,
            user.id,
            amount,
            currency,
        )

        return CheckoutSession(
            gateway_key=gateway.key_id,
            session_id=order.gateway_order_id,
            amount=int(gateway_order.get("amount", amount)),
            currency=gateway_order.get("currency", currency),
            order_id=order.id,
        )

    # -------- Step 3: confirm / cancel --------

    def _verify_payment(
        self,
        gateway: PaymentGateway,
        order: Order,
        payment_id: str | None,
        signature: str | None,
    ) -> None:
        """
        Treat the client callback as a hint only: the signature must
        match and the gateway must report the payment as paid for
        this very order.
        """
        if not payment_id or not signature or not order.gateway_order_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Payment proof is required to complete an order",
            )

        if not gateway.verify_signature(order.gateway_order_id, payment_id, signature):
            logger.warning("Signature mismatch for order %s payment %s", order.id, payment_id)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid payment signature",
            )

        try:
            payment = gateway.fetch_payment(payment_id)
        except PaymentGatewayError:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Could not confirm payment with the gateway",
            )

        if (
            payment.get("order_id") != order.gateway_order_id
            or payment.get("status") not in CONFIRMED_PAYMENT_STATUSES
        ):
            logger.warning(
                "Payment %s not confirmed for order %s: %s",
                payment_id,
                order.id,
                payment.get("status"),
            )
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Payment has not been confirmed",
            )

    def confirm_payment(
        self,
        session: Session,
        gateway: PaymentGateway,
        order: Order,
        payment_id: str | None,
        signature: str | None,
        verify: bool = True,
    ) -> Order:
        """
        pending -> completed.

        With verify=False (admin reconciliation) the gateway check is
        skipped. Completion and cart cleanup commit together.
        """
        if not self.check_transition(order.status, "completed"):
            return order

        if verify:
            self._verify_payment(gateway, order, payment_id, signature)
        else:
            logger.warning("Order %s completed without payment verification", order.id)

        items = self.order_repo.list_items_for_order(session, order.id)

        order.status = "completed"
        order.payment_id = payment_id
        self.order_repo.update_order(session, order)
        self.cart_repo.delete_for_products(
            session, order.user_id, [it.product_id for it in items]
        )
        session.commit()
        session.refresh(order)

        self._send_confirmation(order, items)
        return order

    def cancel_checkout(self, session: Session, order: Order) -> Order:
        """
        pending -> cancelled. Reserved stock is restored;
        the cart is left untouched so the customer can retry.
        """
        if not self.check_transition(order.status, "cancelled"):
            return order

        order.status = "cancelled"
        self._release_stock(session, order)
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)
        return order

    # -------- Notifications --------

    @staticmethod
    def _send_confirmation(order: Order, items: list[OrderItem]) -> None:
        """Best-effort confirmation email; failures never undo the order."""
        if not email_client.is_configured():
            logger.info("SMTP not configured; skipping confirmation for order %s", order.id)
            return

        lines = "\n".join(
            f"  - {it.product_name} x{it.quantity} @ {it.price}" for it in items
        )
        text_body = (
            f"Hi {order.customer_name},\n\n"
            f"Thanks for your order {order.id}.\n\n"
            f"{lines}\n\n"
            f"Total: {order.total_amount}\n"
            f"Shipping to: {order.shipping_address}\n"
        )
        try:
            email_client.send_email(
                to_email=order.customer_email,
                subject="[OneStore] Your order is confirmed",
                text_body=text_body,
            )
        except Exception:
            logger.exception("Failed to send confirmation email for order %s", order.id)
