# onestore/services/cart_service.py
import uuid
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from onestore.models.cart import CartItem
from onestore.models.product import Product
from onestore.repositories.cart_repo import CartRepository
from onestore.repositories.product_repo import ProductRepository
from onestore.schemas.cart import (
    CartItemCreate,
    CartItemUpdate,
    CartItemRead,
    CartProductRead,
    CartSummary,
)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - validate product existence and active flag
      - enforce 1 <= quantity <= stock at every write
      - merge repeated adds of the same product into one line
      - compute line totals and cart totals from current prices
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def _get_valid_product(self, session: Session, product_id: uuid.UUID):
        product = self.product_repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        if not product.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product is inactive",
            )
        return product

    def _merge_into(self, session: Session, item: CartItem, product: Product, quantity: int) -> None:
        new_qty = item.quantity + quantity
        if new_qty > product.stock:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Not enough stock to increase quantity",
            )
        item.quantity = new_qty
        self.cart_repo.update(session, item)

    # ---- public operations ----

    def get_cart_summary(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> CartSummary:
        """
        Return full cart summary:
          - lines with their current product state and line_total
          - total_quantity
          - total_amount
        """
        rows = self.cart_repo.list_with_products(session, user_id)

        item_reads: list[CartItemRead] = []
        total_qty = 0
        total_amount = Decimal("0")

        for item, product in rows:
            line_total = product.price * item.quantity
            total_qty += item.quantity
            total_amount += line_total

            item_reads.append(
                CartItemRead(
                    id=item.id,
                    quantity=item.quantity,
                    product=CartProductRead.model_validate(product),
                    line_total=line_total,
                )
            )

        return CartSummary(
            items=item_reads,
            total_quantity=total_qty,
            total_amount=total_amount.quantize(Decimal("0.01")),
        )

    def add_to_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartItemCreate,
    ) -> CartSummary:
        """
        Add a product to the user's cart.

        Rules:
          - product must exist and be active
          - an existing line for the product is increased, not duplicated
          - resulting quantity <= stock
        """
        product = self._get_valid_product(session, payload.product_id)

        if payload.quantity > product.stock:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Not enough stock available",
            )

        existing = self.cart_repo.get_item(session, user_id, payload.product_id)

        if existing:
            self._merge_into(session, existing, product, payload.quantity)
        else:
            item = CartItem(
                user_id=user_id,
                product_id=payload.product_id,
                quantity=payload.quantity,
            )
            try:
                self.cart_repo.create(session, item)
            except IntegrityError:
                # Another request inserted the line first; add onto it.
                session.rollback()
                existing = self.cart_repo.get_item(session, user_id, payload.product_id)
                if existing is None:
                    raise
                self._merge_into(session, existing, product, payload.quantity)

        return self.get_cart_summary(session, user_id)

    def update_quantity(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartItemUpdate,
    ) -> CartSummary:
        """
        Set the quantity of one of the user's cart lines.

        404 if the line is not the user's; 400 if quantity exceeds stock.
        """
        item = self.cart_repo.get_owned(session, user_id, payload.id)
        if not item:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cart item not found",
            )

        product = self.product_repo.get_by_id(session, item.product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )

        if payload.quantity > product.stock:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Not enough stock available",
            )

        item.quantity = payload.quantity
        self.cart_repo.update(session, item)

        return self.get_cart_summary(session, user_id)

    def remove_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        item_id: uuid.UUID,
    ) -> CartSummary:
        """
        Remove a line from the user's cart. Lines owned by other users
        (or already gone) are left alone.
        """
        item = self.cart_repo.get_owned(session, user_id, item_id)
        if item:
            self.cart_repo.delete(session, item)
        return self.get_cart_summary(session, user_id)
