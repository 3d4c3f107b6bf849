# onestore/repositories/cart_repo.py
import uuid

from sqlalchemy import delete
from sqlmodel import Session, select

from onestore.models.cart import CartItem
from onestore.models.product import Product


class CartRepository:

    # Cart lines for a user, joined to their products
    def list_with_products(
        self, session: Session, user_id: uuid.UUID
    ) -> list[tuple[CartItem, Product]]:
        stmt = (
            select(CartItem, Product)
            .join(Product, CartItem.product_id == Product.id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.created_at)
        )
        return session.exec(stmt).all()

    def get_item(
        self, session: Session, user_id: uuid.UUID, product_id: uuid.UUID
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.user_id == user_id, CartItem.product_id == product_id
        )
        return session.exec(stmt).first()

    def get_owned(
        self, session: Session, user_id: uuid.UUID, item_id: uuid.UUID
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.id == item_id, CartItem.user_id == user_id
        )
        return session.exec(stmt).first()

    # CRUD
    def create(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def update(self, session: Session, item: CartItem) -> CartItem:
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete(self, session: Session, item: CartItem) -> None:
        session.delete(item)
        session.commit()

    def delete_for_products(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_ids: list[uuid.UUID],
    ) -> None:
        """
        Remove the user's lines for the given products.

        Does not commit; used inside the checkout completion transaction.
        """
        if not product_ids:
            return
        stmt = delete(CartItem).where(
            CartItem.user_id == user_id,
            CartItem.product_id.in_(product_ids),
        )
        session.execute(stmt)
