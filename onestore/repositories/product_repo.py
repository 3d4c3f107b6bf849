# onestore/repositories/product_repo.py
import uuid

from sqlalchemy import func, update
from sqlmodel import Session, select

from onestore.models.product import Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_by_slug(self, session: Session, slug: str) -> Product | None:
        stmt = select(Product).where(Product.slug == slug)
        return session.exec(stmt).first()

    def reserve_stock(self, session: Session, product_id: uuid.UUID, quantity: int) -> bool:
        """
        Atomically take `quantity` units if that many are on hand.
        Returns False (and changes nothing) otherwise. Does not commit.
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return session.execute(stmt).rowcount == 1

    def release_stock(self, session: Session, product_id: uuid.UUID, quantity: int) -> None:
        """Atomically give `quantity` units back. Does not commit."""
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        session.execute(stmt)

    def _filtered(self, stmt, q: str | None, active_only: bool):
        if q:
            stmt = stmt.where(func.lower(Product.name).contains(q.lower()))
        if active_only:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        return stmt

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        q: str | None = None,
        active_only: bool = False,
    ) -> list[Product]:
        stmt = self._filtered(select(Product), q, active_only)
        stmt = stmt.order_by(Product.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def count(
        self,
        session: Session,
        q: str | None = None,
        active_only: bool = False,
    ) -> int:
        stmt = self._filtered(select(func.count()).select_from(Product), q, active_only)
        return session.exec(stmt).one()

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        session.delete(product)
        session.commit()
