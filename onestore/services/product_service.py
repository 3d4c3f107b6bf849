# onestore/services/product_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from onestore.core.storage_utils import (
    upload_to_storage,
    delete_public_url,
    generate_filename,
)
from onestore.models.product import Product
from onestore.repositories.product_repo import ProductRepository
from onestore.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

# --- Image config ---

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

SLUG_CONFLICT = "A product with this slug already exists"


class ProductService:
    """
    Business logic for the catalog.

    Responsibilities:
      - slug uniqueness (pre-check + unique constraint fallback)
      - full-replace updates
      - image upload/delete orchestration with Supabase Storage
      - admin-only operations (enforced at router via require_admin)
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Helpers -----

    @staticmethod
    def _slug_conflict() -> HTTPException:
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SLUG_CONFLICT)

    def _ensure_slug_free(
        self,
        session: Session,
        slug: str,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        existing = self.repo.get_by_slug(session, slug)
        if existing is not None and existing.id != exclude_id:
            raise self._slug_conflict()

    @staticmethod
    def _validate_and_get_ext(content_type: str, file_bytes: bytes) -> str:
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported image type. Allowed: JPEG, PNG, WEBP.",
            )

        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Image too large (max 5MB).",
            )

        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]

    @staticmethod
    def _discard_image(url: str | None) -> None:
        """Best-effort removal of a stored image; failures are only logged."""
        if not url:
            return
        try:
            delete_public_url(url)
        except Exception:
            logger.warning("Could not delete stored image %s", url, exc_info=True)

    # ----- Products -----

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        q: str | None = None,
        active_only: bool = False,
    ) -> tuple[list[Product], int]:
        """Return one page of products and the total matching count."""
        q = q.strip() if q else None
        items = self.repo.list_products(
            session, skip=skip, limit=limit, q=q, active_only=active_only
        )
        total = self.repo.count(session, q=q, active_only=active_only)
        return items, total

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    def create_product(
        self,
        session: Session,
        payload: ProductCreate,
    ) -> Product:
        """
        Create a new product.

        A duplicate slug is rejected with 409, whether caught by the
        pre-check or by the unique constraint at insert time.
        """
        self._ensure_slug_free(session, payload.slug)

        product = Product(
            name=payload.name,
            slug=payload.slug,
            description=payload.description,
            price=payload.price,
            stock=payload.stock,
            image=payload.image,
            is_active=payload.is_active,
        )
        try:
            return self.repo.create(session, product)
        except IntegrityError:
            session.rollback()
            raise self._slug_conflict()

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Full replace of the editable fields.
        """
        product = self.get_product(session, product_id)
        self._ensure_slug_free(session, payload.slug, exclude_id=product.id)

        product.name = payload.name
        product.slug = payload.slug
        product.description = payload.description
        product.price = payload.price
        product.stock = payload.stock
        product.image = payload.image
        product.is_active = payload.is_active

        try:
            return self.repo.update(session, product)
        except IntegrityError:
            session.rollback()
            raise self._slug_conflict()

    def delete_product(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> None:
        """
        Hard delete. Cart lines and order items referencing the product
        go with it through the foreign key cascade.
        """
        product = self.get_product(session, product_id)
        image = product.image
        self.repo.delete(session, product)
        self._discard_image(image)

    # ----- Image -----

    def set_image(
        self,
        session: Session,
        product_id: uuid.UUID,
        content_type: str,
        file_bytes: bytes,
    ) -> Product:
        """
        Upload or replace the product image.

        Path pattern:
            products/<product_id>/<uuid>.<ext>
        """
        product = self.get_product(session, product_id)
        ext = self._validate_and_get_ext(content_type, file_bytes)

        path = f"products/{product.id}/{generate_filename(ext)}"
        try:
            new_url = upload_to_storage(path, file_bytes, content_type)
        except Exception:
            logger.exception("Image upload failed for product %s", product.id)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to upload image",
            )

        old_url = product.image
        product.image = new_url
        product = self.repo.update(session, product)
        if old_url and old_url != new_url:
            self._discard_image(old_url)
        return product
