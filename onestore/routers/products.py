# onestore/routers/products.py
import uuid

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    UploadFile,
    status,
)
from sqlmodel import Session

from onestore.core.auth import require_admin
from onestore.database import get_session
from onestore.repositories.product_repo import ProductRepository
from onestore.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ApiResponse,
    PaginatedResponse,
    Pagination,
)
from onestore.schemas.product import ProductCreate, ProductRead, ProductUpdate
from onestore.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo)


# -------- Public endpoints --------


@router.get("", response_model=PaginatedResponse[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    q: str | None = None,
    active_only: bool = Query(False, alias="activeOnly"),
):
    """
    List products, newest first.

    - `q` filters by name (case-insensitive) for storefront search.
    - `activeOnly=true` hides inactive products.
    """
    products, total = service.list_products(
        session,
        skip=(page - 1) * limit,
        limit=limit,
        q=q,
        active_only=active_only,
    )
    return PaginatedResponse[ProductRead](
        data=[ProductRead.model_validate(p) for p in products],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{product_id}", response_model=ApiResponse[ProductRead])
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Get a single product by id.
    """
    product = service.get_product(session, product_id)
    return ApiResponse[ProductRead](data=ProductRead.model_validate(product))


# -------- Admin endpoints --------


@router.post(
    "",
    response_model=ApiResponse[ProductRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """
    Create a new product (admin only). Duplicate slugs are rejected with 409.
    """
    product = service.create_product(session, payload)
    return ApiResponse[ProductRead](
        data=ProductRead.model_validate(product),
        message="Product created successfully",
    )


@router.put(
    "/{product_id}",
    response_model=ApiResponse[ProductRead],
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Replace the editable fields of a product (admin only).
    """
    product = service.update_product(session, product_id, payload)
    return ApiResponse[ProductRead](
        data=ProductRead.model_validate(product),
        message="Product updated successfully",
    )


@router.delete(
    "/{product_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a product (admin only).
    """
    service.delete_product(session, product_id)
    return ApiResponse[None](message="Product deleted successfully")


@router.post(
    "/{product_id}/image",
    response_model=ApiResponse[ProductRead],
    dependencies=[Depends(require_admin)],
    summary="Upload or replace the product image",
)
def upload_image(
    product_id: uuid.UUID,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    """
    Upload a new image for the product.

    - Accepts JPEG, PNG, WEBP up to 5MB.
    - Replaces any previous image.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )

    file_bytes = file.file.read()
    product = service.set_image(
        session=session,
        product_id=product_id,
        content_type=file.content_type,
        file_bytes=file_bytes,
    )
    return ApiResponse[ProductRead](
        data=ProductRead.model_validate(product),
        message="Image uploaded successfully",
    )
