# onestore/routers/cart.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from onestore.core.auth import require_auth
from onestore.database import get_session
from onestore.models.user import User
from onestore.repositories.cart_repo import CartRepository
from onestore.repositories.product_repo import ProductRepository
from onestore.schemas.cart import (
    CartItemCreate,
    CartItemDelete,
    CartItemUpdate,
    CartSummary,
)
from onestore.schemas.common import ApiResponse
from onestore.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo)


@router.get("", response_model=ApiResponse[CartSummary])
def get_my_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Get current user's cart with totals.
    """
    return ApiResponse[CartSummary](data=service.get_cart_summary(session, current_user.id))


@router.post("", response_model=ApiResponse[CartSummary])
def add_to_cart(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Add a product to the cart; repeated adds increase the quantity.
    """
    summary = service.add_to_cart(session, current_user.id, payload)
    return ApiResponse[CartSummary](
        data=summary,
        message="Product added to cart successfully",
    )


@router.patch("", response_model=ApiResponse[CartSummary])
def update_cart_item(
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Set the quantity of a cart line.
    """
    summary = service.update_quantity(session, current_user.id, payload)
    return ApiResponse[CartSummary](data=summary, message="Cart updated successfully")


@router.delete("", response_model=ApiResponse[CartSummary])
def remove_cart_item(
    payload: CartItemDelete,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Remove a line from the cart.
    """
    summary = service.remove_item(session, current_user.id, payload.id)
    return ApiResponse[CartSummary](data=summary, message="Item removed from cart")
