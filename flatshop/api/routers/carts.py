# flatshop/api/routers/carts.py
from fastapi import APIRouter, Depends

from flatshop.api.deps import get_cart_service, get_target_user, require_permission
from flatshop.data.models.user import User
from flatshop.domain.schemas import CartAddIn, CartQuantityIn
from flatshop.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("/")
def view_cart(
    user: User = Depends(require_permission("cart:view")),
    target_user: str | None = Depends(get_target_user),
    svc: CartService = Depends(get_cart_service),
):
    return svc.get_cart(user.user_id, user.is_admin, target_user)


@router.get("/total")
def cart_total(
    user: User = Depends(require_permission("cart:view")),
    target_user: str | None = Depends(get_target_user),
    svc: CartService = Depends(get_cart_service),
):
    total = svc.total(user.user_id, user.is_admin, target_user)
    return {"user_id": target_user or user.user_id, "total": total}


@router.post("/items")
def add_item(
    payload: CartAddIn,
    user: User = Depends(require_permission("cart:add")),
    svc: CartService = Depends(get_cart_service),
):
    return svc.add_item(payload.product_id, payload.quantity, user.user_id)


@router.patch("/items/{product_id}")
def update_item(
    product_id: str,
    payload: CartQuantityIn,
    user: User = Depends(require_permission("cart:update")),
    target_user: str | None = Depends(get_target_user),
    svc: CartService = Depends(get_cart_service),
):
    return svc.update_quantity(product_id, payload.quantity, user.user_id, user.is_admin, target_user)


@router.delete("/items/{product_id}")
def remove_item(
    product_id: str,
    user: User = Depends(require_permission("cart:remove")),
    target_user: str | None = Depends(get_target_user),
    svc: CartService = Depends(get_cart_service),
):
    return svc.remove_item(product_id, user.user_id, user.is_admin, target_user)
