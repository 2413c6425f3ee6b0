# flatshop/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query

from flatshop.api.deps import get_order_service, get_target_user, require_permission
from flatshop.data.models.user import User
from flatshop.domain.schemas import DeleteOutcome, OrderUpdateIn, PlaceOrderIn
from flatshop.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/")
def list_orders(
    user: User = Depends(require_permission("order:view")),
    target_user: str | None = Depends(get_target_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.get_orders(user.user_id, user.is_admin, target_user)


@router.post("/", status_code=201)
def create_order(
    payload: PlaceOrderIn,
    user: User = Depends(require_permission("order:create")),
    target_user: str | None = Depends(get_target_user),
    svc: OrderService = Depends(get_order_service),
):
    """
    Turns the selected cart lines into order lines; the cart keeps whatever
    was not ordered.
    """
    return svc.place_order(user.user_id, payload.items, payload.status, user.is_admin, target_user)


@router.patch("/")
def update_order(
    payload: OrderUpdateIn,
    user: User = Depends(require_permission("order:update")),
    target_user: str | None = Depends(get_target_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.update_order(
        {
            "user_id": user.user_id,
            "is_admin": user.is_admin,
            "items": payload.items,
            "status": payload.status,
        },
        target_user,
    )


@router.delete("/items", response_model=DeleteOutcome)
def delete_order_items(
    product_id: List[str] = Query(..., description="Product ids to remove"),
    user: User = Depends(require_permission("order:delete")),
    target_user: str | None = Depends(get_target_user),
    svc: OrderService = Depends(get_order_service),
):
    return svc.delete_order(
        {"user_id": user.user_id, "is_admin": user.is_admin, "producttotal_id": product_id},
        target_user,
    )
