# flatshop/api/routers/products.py
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from flatshop.api.deps import get_product_service, require_permission
from flatshop.data.models.user import User
from flatshop.domain.schemas import ProductIn
from flatshop.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])
categories_router = APIRouter(prefix="/categories", tags=["products"])


@router.get("/")
def list_products(
    user: User = Depends(require_permission("product:view")),
    svc: ProductService = Depends(get_product_service),
):
    return svc.list_products(user.user_id, user.is_admin)


@router.get("/{product_id}")
def get_product(
    product_id: str,
    user: User = Depends(require_permission("product:view")),
    svc: ProductService = Depends(get_product_service),
):
    return svc.get_product(product_id, user.user_id, user.is_admin)


@router.post("/", status_code=201)
def create_product(
    payload: ProductIn,
    user: User = Depends(require_permission("product:create")),
    svc: ProductService = Depends(get_product_service),
):
    return svc.create_product(
        owner_id=user.user_id,
        name=payload.name,
        price=payload.price,
        inventory=payload.inventory,
        description=payload.description,
        category=payload.category,
    )


@router.patch("/{product_id}")
def update_product(
    product_id: str,
    fields: Dict[str, Any] = Body(...),
    user: User = Depends(require_permission("product:update")),
    svc: ProductService = Depends(get_product_service),
):
    return svc.update_product(product_id, fields, user.is_admin, user.user_id)


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    user: User = Depends(require_permission("product:delete")),
    svc: ProductService = Depends(get_product_service),
):
    return svc.delete_product(product_id, user.user_id, user.is_admin)


@categories_router.get("/")
def list_categories(
    user: User = Depends(require_permission("product:view")),
    svc: ProductService = Depends(get_product_service),
):
    return svc.list_categories()
