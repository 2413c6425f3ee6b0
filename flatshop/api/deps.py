# flatshop/api/deps.py
from pathlib import Path

from fastapi import Depends, HTTPException, Query

from flatshop.data.models.user import User
from flatshop.data.store import data_dir
from flatshop.services.cart_service import CartService
from flatshop.services.order_service import OrderService
from flatshop.services.product_service import ProductService
from flatshop.services.sequence_service import SequenceService
from flatshop.services.user_service import UserService


def get_data_dir() -> Path:
    return data_dir()


def get_sequence(directory: Path = Depends(get_data_dir)) -> SequenceService:
    return SequenceService(directory)


def get_user_service(
    directory: Path = Depends(get_data_dir),
    sequence: SequenceService = Depends(get_sequence),
) -> UserService:
    return UserService(directory, sequence)


def get_product_service(
    directory: Path = Depends(get_data_dir),
    sequence: SequenceService = Depends(get_sequence),
) -> ProductService:
    return ProductService(directory, sequence)


def get_cart_service(
    directory: Path = Depends(get_data_dir),
    sequence: SequenceService = Depends(get_sequence),
    products: ProductService = Depends(get_product_service),
) -> CartService:
    return CartService(directory, products, sequence)


def get_order_service(
    directory: Path = Depends(get_data_dir),
    sequence: SequenceService = Depends(get_sequence),
    carts: CartService = Depends(get_cart_service),
) -> OrderService:
    return OrderService(directory, carts, sequence)


def get_session_user(users: UserService = Depends(get_user_service)) -> User:
    user = users.session_user()
    if not user:
        raise HTTPException(status_code=401, detail="Permission denied: nobody is logged in")
    return user


def require_permission(permission: str):
    """Aborts the request before the service runs unless the session user holds ``permission``."""

    def dependency(
        user: User = Depends(get_session_user),
        users: UserService = Depends(get_user_service),
    ) -> User:
        if not users.has_permission(permission):
            raise HTTPException(
                status_code=403,
                detail=f"Permission denied: you do not have the {permission} permission",
            )
        return user

    return dependency


def get_target_user(
    target_user: str | None = Query(None, description="Act on behalf of this user (admin only)"),
    users: UserService = Depends(get_user_service),
) -> str | None:
    if target_user is None:
        return None
    return users.resolve_user_id(target_user)
