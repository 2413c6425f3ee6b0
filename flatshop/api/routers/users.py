from fastapi import APIRouter, Depends

from flatshop.api.deps import get_session_user, get_user_service
from flatshop.data.models.user import User
from flatshop.domain.errors import PermissionDenied
from flatshop.domain.schemas import LoginIn, UserCreate, UserRead
from flatshop.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserRead, status_code=201)
def register(payload: UserCreate, users: UserService = Depends(get_user_service)):
    return users.register(payload.username, payload.password, payload.permissions)


@router.post("/login", response_model=UserRead)
def login(payload: LoginIn, users: UserService = Depends(get_user_service)):
    return users.login(payload.username, payload.password)


@router.post("/logout", status_code=204)
def logout(users: UserService = Depends(get_user_service)):
    users.logout()


@router.get("/me", response_model=UserRead)
def me(users: UserService = Depends(get_user_service)) -> User:
    user = users.session_user()
    if not user:
        raise PermissionDenied("Nobody is logged in")
    return user


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: str,
    caller: User = Depends(get_session_user),
    users: UserService = Depends(get_user_service),
):
    if not caller.is_admin and caller.user_id != user_id:
        raise PermissionDenied("Only an admin can look up other users")
    return users.get_user(user_id)
