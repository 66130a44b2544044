# barbershop/routers/users_routes.py

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from barbershop.deps import get_user_service
from barbershop.schemas import UserCreate, UserPublic
from barbershop.services import UserService

router = APIRouter(
    prefix="/users",
    tags=["users"],
)


@router.post("", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    service: UserService = Depends(get_user_service),
):
    created = service.create_user(user.first_name, user.last_name, user.phone_number)
    return UserPublic.from_domain(created)


@router.get("", response_model=List[UserPublic])
def list_users(service: UserService = Depends(get_user_service)):
    return [UserPublic.from_domain(u) for u in service.list_users()]


@router.get("/{user_id}", response_model=UserPublic)
def get_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
):
    return UserPublic.from_domain(service.get_user(user_id))
