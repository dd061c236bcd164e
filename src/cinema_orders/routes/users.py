from fastapi import APIRouter, Depends

from cinema_orders.core.security import get_current_user
from cinema_orders.schemas.auth_schema import UserRead


router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
async def read_me(current_user=Depends(get_current_user)):
    return current_user
