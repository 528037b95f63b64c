"""Current-session echo."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/me")
async def get_me(current_user: AuthUser = Depends(get_current_user)):
    return {"userId": current_user.user_id}
