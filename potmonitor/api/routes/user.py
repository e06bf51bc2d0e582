from fastapi import APIRouter, Depends

from potmonitor.core.auth import AuthUser, get_current_user
from potmonitor.schemas.user import UserOut

router = APIRouter()


@router.get("", response_model=UserOut)
def whoami(current_user: AuthUser = Depends(get_current_user)) -> dict:
    return {"username": current_user.username, "email": current_user.email}
