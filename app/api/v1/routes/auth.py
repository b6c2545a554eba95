# app/api/v1/routes/auth.py
from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from app.core.auth import User
from app.api.deps import get_optional_current_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/jwt/logout", status_code=status.HTTP_200_OK)
async def logout(
    response: Response,
    user: Optional[User] = Depends(get_optional_current_user),
):
    """
    Logout works with or without a valid token. JWTs are stateless, so this
    only clears the access token cookie if present.
    """
    response.delete_cookie(key="access_token")
    if user is not None:
        return {"detail": f"Successfully logged out {user.email}"}
    return {"detail": "Successfully logged out"}
