# app/api/deps.py
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import jwt
import uuid

from app.core.database import get_async_session
from app.core.auth import User
from app.core.config import settings

# Security schemes
optional_security = HTTPBearer(auto_error=False)

TOKEN_AUDIENCE = ["fastapi-users:auth"]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials] = None) -> Optional[str]:
    """
    Find the access token in the Authorization header, the query string
    (``token`` / ``access_token``) or the ``access_token`` cookie.
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    if credentials and credentials.credentials:
        return credentials.credentials

    token = request.query_params.get("token") or request.query_params.get("access_token")
    if token:
        return token

    token = request.cookies.get("access_token")
    if token and token.startswith("Bearer "):
        token = token[7:]
    return token


async def get_user_from_token(token: str, db: AsyncSession) -> User:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=TOKEN_AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise _unauthorized("Invalid token: missing user ID")

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        raise _unauthorized("Invalid user ID format in token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()

    if not user:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("Inactive user")
    return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> User:
    """
    Resolve the current user from a token found in the Authorization header,
    query parameters or cookies.
    """
    token = extract_token(request, credentials)
    if not token:
        raise _unauthorized("Not authenticated")
    return await get_user_from_token(token, db)


async def get_optional_current_user(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> Optional[User]:
    """
    Like get_current_user but returns None when authentication fails, for
    endpoints such as logout that must work for anonymous callers.
    """
    try:
        return await get_current_user(request, db, credentials)
    except HTTPException:
        return None


async def require_pro_user(user: User = Depends(get_current_user)) -> User:
    """Gate Pro features behind an active subscription."""
    if not user.is_pro:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This feature requires an active Stackr Pro subscription",
        )
    return user


async def require_superuser(user: User = Depends(get_current_user)) -> User:
    if not user.is_superuser:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
