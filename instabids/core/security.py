# instabids/core/security.py
# Verifies access tokens issued by the hosted auth provider.
# Tokens are never issued here; sign-in and sessions belong to the provider.
from typing import Optional

from fastapi import Depends, HTTPException, Query, status, WebSocketDisconnect
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from instabids.core.config import settings

# The token comes from the Authorization header; tokenUrl only feeds the docs UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


class CurrentUser(BaseModel):
    user_id: str
    role: Optional[str] = None
    email: Optional[str] = None


def verify_access_token(token: str) -> CurrentUser | None:
    """
    Decode the JWT and return the CurrentUser it describes, or None
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            # provider tokens carry an audience we don't pin
            options={"verify_aud": False},
        )
    except JWTError:
        return None

    user_id = payload.get("sub") or payload.get("user_id")
    if not user_id:
        return None

    role = payload.get("role")
    # user_metadata.role wins over the provider's generic "authenticated" role
    metadata = payload.get("user_metadata") or {}
    if isinstance(metadata, dict) and metadata.get("role"):
        role = metadata["role"]

    return CurrentUser(user_id=str(user_id), role=role, email=payload.get("email"))


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """
    FastAPI dependency: verifies the bearer token (REST API)
    """
    user = verify_access_token(token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_user_from_websocket_token(token: str = Query(...)) -> CurrentUser:
    """
    WebSocket variant: the token arrives as ?token=...
    """
    user = verify_access_token(token)
    if user is None:
        raise WebSocketDisconnect(
            code=status.WS_1008_POLICY_VIOLATION,
            reason="Could not validate credentials"
        )
    return user


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """
    FastAPI dependency: only tokens whose role is "admin" pass
    """
    if user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return user
