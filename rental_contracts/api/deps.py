"""Request-scoped dependencies: backend client and calling user"""

from typing import AsyncIterator, Optional

from fastapi import Depends, Header, HTTPException

from rental_contracts.models.user import User, UserRole
from rental_contracts.services.api_client import ContractAPIClient
from rental_contracts.utils.config import Settings, get_settings


def _bearer(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Authorization header must be 'Bearer <token>'")
    return token


async def get_client(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[ContractAPIClient]:
    """Backend client acting with the caller's own token."""
    client = ContractAPIClient(settings=settings, token=_bearer(authorization))
    try:
        yield client
    finally:
        await client.close()


def get_user(
    x_user_id: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> User:
    """The caller as identified by ``X-User-*`` headers; there is no server-side default."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    role = x_user_role or UserRole.BUYER.value
    try:
        role = UserRole(role)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown user role '{role}'")
    return User(_id=x_user_id, name=x_user_name or "", role=role)
