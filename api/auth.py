"""
Bearer token authentication dependencies.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.dependencies import get_container
from core.domain.exceptions import Forbidden
from core.domain.value_objects import UserIdentity


bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UserIdentity:
    token = credentials.credentials if credentials else None
    return get_container(request).identity_provider.resolve(token)


def require_admin(user: UserIdentity = Depends(get_current_user)) -> UserIdentity:
    if not user.is_admin:
        raise Forbidden("Доступ только для администраторов")
    return user
