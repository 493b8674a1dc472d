"""
Bearer token identity provider.

Access tokens are HS256 JWTs issued by the account service with the claims
``sub``, ``role``, ``email`` and optionally ``telegram_id``.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from core.domain.enums import UserRole
from core.domain.exceptions import Unauthorized
from core.domain.value_objects import UserIdentity
from core.settings.modules.auth_settings import AuthSettings


logger = logging.getLogger(__name__)


def parse_role(value: Optional[str]) -> UserRole:
    """Case-insensitive role lookup; unknown roles get plain user rights."""
    if value:
        for role in UserRole:
            if role.value.lower() == str(value).lower():
                return role
    return UserRole.USER


class TokenIdentityProvider:

    def __init__(self, settings: AuthSettings):
        self._secret = settings.access_token_secret
        self._algorithm = settings.algorithm
        self._ttl = timedelta(minutes=settings.access_token_ttl_minutes)

    def resolve(self, token: Optional[str]) -> UserIdentity:
        """
        Verify ``token`` and return the caller.

        Raises:
            Unauthorized: token missing, malformed, badly signed or expired
        """
        if not token:
            raise Unauthorized("Требуется авторизация")

        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as e:
            raise Unauthorized("Срок действия токена истёк") from e
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected access token: {e}")
            raise Unauthorized("Недействительный токен") from e

        user_id = claims.get("sub")
        if not user_id:
            raise Unauthorized("Недействительный токен")

        telegram_id = claims.get("telegram_id")
        return UserIdentity(
            user_id=str(user_id),
            role=parse_role(claims.get("role")),
            email=claims.get("email", ""),
            telegram_id=int(telegram_id) if telegram_id not in (None, "") else None,
        )

    def issue_token(self, identity: UserIdentity, expires_in: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": identity.user_id,
            "role": identity.role.value,
            "email": identity.email,
            "iat": now,
            "exp": now + (expires_in if expires_in is not None else self._ttl),
        }
        if identity.telegram_id is not None:
            claims["telegram_id"] = identity.telegram_id
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)
