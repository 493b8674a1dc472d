from datetime import timedelta

import jwt
import pytest

from core.domain.enums import UserRole
from core.domain.exceptions import Unauthorized
from core.domain.value_objects import UserIdentity
from core.infrastructure.security import TokenIdentityProvider
from core.infrastructure.security.token_identity_provider import parse_role
from core.settings.modules import AuthSettings


SECRET = "test-secret-with-enough-length-for-hs256"


@pytest.fixture
def provider():
    return TokenIdentityProvider(AuthSettings(access_token_secret=SECRET))


def test_issue_and_resolve(provider, customer):
    identity = provider.resolve(provider.issue_token(customer))

    assert identity == customer


def test_admin_role_survives(provider, admin):
    assert provider.resolve(provider.issue_token(admin)).is_admin


@pytest.mark.parametrize("token", [None, ""])
def test_missing_token(provider, token):
    with pytest.raises(Unauthorized):
        provider.resolve(token)


def test_expired_token(provider, customer):
    token = provider.issue_token(customer, expires_in=timedelta(seconds=-10))

    with pytest.raises(Unauthorized) as exc_info:
        provider.resolve(token)
    assert exc_info.value.message == "Срок действия токена истёк"


def test_wrong_signature(provider, customer):
    other = TokenIdentityProvider(AuthSettings(access_token_secret="another-secret-of-sufficient-length"))

    with pytest.raises(Unauthorized):
        provider.resolve(other.issue_token(customer))


def test_garbage_token(provider):
    with pytest.raises(Unauthorized):
        provider.resolve("not-a-jwt")


def test_token_without_subject(provider):
    token = jwt.encode({"role": "ADMIN"}, SECRET, algorithm="HS256")

    with pytest.raises(Unauthorized):
        provider.resolve(token)


@pytest.mark.parametrize("value,expected", [
    ("ADMIN", UserRole.ADMIN),
    ("admin", UserRole.ADMIN),
    ("USER", UserRole.USER),
    ("superuser", UserRole.USER),
    (None, UserRole.USER),
])
def test_parse_role(value, expected):
    assert parse_role(value) == expected


def test_telegram_id_is_optional(provider):
    identity = UserIdentity(user_id="u9", role=UserRole.USER, email="u9@example.com")

    resolved = provider.resolve(provider.issue_token(identity))

    assert resolved.telegram_id is None
