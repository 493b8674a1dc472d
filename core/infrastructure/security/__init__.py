from .token_identity_provider import TokenIdentityProvider, parse_role

__all__ = ["TokenIdentityProvider", "parse_role"]
