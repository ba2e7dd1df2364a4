from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from ..models.config_models import AccessConfig

"""Access policy: who may operate the catalog tool."""

__all__ = [
    "AccessDeniedError",
    "AccessPolicy",
    "AllowListPolicy",
    "policy_from_config",
    "require_authorized",
]

DENIED_MESSAGE = "Access denied. {identity} is not authorized to use this application."


class AccessDeniedError(Exception):
    pass


class AccessPolicy(Protocol):
    def is_authorized(self, identity: str | None) -> bool: ...


class AllowListPolicy:
    """Case-insensitive membership check against a fixed identity list."""

    def __init__(self, identities: Iterable[str]) -> None:
        self._allowed = frozenset(i.strip().lower() for i in identities if i and i.strip())

    def is_authorized(self, identity: str | None) -> bool:
        if not identity or not identity.strip():
            return False
        return identity.strip().lower() in self._allowed


def policy_from_config(access: AccessConfig) -> AllowListPolicy:
    return AllowListPolicy(access.allowed_identities)


def require_authorized(policy: AccessPolicy, identity: str | None) -> str:
    """Return the identity, or raise AccessDeniedError."""
    if not policy.is_authorized(identity):
        raise AccessDeniedError(DENIED_MESSAGE.format(identity=identity or "Anonymous user"))
    return identity  # type: ignore[return-value]
