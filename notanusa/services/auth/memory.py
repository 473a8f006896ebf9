"""
In-Memory Identity Provider

Accounts live in a dictionary. Used by tests and the offline demo.
"""

import hashlib
from typing import Any, Optional
from uuid import UUID, uuid4

from notanusa.services.auth.interface import (
    AuthenticatedUser,
    AuthenticationError,
    IdentityProviderInterface,
    SignUpResult,
)


def _hash_password(email: str, password: str) -> str:
    return hashlib.sha256(f"{email}:{password}".encode("utf-8")).hexdigest()


class InMemoryIdentityProvider(IdentityProviderInterface):
    """
    Dictionary-backed accounts.

    Args:
        require_confirmation: Emulate projects where a new account must
                              confirm its email before signing in.
    """

    def __init__(self, require_confirmation: bool = False):
        self._accounts: dict[str, tuple[AuthenticatedUser, str]] = {}
        self._user_id: Optional[UUID] = None
        self._require_confirmation = require_confirmation

    @property
    def current_user_id(self) -> Optional[UUID]:
        return self._user_id

    async def sign_in(self, email: str, password: str) -> AuthenticatedUser:
        key = email.strip().lower()
        account = self._accounts.get(key)
        if account is None or account[1] != _hash_password(key, password):
            raise AuthenticationError("Invalid login credentials")

        user = account[0]
        self._user_id = user.id
        return user

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> SignUpResult:
        key = email.strip().lower()
        if key in self._accounts:
            raise AuthenticationError("User already registered")

        user = AuthenticatedUser(id=uuid4(), email=key, metadata=dict(metadata or {}))
        self._accounts[key] = (user, _hash_password(key, password))

        if self._require_confirmation:
            return SignUpResult(user=user, session_active=False)

        self._user_id = user.id
        return SignUpResult(user=user, session_active=True)

    async def sign_out(self) -> None:
        self._user_id = None
