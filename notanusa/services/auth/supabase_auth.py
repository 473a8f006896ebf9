"""
Supabase Auth Identity Provider

Uses the same client as SupabaseRecordStorage, so once a user signs in
every table request carries their access token and the row-level
policies see auth.uid() = user id.
"""

from typing import Any, Optional
from uuid import UUID

import structlog
from supabase import AuthError

from notanusa.services.auth.interface import (
    AuthenticatedUser,
    AuthenticationError,
    IdentityProviderInterface,
    SignUpResult,
)
from notanusa.services.storage.supabase_store import SupabaseClient


logger = structlog.get_logger(__name__)


def _to_authenticated_user(user) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=UUID(str(user.id)),
        email=user.email or "",
        metadata=dict(user.user_metadata or {}),
    )


class SupabaseIdentityProvider(IdentityProviderInterface):
    """Identity provider backed by Supabase Auth (email + password)."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()
        self._user_id: Optional[UUID] = None

    @property
    def current_user_id(self) -> Optional[UUID]:
        return self._user_id

    async def sign_in(self, email: str, password: str) -> AuthenticatedUser:
        try:
            response = self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as e:
            raise AuthenticationError(e.message or "Invalid email or password")
        except Exception as e:
            raise AuthenticationError(f"Could not reach the sign-in service: {e}")

        if response.user is None:
            raise AuthenticationError("Invalid email or password")

        user = _to_authenticated_user(response.user)
        self._user_id = user.id
        return user

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> SignUpResult:
        try:
            response = self._client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": metadata or {}},
                }
            )
        except AuthError as e:
            raise AuthenticationError(e.message or "Failed to sign up")
        except Exception as e:
            raise AuthenticationError(f"Could not reach the sign-up service: {e}")

        if response.user is None:
            raise AuthenticationError("Failed to sign up")

        user = _to_authenticated_user(response.user)
        session_active = response.session is not None
        if session_active:
            self._user_id = user.id
        else:
            logger.info("sign_up_pending_confirmation", email=email)

        return SignUpResult(user=user, session_active=session_active)

    async def sign_out(self) -> None:
        try:
            self._client.auth.sign_out()
        except AuthError as e:
            # The local session is dropped regardless
            logger.warning("sign_out_failed", error=str(e))
        finally:
            self._user_id = None
