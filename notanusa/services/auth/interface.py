"""
Abstract Identity Provider Interface

Sign-in, sign-up and sign-out are delegated to an external identity
service. Token refresh, multiple sessions and password recovery are
the service's business, not ours.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AuthenticatedUser(BaseModel):
    """The identity returned by the provider."""

    id: UUID
    email: str
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="User metadata stored with the account (full_name, business_name)"
    )


class SignUpResult(BaseModel):
    """
    Outcome of a sign-up.

    session_active is False when the provider requires the user to
    confirm their email before the first sign-in.
    """

    user: AuthenticatedUser
    session_active: bool = True


class IdentityProviderInterface(ABC):
    """Abstract interface for the identity service."""

    @property
    @abstractmethod
    def current_user_id(self) -> Optional[UUID]:
        """Id of the signed-in user, or None when anonymous."""
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthenticatedUser:
        """
        Authenticate with email and password.

        Raises:
            AuthenticationError: Invalid credentials or service failure
        """
        pass

    @abstractmethod
    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> SignUpResult:
        """
        Register a new account.

        Raises:
            AuthenticationError: Email taken, weak password or service failure
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session."""
        pass


class AuthenticationError(Exception):
    """Sign-in/sign-up failed. The message is shown to the user."""
    pass
