"""Identity provider services."""

from notanusa.services.auth.interface import (
    AuthenticatedUser,
    AuthenticationError,
    IdentityProviderInterface,
    SignUpResult,
)
from notanusa.services.auth.memory import InMemoryIdentityProvider
from notanusa.services.auth.supabase_auth import SupabaseIdentityProvider

__all__ = [
    "AuthenticatedUser",
    "AuthenticationError",
    "IdentityProviderInterface",
    "InMemoryIdentityProvider",
    "SignUpResult",
    "SupabaseIdentityProvider",
]
