"""
Session Context

The signed-in identity and its profile, passed explicitly to every
page controller.

STATE MACHINE:
    ANONYMOUS --sign_in/sign_up--> AUTHENTICATING
    AUTHENTICATING --success--> AUTHENTICATED
    AUTHENTICATING --failure--> ANONYMOUS (error_message set)
    AUTHENTICATED --sign_out--> ANONYMOUS

DESIGN DECISION: The profile row is created right after sign-up when
the provider opens a session. When sign-up needs email confirmation
there is no session (and the row-level policy would reject the
insert), so the profile is created on the first sign-in instead, from
the metadata stored with the account.
"""

from enum import Enum
from typing import Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from notanusa.audit import AuditLogger
from notanusa.models.forms import SignInForm, SignUpForm
from notanusa.models.records import Profile, ProfileCreate, RecordKind
from notanusa.services.auth import (
    AuthenticatedUser,
    AuthenticationError,
    IdentityProviderInterface,
)
from notanusa.services.storage import RecordStorageInterface, StorageError
from notanusa.validation import FormValidator


logger = structlog.get_logger(__name__)


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class SessionContext:
    """
    Identity state for one user of the app.

    Args:
        provider: Identity service
        storage: Record storage scoped to the same identity
        audit_logger: Where session events go
        validator: Form validator for sign-in/sign-up
    """

    def __init__(
        self,
        provider: IdentityProviderInterface,
        storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[FormValidator] = None,
    ):
        self.provider = provider
        self.storage = storage
        self.audit_logger = audit_logger or AuditLogger()
        self.validator = validator or FormValidator()

        self.state = SessionState.ANONYMOUS
        self.user: Optional[AuthenticatedUser] = None
        self.profile: Optional[Profile] = None
        self.error_message: Optional[str] = None
        self.notice: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED

    @property
    def user_id(self) -> Optional[UUID]:
        return self.user.id if self.user else None

    @property
    def display_name(self) -> str:
        if self.profile:
            return self.profile.display_name
        return self.user.email if self.user else ""

    def _reset_messages(self) -> None:
        self.error_message = None
        self.notice = None

    async def sign_in(self, email: str, password: str) -> bool:
        """
        Authenticate and load the profile.

        Returns True when the session is authenticated.
        """
        self._reset_messages()
        form = SignInForm(email=email, password=password)
        result = self.validator.validate_sign_in(form)
        if result.has_errors:
            self.error_message = self.validator.get_user_friendly_summary(result)
            await self.audit_logger.log_validation_failed(result, None)
            return False

        self.state = SessionState.AUTHENTICATING
        try:
            user = await self.provider.sign_in(form.email, form.password)
        except AuthenticationError as e:
            self.state = SessionState.ANONYMOUS
            self.error_message = str(e) or "Failed to sign in"
            await self.audit_logger.log_authentication_failed(form.email, self.error_message)
            return False

        self.user = user
        self.state = SessionState.AUTHENTICATED
        await self.audit_logger.log_signed_in(user.id, user.email)

        await self.refresh_profile(create_missing=True)
        return True

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        business_name: Optional[str] = None,
    ) -> bool:
        """
        Register an account and create its profile.

        Returns True when the account was created, even if the provider
        wants the email confirmed first (then `notice` says so and the
        session stays anonymous).
        """
        self._reset_messages()
        form = SignUpForm(
            email=email,
            password=password,
            full_name=full_name,
            business_name=business_name or None,
        )
        result = self.validator.validate_sign_up(form)
        if result.has_errors:
            self.error_message = self.validator.get_user_friendly_summary(result)
            await self.audit_logger.log_validation_failed(result, None)
            return False

        metadata = {"full_name": form.full_name}
        if form.business_name:
            metadata["business_name"] = form.business_name

        self.state = SessionState.AUTHENTICATING
        try:
            signed_up = await self.provider.sign_up(form.email, form.password, metadata)
        except AuthenticationError as e:
            self.state = SessionState.ANONYMOUS
            self.error_message = str(e) or "Failed to sign up"
            await self.audit_logger.log_authentication_failed(form.email, self.error_message)
            return False

        await self.audit_logger.log_signed_up(signed_up.user.id, signed_up.user.email)

        if not signed_up.session_active:
            self.state = SessionState.ANONYMOUS
            self.notice = "Check your email to confirm your account, then sign in"
            return True

        self.user = signed_up.user
        self.state = SessionState.AUTHENTICATED
        await self.refresh_profile(create_missing=True)
        return True

    async def sign_out(self) -> None:
        user_id = self.user_id
        try:
            await self.provider.sign_out()
        finally:
            self.state = SessionState.ANONYMOUS
            self.user = None
            self.profile = None
            self._reset_messages()
            await self.audit_logger.log_signed_out(user_id)

    async def refresh_profile(self, create_missing: bool = False) -> Optional[Profile]:
        """
        Re-read the profile row.

        A failure leaves the previous profile in place and sets
        error_message; the session stays authenticated.
        Account metadata the profile model rejects counts as a failure.
        """
        if self.user is None:
            return None

        try:
            profile = await self.storage.get_record(RecordKind.PROFILE, self.user.id)
            if profile is None and create_missing:
                profile = await self._create_profile()
        except (StorageError, ValidationError) as e:
            logger.warning("profile_load_failed", user_id=str(self.user.id), error=str(e))
            self.error_message = f"Could not load your profile: {e}"
            await self.audit_logger.log_load_failed("profile", str(e), self.user.id)
            return self.profile

        self.profile = profile
        return profile

    async def _create_profile(self) -> Profile:
        metadata = self.user.metadata
        full_name = (metadata.get("full_name") or "").strip() or self.user.email.split("@")[0]
        business_name = (metadata.get("business_name") or "").strip() or None

        profile = await self.storage.insert_record(
            RecordKind.PROFILE,
            ProfileCreate(
                id=self.user.id,
                full_name=full_name,
                business_name=business_name,
            ),
        )
        await self.audit_logger.log_record_created(
            RecordKind.PROFILE.value, profile.id, self.user.id
        )
        return profile
