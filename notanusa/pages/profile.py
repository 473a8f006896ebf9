"""Profile Page: the owner's name and business name."""

from datetime import datetime, timezone
from typing import Optional

from notanusa.models.forms import ProfileForm
from notanusa.models.records import Profile, ProfileCreate, ProfilePatch, RecordKind
from notanusa.pages.base import PageController


class ProfileController(PageController):
    page_name = "profile"
    record_kind = RecordKind.PROFILE
    record_noun = "profile"

    def __init__(self, session, today=None):
        super().__init__(session, today)
        self.profile: Optional[Profile] = None

    def _reset_data(self) -> None:
        self.profile = None

    async def _fetch(self) -> None:
        self.profile = await self.storage.get_record(RecordKind.PROFILE, self.user_id)

    def form(self) -> ProfileForm:
        if self.profile is None:
            return ProfileForm()
        return ProfileForm(
            full_name=self.profile.full_name,
            business_name=self.profile.business_name,
        )

    async def save(self, form: ProfileForm) -> bool:
        """Update the profile, or create it if sign-up never did."""
        result = self.validator.validate_profile(form)
        if self.profile is None:
            self.open_create_form()
        else:
            self.open_edit_form(self.profile.id)

        saved = await self._submit(
            result,
            create=lambda: ProfileCreate(
                id=self.user_id,
                full_name=form.full_name,
                business_name=form.business_name or None,
            ),
            patch=lambda: ProfilePatch(
                full_name=form.full_name,
                business_name=form.business_name or None,
                updated_at=datetime.now(timezone.utc),
            ),
        )
        if saved:
            self.session.profile = self.profile
        return saved
