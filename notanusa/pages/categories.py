"""Categories Page: income and expense categories, by name."""

from typing import Optional
from uuid import UUID

from notanusa.models.forms import CategoryForm
from notanusa.models.records import (
    Category,
    CategoryCreate,
    CategoryPatch,
    RecordKind,
    TransactionType,
)
from notanusa.pages.base import PageController
from notanusa.services.storage import RecordOrdering


class CategoriesController(PageController):
    page_name = "categories"
    record_kind = RecordKind.CATEGORY
    record_noun = "category"

    def __init__(self, session, today=None):
        super().__init__(session, today)
        self.categories: list[Category] = []

    def _reset_data(self) -> None:
        self.categories = []

    async def _fetch(self) -> None:
        self.categories = await self.storage.list_records(
            RecordKind.CATEGORY,
            ordering=[RecordOrdering(column="type"), RecordOrdering(column="name")],
        )

    @property
    def income_categories(self) -> list[Category]:
        return [c for c in self.categories if c.type == TransactionType.INCOME]

    @property
    def expense_categories(self) -> list[Category]:
        return [c for c in self.categories if c.type == TransactionType.EXPENSE]

    def form_for(self, record_id: Optional[UUID] = None) -> CategoryForm:
        category = next((c for c in self.categories if c.id == record_id), None)
        if category is None:
            return CategoryForm()
        return CategoryForm(name=category.name, type=category.type)

    async def save(self, form: CategoryForm) -> bool:
        """
        Create or rename a category.

        Transactions keep pointing at an edited category, so renaming it
        (or switching its type) moves them in every report.
        """
        result = self.validator.validate_category(form)
        return await self._submit(
            result,
            create=lambda: CategoryCreate(user_id=self.user_id, name=form.name, type=form.type),
            patch=lambda: CategoryPatch(name=form.name, type=form.type),
            audit_details={"name": form.name, "type": form.type.value},
        )
