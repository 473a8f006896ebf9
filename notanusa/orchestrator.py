"""
Application Wiring for NotaNusa

Builds the session context and the page controllers.

DESIGN DECISION: Identity provider and record storage share one
Supabase client, so the rows a page sees are always those of the
signed-in user. When Supabase is not configured the app still runs in
demo mode on the in-memory store; nothing is persisted there.
"""

from datetime import date
from typing import Callable, Optional

import structlog

from notanusa.audit import AuditLogger
from notanusa.pages import (
    AnalyticsController,
    CategoriesController,
    DashboardController,
    DebtsController,
    PageController,
    ProfileController,
    ReportsController,
    TransactionsController,
)
from notanusa.services.auth import (
    IdentityProviderInterface,
    InMemoryIdentityProvider,
    SupabaseIdentityProvider,
)
from notanusa.services.storage import (
    InMemoryRecordStorage,
    RecordStorageInterface,
    SupabaseClient,
    SupabaseRecordStorage,
)
from notanusa.session import SessionContext
from notanusa.validation import FormValidator


logger = structlog.get_logger(__name__)


PAGE_CONTROLLERS: dict[str, type[PageController]] = {
    "dashboard": DashboardController,
    "transactions": TransactionsController,
    "categories": CategoriesController,
    "debts": DebtsController,
    "reports": ReportsController,
    "analytics": AnalyticsController,
    "profile": ProfileController,
}


def create_demo_backend() -> tuple[IdentityProviderInterface, RecordStorageInterface]:
    """In-memory identity provider and a store scoped to it."""
    provider = InMemoryIdentityProvider()
    storage = InMemoryRecordStorage(identity=lambda: provider.current_user_id)
    return provider, storage


def create_app_components(
    use_storage: bool = True,
) -> tuple[SessionContext, bool]:
    """
    Factory function to create the session context.

    Args:
        use_storage: Whether to connect to Supabase.
                     Set to False for testing without storage.

    Returns:
        (session, demo_mode)
    """
    audit_logger = AuditLogger()
    validator = FormValidator()

    if use_storage:
        try:
            client = SupabaseClient()
            client.connect()
            session = SessionContext(
                provider=SupabaseIdentityProvider(client),
                storage=SupabaseRecordStorage(client),
                audit_logger=audit_logger,
                validator=validator,
            )
            return session, False
        except Exception as e:
            # Storage not configured - continue in demo mode
            logger.warning("storage_not_configured", error=str(e))

    provider, storage = create_demo_backend()
    session = SessionContext(
        provider=provider,
        storage=storage,
        audit_logger=audit_logger,
        validator=validator,
    )
    return session, True


def create_page_controllers(
    session: SessionContext,
    today: Optional[Callable[[], date]] = None,
) -> dict[str, PageController]:
    """One controller per page, all sharing the session."""
    return {
        name: controller(session, today=today)
        for name, controller in PAGE_CONTROLLERS.items()
    }
