"""
Shared fixtures.

Every test runs against the in-memory identity provider and store;
no test touches the network.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import pytest
import pytest_asyncio

from notanusa.audit import AuditLogger
from notanusa.models.records import CategoryRef, Transaction, TransactionType
from notanusa.services.auth import InMemoryIdentityProvider
from notanusa.services.storage import InMemoryRecordStorage
from notanusa.session import SessionContext
from notanusa.validation import FormValidator


TODAY = date(2024, 5, 15)


def make_transaction(
    type: TransactionType,
    amount: str,
    on: str,
    category: Optional[str] = None,
    category_type: Optional[TransactionType] = None,
    user_id: Optional[UUID] = None,
) -> Transaction:
    """A transaction as read back from storage (category joined)."""
    return Transaction(
        id=uuid4(),
        user_id=user_id or uuid4(),
        type=type,
        amount=Decimal(amount),
        transaction_date=date.fromisoformat(on),
        categories=(
            CategoryRef(name=category, type=category_type or type) if category else None
        ),
    )


@pytest.fixture
def provider() -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider()


@pytest.fixture
def storage(provider) -> InMemoryRecordStorage:
    return InMemoryRecordStorage(identity=lambda: provider.current_user_id)


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def session(provider, storage, audit_logger) -> SessionContext:
    return SessionContext(
        provider=provider,
        storage=storage,
        audit_logger=audit_logger,
        validator=FormValidator(min_password_length=6),
    )


@pytest_asyncio.fixture
async def signed_in(session) -> SessionContext:
    """A session for a freshly registered owner."""
    assert await session.sign_up("sari@warung.id", "rahasia123", "Sari", "Warung Sari")
    return session
