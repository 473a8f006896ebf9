"""
Tests for the storage layer.

The in-memory store is exercised directly. The Supabase store runs
against a fake query builder that records the calls it receives.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from postgrest.exceptions import APIError

from notanusa.models.records import (
    CategoryCreate,
    DebtReceivableCreate,
    DebtReceivablePatch,
    DebtStatus,
    DebtType,
    ProfileCreate,
    ProfilePatch,
    RecordKind,
    TransactionCreate,
    TransactionPatch,
    TransactionType,
    UserRole,
)
from notanusa.services.storage import (
    AuthorizationError,
    ConnectionError,
    ConstraintViolationError,
    DuplicateError,
    InMemoryRecordStorage,
    NotFoundError,
    RecordFilter,
    RecordOrdering,
    StorageError,
    SupabaseRecordStorage,
)


class Identity:
    """Switchable stand-in for the signed-in user."""

    def __init__(self):
        self.user_id = None

    def __call__(self):
        return self.user_id


@pytest.fixture
def identity():
    return Identity()


@pytest.fixture
def store(identity):
    return InMemoryRecordStorage(identity=identity)


async def add_user(store, identity, name="Sari", role=UserRole.USER):
    identity.user_id = uuid4()
    await store.insert_record(
        RecordKind.PROFILE, ProfileCreate(id=identity.user_id, full_name=name, role=role)
    )
    return identity.user_id


def transaction(user_id, amount="100", on="2024-01-05", category_id=None, type=TransactionType.INCOME):
    return TransactionCreate(
        user_id=user_id,
        category_id=category_id,
        type=type,
        amount=Decimal(amount),
        transaction_date=date.fromisoformat(on),
    )


class TestInMemoryStorage:

    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_timestamps(self, store, identity):
        user_id = await add_user(store, identity)

        record = await store.insert_record(RecordKind.TRANSACTION, transaction(user_id))

        assert record.id is not None
        assert record.created_at is not None
        assert record.category is None

    @pytest.mark.asyncio
    async def test_transactions_come_back_with_category(self, store, identity):
        user_id = await add_user(store, identity)
        category = await store.insert_record(
            RecordKind.CATEGORY,
            CategoryCreate(user_id=user_id, name="Penjualan", type=TransactionType.INCOME),
        )
        await store.insert_record(
            RecordKind.TRANSACTION, transaction(user_id, category_id=category.id)
        )

        [record] = await store.list_records(RecordKind.TRANSACTION)

        assert record.category_name == "Penjualan"
        assert record.category.type == TransactionType.INCOME

    @pytest.mark.asyncio
    async def test_deleting_category_nulls_transaction_reference(self, store, identity):
        user_id = await add_user(store, identity)
        category = await store.insert_record(
            RecordKind.CATEGORY,
            CategoryCreate(user_id=user_id, name="Sewa", type=TransactionType.EXPENSE),
        )
        saved = await store.insert_record(
            RecordKind.TRANSACTION,
            transaction(user_id, category_id=category.id, type=TransactionType.EXPENSE),
        )

        await store.delete_record(RecordKind.CATEGORY, category.id)
        reloaded = await store.get_record(RecordKind.TRANSACTION, saved.id)

        assert reloaded.category_id is None
        assert reloaded.category is None

    @pytest.mark.asyncio
    async def test_rows_are_scoped_to_owner(self, store, identity):
        first = await add_user(store, identity, "Sari")
        await store.insert_record(RecordKind.TRANSACTION, transaction(first))
        second = await add_user(store, identity, "Budi")

        assert await store.list_records(RecordKind.TRANSACTION) == []
        with pytest.raises(AuthorizationError):
            await store.insert_record(RecordKind.TRANSACTION, transaction(first))

        identity.user_id = first
        assert len(await store.list_records(RecordKind.TRANSACTION)) == 1
        assert second != first

    @pytest.mark.asyncio
    async def test_admin_sees_every_row(self, store, identity):
        owner = await add_user(store, identity, "Sari")
        await store.insert_record(RecordKind.TRANSACTION, transaction(owner))
        await add_user(store, identity, "Admin", role=UserRole.ADMIN)

        assert len(await store.list_records(RecordKind.TRANSACTION)) == 1

    @pytest.mark.asyncio
    async def test_anonymous_sees_nothing_and_cannot_write(self, store, identity):
        owner = await add_user(store, identity)
        await store.insert_record(RecordKind.TRANSACTION, transaction(owner))
        identity.user_id = None

        assert await store.list_records(RecordKind.TRANSACTION) == []
        with pytest.raises(AuthorizationError):
            await store.insert_record(RecordKind.TRANSACTION, transaction(owner))

    @pytest.mark.asyncio
    async def test_filters_and_ordering(self, store, identity):
        user_id = await add_user(store, identity)
        for amount, on in (("1", "2024-01-31"), ("2", "2024-02-01"), ("3", "2024-02-15"), ("4", "2024-03-01")):
            await store.insert_record(RecordKind.TRANSACTION, transaction(user_id, amount, on))

        records = await store.list_records(
            RecordKind.TRANSACTION,
            filters=[
                RecordFilter.gte("transaction_date", date(2024, 2, 1)),
                RecordFilter.lte("transaction_date", date(2024, 2, 29)),
            ],
            ordering=[RecordOrdering(column="transaction_date", ascending=False)],
        )

        assert [r.amount for r in records] == [Decimal("3"), Decimal("2")]

    @pytest.mark.asyncio
    async def test_multi_column_ordering(self, store, identity):
        user_id = await add_user(store, identity)
        for name, type in (("Sewa", TransactionType.EXPENSE), ("Jasa", TransactionType.INCOME),
                           ("Air", TransactionType.EXPENSE), ("Penjualan", TransactionType.INCOME)):
            await store.insert_record(RecordKind.CATEGORY, CategoryCreate(user_id=user_id, name=name, type=type))

        records = await store.list_records(
            RecordKind.CATEGORY,
            ordering=[RecordOrdering(column="type"), RecordOrdering(column="name")],
        )

        assert [c.name for c in records] == ["Air", "Sewa", "Jasa", "Penjualan"]

    @pytest.mark.asyncio
    async def test_equality_filter_and_limit(self, store, identity):
        user_id = await add_user(store, identity)
        for _ in range(3):
            await store.insert_record(
                RecordKind.TRANSACTION, transaction(user_id, type=TransactionType.EXPENSE)
            )
        await store.insert_record(RecordKind.TRANSACTION, transaction(user_id))

        records = await store.list_records(
            RecordKind.TRANSACTION,
            filters=[RecordFilter.eq("type", TransactionType.EXPENSE)],
            limit=2,
        )

        assert len(records) == 2
        assert all(r.type == TransactionType.EXPENSE for r in records)

    @pytest.mark.asyncio
    async def test_update_applies_only_set_fields(self, store, identity):
        user_id = await add_user(store, identity)
        saved = await store.insert_record(RecordKind.TRANSACTION, transaction(user_id, "100"))

        updated = await store.update_record(
            RecordKind.TRANSACTION, saved.id, TransactionPatch(amount=Decimal("250"))
        )

        assert updated.amount == Decimal("250")
        assert updated.transaction_date == saved.transaction_date

    @pytest.mark.asyncio
    async def test_debt_status_written_with_amounts(self, store, identity):
        user_id = await add_user(store, identity)
        debt = await store.insert_record(
            RecordKind.DEBT_RECEIVABLE,
            DebtReceivableCreate(
                user_id=user_id,
                type=DebtType.RECEIVABLE,
                party_name="Bu Rina",
                amount=Decimal("1000"),
                due_date=date(2024, 6, 1),
            ),
        )
        assert debt.status == DebtStatus.PENDING

        paid = await store.update_record(
            RecordKind.DEBT_RECEIVABLE,
            debt.id,
            DebtReceivablePatch(amount=Decimal("1000"), paid_amount=Decimal("1000")),
        )
        assert paid.status == DebtStatus.PAID

    @pytest.mark.asyncio
    async def test_paying_in_full_alone_marks_debt_paid(self, store, identity):
        user_id = await add_user(store, identity)
        debt = await store.insert_record(
            RecordKind.DEBT_RECEIVABLE,
            DebtReceivableCreate(
                user_id=user_id,
                type=DebtType.DEBT,
                party_name="Toko Makmur",
                amount=Decimal("1000"),
                due_date=date(2024, 6, 1),
            ),
        )

        partly = await store.update_record(
            RecordKind.DEBT_RECEIVABLE, debt.id, DebtReceivablePatch(paid_amount=Decimal("400"))
        )
        assert partly.status == DebtStatus.PARTIAL

        paid = await store.update_record(
            RecordKind.DEBT_RECEIVABLE, debt.id, DebtReceivablePatch(paid_amount=Decimal("1000"))
        )
        assert paid.status == DebtStatus.PAID

        raised = await store.update_record(
            RecordKind.DEBT_RECEIVABLE, debt.id, DebtReceivablePatch(amount=Decimal("1500"))
        )
        assert raised.paid_amount == Decimal("1000")
        assert raised.status == DebtStatus.PARTIAL

    @pytest.mark.asyncio
    async def test_status_follows_amounts_not_the_patch(self, store, identity):
        user_id = await add_user(store, identity)
        debt = await store.insert_record(
            RecordKind.DEBT_RECEIVABLE,
            DebtReceivableCreate(
                user_id=user_id,
                type=DebtType.RECEIVABLE,
                party_name="Bu Rina",
                amount=Decimal("1000"),
                due_date=date(2024, 6, 1),
            ),
        )

        updated = await store.update_record(
            RecordKind.DEBT_RECEIVABLE, debt.id, DebtReceivablePatch(status=DebtStatus.PAID)
        )
        assert updated.status == DebtStatus.PENDING

        renamed = await store.update_record(
            RecordKind.DEBT_RECEIVABLE, debt.id, DebtReceivablePatch(party_name="Bu Rina Wati")
        )
        assert renamed.party_name == "Bu Rina Wati"
        assert renamed.status == DebtStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_category_violates_foreign_key(self, store, identity):
        user_id = await add_user(store, identity)
        with pytest.raises(ConstraintViolationError):
            await store.insert_record(
                RecordKind.TRANSACTION, transaction(user_id, category_id=uuid4())
            )

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, store, identity):
        user_id = await add_user(store, identity)
        with pytest.raises(DuplicateError):
            await store.insert_record(
                RecordKind.PROFILE, ProfileCreate(id=user_id, full_name="Again")
            )

    @pytest.mark.asyncio
    async def test_missing_records_raise_not_found(self, store, identity):
        await add_user(store, identity)
        with pytest.raises(NotFoundError):
            await store.update_record(RecordKind.TRANSACTION, uuid4(), TransactionPatch(amount=Decimal("1")))
        with pytest.raises(NotFoundError):
            await store.delete_record(RecordKind.TRANSACTION, uuid4())

    @pytest.mark.asyncio
    async def test_profiles_cannot_be_deleted(self, store, identity):
        user_id = await add_user(store, identity)
        with pytest.raises(NotFoundError):
            await store.delete_record(RecordKind.PROFILE, user_id)

        await store.update_record(RecordKind.PROFILE, user_id, ProfilePatch(business_name="Warung"))
        profile = await store.get_record(RecordKind.PROFILE, user_id)
        assert profile.business_name == "Warung"


# =============================================================================
# SUPABASE STORE
# =============================================================================

class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable stand-in for the PostgREST query builder."""

    def __init__(self, table, data=None, error=None):
        self.table = table
        self.calls = []
        self._data = data if data is not None else []
        self._error = error

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return method

    def execute(self):
        if self._error is not None:
            raise self._error
        return FakeResponse(self._data)


class FakeClient:
    def __init__(self, data=None, error=None):
        self._data = data
        self._error = error
        self.queries = []

    def table(self, kind):
        query = FakeQuery(kind.value, self._data, self._error)
        self.queries.append(query)
        return query


def transaction_row(**overrides):
    row = {
        "id": str(uuid4()),
        "user_id": str(uuid4()),
        "category_id": None,
        "type": "income",
        "amount": "1500000.00",
        "description": None,
        "transaction_date": "2024-01-05",
        "created_at": "2024-01-05T08:00:00+00:00",
        "updated_at": "2024-01-05T08:00:00+00:00",
        "categories": None,
    }
    row.update(overrides)
    return row


def debt_row(**overrides):
    row = {
        "id": str(uuid4()),
        "user_id": str(uuid4()),
        "type": "debt",
        "party_name": "Toko Makmur",
        "amount": "1000.00",
        "paid_amount": "0.00",
        "due_date": "2024-06-01",
        "status": "pending",
        "description": None,
        "created_at": "2024-05-01T08:00:00+00:00",
        "updated_at": "2024-05-01T08:00:00+00:00",
    }
    row.update(overrides)
    return row


class TestSupabaseStorage:

    @pytest.mark.asyncio
    async def test_list_builds_joined_query(self):
        client = FakeClient(data=[transaction_row(categories={"name": "Penjualan", "type": "income"})])
        store = SupabaseRecordStorage(client)

        [record] = await store.list_records(
            RecordKind.TRANSACTION,
            filters=[RecordFilter.gte("transaction_date", date(2024, 1, 1))],
            ordering=[RecordOrdering(column="transaction_date", ascending=False)],
        )

        calls = client.queries[0].calls
        assert calls[0] == ("select", ("*, categories(name, type)",), {})
        assert ("gte", ("transaction_date", "2024-01-01"), {}) in calls
        assert ("order", ("transaction_date",), {"desc": True}) in calls
        assert record.category_name == "Penjualan"
        assert record.amount == Decimal("1500000.00")

    @pytest.mark.asyncio
    async def test_patch_sends_only_set_fields(self):
        client = FakeClient(data=[transaction_row(amount="250.00")])
        store = SupabaseRecordStorage(client)

        record_id = uuid4()
        await store.update_record(
            RecordKind.TRANSACTION, record_id, TransactionPatch(amount=Decimal("250"), category_id=None)
        )

        name, args, _ = client.queries[0].calls[0]
        assert name == "update"
        assert args[0] == {"amount": "250", "category_id": None}
        assert ("eq", ("id", str(record_id)), {}) in client.queries[0].calls

    @pytest.mark.asyncio
    async def test_partial_payment_update_sends_derived_status(self):
        row = debt_row(amount="1000.00", paid_amount="0.00")
        client = FakeClient(data=[row])
        store = SupabaseRecordStorage(client)

        await store.update_record(
            RecordKind.DEBT_RECEIVABLE, UUID(row["id"]), DebtReceivablePatch(paid_amount=Decimal("1000"))
        )

        read, write = client.queries
        assert read.calls[0] == ("select", ("*",), {})
        name, args, _ = write.calls[0]
        assert name == "update"
        assert args[0] == {"amount": "1000.00", "paid_amount": "1000", "status": "paid"}

    @pytest.mark.asyncio
    async def test_debt_update_with_both_amounts_skips_the_read(self):
        client = FakeClient(data=[debt_row(amount="1000.00", paid_amount="400.00", status="partial")])
        store = SupabaseRecordStorage(client)

        await store.update_record(
            RecordKind.DEBT_RECEIVABLE,
            uuid4(),
            DebtReceivablePatch(amount=Decimal("1000"), paid_amount=Decimal("400")),
        )

        [write] = client.queries
        assert write.calls[0][0] == "update"
        assert write.calls[0][1][0]["status"] == "partial"

    @pytest.mark.asyncio
    async def test_partial_payment_of_missing_debt_is_not_found(self):
        store = SupabaseRecordStorage(FakeClient(data=[]))
        with pytest.raises(NotFoundError):
            await store.update_record(
                RecordKind.DEBT_RECEIVABLE, uuid4(), DebtReceivablePatch(paid_amount=Decimal("10"))
            )

    @pytest.mark.asyncio
    async def test_saved_transaction_is_read_back_with_category(self):
        client = FakeClient(data=[transaction_row(categories={"name": "Penjualan", "type": "income"})])
        store = SupabaseRecordStorage(client)

        saved = await store.insert_record(RecordKind.TRANSACTION, transaction(uuid4(), "1500000"))
        updated = await store.update_record(
            RecordKind.TRANSACTION, saved.id, TransactionPatch(amount=Decimal("1500000"))
        )

        insert, read_after_insert, update, read_after_update = client.queries
        assert insert.calls[0][0] == "insert"
        assert update.calls[0][0] == "update"
        for read in (read_after_insert, read_after_update):
            assert read.calls[0] == ("select", ("*, categories(name, type)",), {})
            assert ("eq", ("id", str(saved.id)), {}) in read.calls
        assert saved.category_name == "Penjualan"
        assert updated.category_name == "Penjualan"

    @pytest.mark.asyncio
    async def test_update_matching_no_rows_is_not_found(self):
        store = SupabaseRecordStorage(FakeClient(data=[]))
        with pytest.raises(NotFoundError):
            await store.update_record(
                RecordKind.TRANSACTION, uuid4(), TransactionPatch(amount=Decimal("1"))
            )

    @pytest.mark.asyncio
    async def test_delete_matching_no_rows_is_not_found(self):
        store = SupabaseRecordStorage(FakeClient(data=[]))
        with pytest.raises(NotFoundError):
            await store.delete_record(RecordKind.CATEGORY, uuid4())

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "code,expected",
        [
            ("23505", DuplicateError),
            ("23514", ConstraintViolationError),
            ("42501", AuthorizationError),
            ("PGRST116", NotFoundError),
            ("XX000", StorageError),
        ],
    )
    async def test_api_errors_are_translated(self, code, expected):
        error = APIError({"message": "boom", "code": code, "hint": None, "details": None})
        store = SupabaseRecordStorage(FakeClient(error=error))

        with pytest.raises(expected) as excinfo:
            await store.insert_record(
                RecordKind.CATEGORY,
                CategoryCreate(user_id=uuid4(), name="Sewa", type=TransactionType.EXPENSE),
            )

        assert "boom" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_transport_errors_become_connection_errors(self):
        store = SupabaseRecordStorage(FakeClient(error=OSError("network unreachable")))
        with pytest.raises(ConnectionError):
            await store.list_records(RecordKind.CATEGORY)
