"""
End-to-end tests for the ExpenseTracker facade with fake collaborators.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from snapspend.agents import ExtractionError
from snapspend.models import (
    DateFilter,
    DateFilterType,
    NewExpense,
    ParsedExpense,
    SyncStatus,
    Wallet,
)
from snapspend.notifications import NoticeKind
from snapspend.orchestrator import ExpenseTracker
from snapspend.models.audit import AuditEventType
from snapspend.services.storage import Slot, StorageError
from snapspend.sync import RemoteSession

from conftest import FailingStorage, FakeAgent, FakeRemoteStore, make_remote


@pytest.fixture
def agent():
    return FakeAgent()


@pytest.fixture
def tracker(storage, agent, session, notices, audit_logger):
    return ExpenseTracker(
        storage,
        agent=agent,
        session=session,
        notices=notices,
        audit_logger=audit_logger,
        tolerance=Decimal("0.01"),
    )


class TestCapture:
    """Tests for voice, photo and text capture."""

    def test_voice_capture_inserts_accepted(self, tracker, agent, storage):
        agent.candidates = [
            ParsedExpense(amount=Decimal("40"), category="Food", description="Lunch"),
            ParsedExpense(amount=Decimal("0")),
            ParsedExpense(amount=Decimal("20"), category="Transport", description="Rickshaw"),
        ]

        created = asyncio.run(tracker.capture_voice(b"audio", "audio/webm"))

        assert [expense.description for expense in created] == ["Lunch", "Rickshaw"]
        assert len(tracker.store) == 2
        assert storage.write_counts[Slot.EXPENSES] == 1
        name, args = agent.calls[0]
        assert name == "parse_audio"
        assert args[2] == "BDT"
        assert args[3] == ["Cash"]
        assert args[4] == "English"

    def test_nothing_detected_posts_notice(self, tracker, agent, notices, storage):
        agent.candidates = [ParsedExpense(amount=Decimal("0"))]

        created = asyncio.run(tracker.capture_photo(b"img", "image/jpeg"))

        assert created == []
        assert [notice.kind for notice in notices.pending] == [NoticeKind.NO_EXPENSES_DETECTED]
        assert storage.write_counts[Slot.EXPENSES] == 0

    def test_extraction_failure_posts_notice(self, tracker, agent, notices, storage):
        agent.error = ExtractionError("service unavailable")

        created = asyncio.run(tracker.capture_text("coffee 50"))

        assert created == []
        assert [notice.kind for notice in notices.pending] == [NoticeKind.PROCESSING_FAILED]
        assert tracker.store.is_empty
        assert storage.write_counts[Slot.EXPENSES] == 0

    def test_capture_pushes_when_connected(self, tracker, agent, session, remote):
        session.open()
        agent.candidates = [
            ParsedExpense(amount=Decimal("12.5"), category="Food", description="Coffee", date="2024-05-01"),
        ]

        asyncio.run(tracker.capture_text("coffee 12.5"))

        assert remote.appended == [["2024-05-01", "Food", "Coffee", "12.5", "BDT", "Cash"]]

    def test_push_failure_keeps_local_record(self, tracker, agent, session, remote, notices):
        session.open()
        remote.fail_append = True
        agent.candidates = [ParsedExpense(amount=Decimal("3"), description="Bus")]

        created = asyncio.run(tracker.capture_text("bus 3"))

        assert len(created) == 1
        assert len(tracker.store) == 1
        assert notices.pending == []

    def test_write_failure_is_audited_and_raised(self, agent, session, notices, audit_logger):
        storage = FailingStorage()
        tracker = ExpenseTracker(
            storage,
            agent=agent,
            session=session,
            notices=notices,
            audit_logger=audit_logger,
            tolerance=Decimal("0.01"),
        )
        agent.candidates = [ParsedExpense(amount=Decimal("3"), description="Bus")]
        storage.fail_writes = True

        with pytest.raises(StorageError):
            asyncio.run(tracker.capture_text("bus 3"))

        event = audit_logger.history[-1]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.error_message == "disk full"
        assert event.details == {"source": "text"}
        assert tracker.store.is_empty

    def test_manual_write_failure_is_audited(self, agent, session, audit_logger):
        storage = FailingStorage()
        tracker = ExpenseTracker(
            storage,
            agent=agent,
            session=session,
            audit_logger=audit_logger,
            tolerance=Decimal("0.01"),
        )
        storage.fail_writes = True

        with pytest.raises(StorageError):
            asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("9"))))

        assert audit_logger.history[-1].event_type == AuditEventType.SYSTEM_ERROR


class TestManualEntry:
    """Tests for manual entry and edits."""

    def test_add_manual(self, tracker):
        created = asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("9"), description="Tea")))
        assert created.description == "Tea"
        assert tracker.store.get(created.id) is not None

    def test_add_manual_rejects_non_positive(self, tracker, notices):
        assert asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("0")))) is None
        assert tracker.store.is_empty
        assert notices.pending == []

    def test_edit_and_delete(self, tracker):
        created = asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("9"), description="Tea")))
        assert tracker.edit(created.model_copy(update={"amount": Decimal("10")}))
        assert tracker.store.get(created.id).amount == Decimal("10")
        assert tracker.delete(created.id)
        assert not tracker.delete(created.id)

    def test_wallets(self, tracker, notices):
        wallet = tracker.add_wallet(Wallet(name="Card"))
        assert tracker.wallets.names() == ["Cash", "Card"]
        assert tracker.remove_wallet(wallet.id)
        assert not tracker.remove_wallet("default-cash")
        assert [notice.kind for notice in notices.pending] == [NoticeKind.CANNOT_REMOVE_LAST_WALLET]

    def test_update_settings(self, tracker, storage):
        tracker.update_settings(currency="USD", week_start_day="monday")
        assert tracker.settings.currency == "USD"
        assert storage.read(Slot.SETTINGS)["week_start_day"] == "monday"


class TestViews:
    """Tests for the filtered view and summary."""

    def test_default_filter_is_this_month(self, tracker):
        assert tracker.date_filter.type == DateFilterType.THIS_MONTH

    def test_view_recomputed_from_store(self, tracker):
        asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("5"), date="2024-05-14")))
        asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("7"), date="2024-05-15")))
        asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("9"), date="2024-04-01")))
        today = date(2024, 5, 15)

        assert [expense.amount for expense in tracker.visible_expenses(today)] == [
            Decimal("7"), Decimal("5"),
        ]

        tracker.set_filter(DateFilter(type=DateFilterType.TODAY))
        assert [expense.amount for expense in tracker.visible_expenses(today)] == [Decimal("7")]

    def test_summary_uses_spending_limit(self, tracker):
        tracker.update_settings(spending_limit=Decimal("20"))
        tracker.set_filter(DateFilter(type=DateFilterType.ALL))
        asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("5"), date="2024-05-14")))

        summary = tracker.summary()

        assert summary.total == Decimal("5")
        assert summary.limit_progress == 25.0
        assert summary.by_wallet[0].key == "Cash"


class TestBackup:
    """Tests for connecting, syncing and disconnecting the backup."""

    def test_connect_runs_bootstrap_sync_on_empty_store(self, tracker, remote):
        remote.rows = [make_remote("3", "2024-05-01", description="Bread", wallet_name="Cash")]

        result = asyncio.run(tracker.connect_remote())

        assert result.status == SyncStatus.COMPLETED
        assert result.added_count == 1
        assert tracker.store.expenses[0].description == "Bread"

    def test_connect_with_local_data_skips_bootstrap(self, tracker, remote):
        asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("5"))))
        remote.rows = [make_remote("3", "2024-05-01", description="Bread")]

        assert asyncio.run(tracker.connect_remote()) is None
        assert remote.read_calls == 0

    def test_manual_sync_requires_connection(self, tracker):
        assert asyncio.run(tracker.sync()).status == SyncStatus.NOT_CONNECTED

    def test_sync_failure_posts_notice(self, tracker, remote, notices):
        asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("5"))))
        asyncio.run(tracker.connect_remote())
        remote.fail_read = True

        result = asyncio.run(tracker.sync())

        assert result.status == SyncStatus.FAILED
        assert [notice.kind for notice in notices.pending] == [NoticeKind.SYNC_FAILED]
        assert len(tracker.store) == 1

    def test_disconnect(self, tracker, remote):
        asyncio.run(tracker.connect_remote())
        tracker.disconnect_remote()
        assert remote.closed
        assert not tracker.session.is_available

    def test_reload_after_restart(self, storage, agent, notices):
        first = ExpenseTracker(
            storage,
            agent=agent,
            session=RemoteSession(remote_factory=FakeRemoteStore),
            notices=notices,
            tolerance=Decimal("0.01"),
        )
        asyncio.run(first.add_manual(NewExpense(amount=Decimal("5"), description="Tea")))
        first.add_wallet(Wallet(name="Card"))

        second = ExpenseTracker(
            storage,
            agent=agent,
            session=RemoteSession(remote_factory=FakeRemoteStore),
            tolerance=Decimal("0.01"),
        )

        assert second.store.expenses[0].description == "Tea"
        assert second.wallets.names() == ["Cash", "Card"]


class TestInsights:
    def test_ask_passes_newest_first(self, tracker, agent):
        asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("5"), date="2024-05-01")))
        asyncio.run(tracker.add_manual(NewExpense(amount=Decimal("7"), date="2024-04-01")))

        answer = asyncio.run(tracker.ask("How much did I spend?"))

        assert answer == agent.answer
        name, args = agent.calls[-1]
        assert name == "ask"
        assert [expense.amount for expense in args[1]] == [Decimal("5"), Decimal("7")]

    def test_transcribe(self, tracker):
        assert asyncio.run(tracker.transcribe(b"a", "audio/webm")) == "how much on coffee"
