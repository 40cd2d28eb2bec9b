"""
Main Orchestrator for SnapSpend

This module ties together all the components and defines the
end-to-end flows for:
1. Capture (voice / photo / text -> extract -> screen -> insert -> push)
2. Manual edits (add, edit, delete expenses; add and remove wallets)
3. Views (date filter -> ordered list -> summary)
4. Backup (connect -> bootstrap sync; manual sync; disconnect)
5. Insights (question -> answer from the latest records)

DESIGN DECISION: The orchestrator is the ONLY place where collaborator
failures are turned into user notices:
- An extraction failure posts PROCESSING_FAILED
- A capture with nothing usable posts NO_EXPENSES_DETECTED
- A sync failure posts SYNC_FAILED (inside the SyncEngine)
None of these touch local state.
"""

from datetime import date
from decimal import Decimal
from typing import Awaitable, Callable, Optional
from uuid import UUID

import structlog

from snapspend.agents import ExpenseExtractionAgent, ExtractionError
from snapspend.audit import AuditLogger, create_correlation_id
from snapspend.models.audit import AuditEventBuilder
from snapspend.models.expense import (
    CaptureSource,
    Expense,
    NewExpense,
    ParsedExpense,
)
from snapspend.models.preferences import (
    DateFilter,
    DateFilterType,
    Language,
    UserSettings,
)
from snapspend.models.results import SpendingSummary, SyncResult
from snapspend.models.wallet import Wallet
from snapspend.notifications import NoticeBoard, NoticeKind
from snapspend.queries import filter_expenses, summarize
from snapspend.services.storage import (
    JsonFileStorage,
    LocalStorageInterface,
    StorageError,
)
from snapspend.store import ExpenseStore, SettingsStore, WalletRegistry
from snapspend.sync import BootstrapSyncTrigger, RemoteSession, SyncEngine
from snapspend.sync.reconciler import sort_newest_first
from snapspend.validation import CandidateScreener


logger = structlog.get_logger(__name__)

LANGUAGE_NAMES = {
    Language.ENGLISH: "English",
    Language.SPANISH: "Spanish",
    Language.FRENCH: "French",
    Language.BENGALI: "Bengali",
    Language.HINDI: "Hindi",
}

Extraction = Callable[[], Awaitable[list[ParsedExpense]]]


class ExpenseTracker:
    """
    Application facade over the stores, views, capture and sync.

    Flow for a capture:
    1. Extract -> candidates from the Gemini agent
    2. Screen -> drop non-positive amounts, fill defaults
    3. Insert -> one write to the expenses slot
    4. Push -> append rows to the backup if connected (failures logged only)
    """

    def __init__(
        self,
        storage: LocalStorageInterface,
        agent: Optional[ExpenseExtractionAgent] = None,
        session: Optional[RemoteSession] = None,
        notices: Optional[NoticeBoard] = None,
        audit_logger: Optional[AuditLogger] = None,
        screener: Optional[CandidateScreener] = None,
        tolerance: Optional[Decimal] = None,
    ):
        self._audit_logger = audit_logger or AuditLogger()
        self._notices = notices or NoticeBoard()
        self._agent = agent or ExpenseExtractionAgent()
        self._screener = screener or CandidateScreener()

        self._wallets = WalletRegistry(storage, self._notices, self._audit_logger)
        self._settings = SettingsStore(storage, self._audit_logger)
        self._store = ExpenseStore(storage, self._wallets, self._audit_logger)

        self._session = session or RemoteSession()
        self._sync_engine = SyncEngine(
            self._store,
            self._wallets,
            self._session,
            notices=self._notices,
            audit_logger=self._audit_logger,
            tolerance=tolerance,
        )
        self._bootstrap = BootstrapSyncTrigger(self._sync_engine, self._store)

        self._filter = DateFilter(type=DateFilterType.THIS_MONTH)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def notices(self) -> NoticeBoard:
        return self._notices

    @property
    def wallets(self) -> WalletRegistry:
        return self._wallets

    @property
    def store(self) -> ExpenseStore:
        return self._store

    @property
    def settings(self) -> UserSettings:
        return self._settings.settings

    @property
    def session(self) -> RemoteSession:
        return self._session

    @property
    def sync_engine(self) -> SyncEngine:
        return self._sync_engine

    @property
    def date_filter(self) -> DateFilter:
        return self._filter

    def set_filter(self, date_filter: DateFilter) -> None:
        self._filter = date_filter

    def visible_expenses(self, today: Optional[date] = None) -> list[Expense]:
        """The current view, recomputed from the store on every call."""
        return filter_expenses(
            self._store.expenses,
            self._filter,
            self.settings.week_start_day,
            today=today,
        )

    def summary(self, today: Optional[date] = None) -> SpendingSummary:
        """Totals over the current view."""
        return summarize(
            self.visible_expenses(today),
            self.settings.spending_limit,
            self._wallets,
        )

    def _language(self) -> str:
        return LANGUAGE_NAMES.get(self.settings.language, "English")

    # -------------------------------------------------------------------------
    # Capture
    # -------------------------------------------------------------------------

    async def _capture(
        self,
        source: CaptureSource,
        extract: Extraction,
    ) -> list[Expense]:
        correlation_id = create_correlation_id()

        try:
            candidates = await extract()
        except ExtractionError as e:
            self._audit_logger.log(
                AuditEventBuilder.extraction_failed(source.value, str(e), correlation_id)
            )
            self._notices.post(NoticeKind.PROCESSING_FAILED)
            return []

        screening = self._screener.screen(candidates, source, self._wallets)
        self._audit_logger.log(
            AuditEventBuilder.extraction_completed(
                source.value,
                len(candidates),
                len(screening.accepted),
                correlation_id,
            )
        )

        if not screening.has_expenses:
            self._audit_logger.log(
                AuditEventBuilder.no_expenses_detected(
                    source.value,
                    len(candidates),
                    correlation_id,
                )
            )
            self._notices.post(NoticeKind.NO_EXPENSES_DETECTED)
            return []

        try:
            created = self._store.insert_many(
                screening.accepted,
                source=source,
                correlation_id=correlation_id,
            )
        except StorageError as e:
            self._log_storage_error(e, source, correlation_id)
            raise
        await self._push(created)
        return created

    async def capture_voice(self, audio: bytes, mime_type: str) -> list[Expense]:
        """Capture every expense mentioned in a voice note."""
        return await self._capture(
            CaptureSource.VOICE,
            lambda: self._agent.parse_audio(
                audio,
                mime_type,
                self.settings.currency,
                self._wallets.names(),
                self._language(),
            ),
        )

    async def capture_photo(self, image: bytes, mime_type: str) -> list[Expense]:
        """Capture expenses from a receipt photo."""
        return await self._capture(
            CaptureSource.PHOTO,
            lambda: self._agent.parse_image(
                image,
                mime_type,
                self.settings.currency,
                self._wallets.names(),
                self._language(),
            ),
        )

    async def capture_text(self, text: str) -> list[Expense]:
        """Capture expenses from a typed sentence."""
        return await self._capture(
            CaptureSource.TEXT,
            lambda: self._agent.parse_text(
                text,
                self.settings.currency,
                self._language(),
            ),
        )

    async def add_manual(self, item: NewExpense) -> Optional[Expense]:
        """
        Insert one hand-entered expense.

        Returns:
            The created record, or None if the amount was not positive
        """
        try:
            created = self._store.insert(item, source=CaptureSource.MANUAL)
        except StorageError as e:
            self._log_storage_error(e, CaptureSource.MANUAL)
            raise
        if created is not None:
            await self._push([created])
        return created

    def _log_storage_error(
        self,
        error: StorageError,
        source: CaptureSource,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        logger.error("expense_write_failed", error=str(error), source=source.value)
        self._audit_logger.log_error(
            type(error).__name__,
            str(error),
            details={"source": source.value},
            correlation_id=correlation_id,
        )

    async def _push(self, expenses: list[Expense]) -> int:
        if not expenses or not self._session.is_available:
            return 0
        return await self._sync_engine.push(expenses, self.settings.currency)

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    def edit(self, expense: Expense) -> bool:
        return self._store.update(expense)

    def delete(self, expense_id: str) -> bool:
        return self._store.remove(expense_id)

    def add_wallet(self, wallet: Wallet) -> Wallet:
        return self._wallets.add(wallet)

    def remove_wallet(self, wallet_id: str) -> bool:
        return self._wallets.remove(wallet_id)

    def update_settings(self, **fields) -> UserSettings:
        return self._settings.change(**fields)

    # -------------------------------------------------------------------------
    # Backup
    # -------------------------------------------------------------------------

    async def connect_remote(self) -> Optional[SyncResult]:
        """
        Open the remote session.

        Returns:
            The bootstrap sync's result if it ran, else None

        Raises:
            ConnectionError: If the remote cannot be reached
        """
        if not self._session.open():
            return None
        return await self._bootstrap.identity_acquired()

    def disconnect_remote(self) -> None:
        self._session.close()

    async def sync(self) -> SyncResult:
        """Run a user-requested reconciliation."""
        return await self._sync_engine.sync()

    # -------------------------------------------------------------------------
    # Insights
    # -------------------------------------------------------------------------

    async def ask(self, question: str) -> str:
        """Answer a question about the most recent expenses."""
        return await self._agent.ask(
            question,
            sort_newest_first(self._store.expenses),
            self.settings.currency,
            self._language(),
        )

    async def transcribe(self, audio: bytes, mime_type: str) -> str:
        """Transcribe a spoken question."""
        return await self._agent.transcribe_audio(audio, mime_type, self._language())


def create_app_components(
    storage: Optional[LocalStorageInterface] = None,
    notices: Optional[NoticeBoard] = None,
) -> ExpenseTracker:
    """
    Factory function to create the application.

    Args:
        storage: Local persistence. Defaults to JSON files in the
                 configured data directory.
        notices: Board receiving user-facing notices.

    Returns:
        A ready ExpenseTracker (remote backup not yet connected)
    """
    storage = storage or JsonFileStorage.from_settings()
    audit_logger = AuditLogger()

    logger.info("app_components_created", storage=type(storage).__name__)

    return ExpenseTracker(
        storage=storage,
        notices=notices,
        audit_logger=audit_logger,
    )
