"""
Wallet Registry

Ordered set of payment sources. The first wallet is the implicit default
for every expense that names no wallet, or names one we cannot resolve.

INVARIANT: The registry is never empty. Removing the last wallet is
refused with a user-facing notice.
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from snapspend.audit import AuditLogger
from snapspend.models.audit import AuditEventBuilder
from snapspend.models.wallet import DEFAULT_WALLETS, Wallet
from snapspend.notifications import NoticeBoard, NoticeKind
from snapspend.services.storage import LocalStorageInterface, Slot


logger = structlog.get_logger(__name__)


class WalletRegistry:
    """
    Owner of the wallets slot.

    Every mutation writes the full list before the in-memory list is
    replaced.
    """

    def __init__(
        self,
        storage: LocalStorageInterface,
        notices: Optional[NoticeBoard] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._notices = notices or NoticeBoard()
        self._audit_logger = audit_logger or AuditLogger()
        self._wallets: list[Wallet] = self._load()

    def _load(self) -> list[Wallet]:
        payload = self._storage.read(Slot.WALLETS)

        wallets = []
        if isinstance(payload, list):
            for item in payload:
                try:
                    wallets.append(Wallet.model_validate(item))
                except ValidationError as e:
                    logger.warning("wallet_record_skipped", error=str(e))

        if not wallets:
            # Ensure the default wallet exists if nothing usable is stored
            wallets = [wallet.model_copy() for wallet in DEFAULT_WALLETS]
            self._write(wallets)

        return wallets

    def _write(self, wallets: list[Wallet]) -> None:
        self._storage.write(
            Slot.WALLETS,
            [wallet.model_dump(mode="json") for wallet in wallets],
        )

    def _commit(self, wallets: list[Wallet]) -> None:
        self._write(wallets)
        self._wallets = wallets

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def wallets(self) -> list[Wallet]:
        return list(self._wallets)

    @property
    def default(self) -> Wallet:
        """The first registered wallet."""
        return self._wallets[0]

    def __len__(self) -> int:
        return len(self._wallets)

    def __iter__(self):
        return iter(list(self._wallets))

    def get(self, wallet_id: Optional[str]) -> Optional[Wallet]:
        for wallet in self._wallets:
            if wallet.id == wallet_id:
                return wallet
        return None

    def names(self) -> list[str]:
        return [wallet.name for wallet in self._wallets]

    def name_for(self, wallet_id: Optional[str]) -> str:
        """Display name for a wallet id, falling back to the default wallet."""
        wallet = self.get(wallet_id)
        return (wallet or self.default).name

    def resolve_by_name(self, raw_name: Optional[str]) -> Wallet:
        """
        Resolve an approximate wallet name (from voice, photo or a sheet row).

        Case-insensitive, bidirectional substring match: "Visa card" finds
        "Card", and "Visa" finds "Card Visa". Registry order breaks ties.
        Falls back to the default wallet when nothing matches.
        """
        if not raw_name or not raw_name.strip():
            return self.default

        candidate = raw_name.strip().lower()
        for wallet in self._wallets:
            name = wallet.name.lower()
            if name in candidate or candidate in name:
                return wallet

        return self.default

    def resolve_id(self, wallet_id: Optional[str]) -> str:
        """Return wallet_id if registered, else the default wallet's id."""
        if wallet_id and self.get(wallet_id) is not None:
            return wallet_id
        return self.default.id

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, wallet: Wallet) -> Wallet:
        """Append a wallet. Names need not be unique."""
        self._commit(self._wallets + [wallet])
        self._audit_logger.log(AuditEventBuilder.wallet_added(wallet.id, wallet.name))
        return wallet

    def remove(self, wallet_id: str) -> bool:
        """
        Remove a wallet.

        Returns:
            True if removed. False if it would empty the registry (a
            notice is posted) or if the id is unknown.
        """
        if all(wallet.id != wallet_id for wallet in self._wallets):
            return False

        if len(self._wallets) <= 1:
            self._notices.post(NoticeKind.CANNOT_REMOVE_LAST_WALLET)
            self._audit_logger.log(AuditEventBuilder.wallet_removal_rejected(wallet_id))
            return False

        remaining = [wallet for wallet in self._wallets if wallet.id != wallet_id]
        self._commit(remaining)
        self._audit_logger.log(AuditEventBuilder.wallet_removed(wallet_id, len(remaining)))
        return True
