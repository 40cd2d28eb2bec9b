"""Local record stores: expenses, wallets and settings."""

from snapspend.store.expenses import ExpenseStore
from snapspend.store.settings_store import SettingsStore
from snapspend.store.wallets import WalletRegistry

__all__ = [
    "ExpenseStore",
    "SettingsStore",
    "WalletRegistry",
]
