"""
SnapSpend - Source Package

Local-first expense tracking core: a durable record store, date-windowed
views over it, and reconciliation against a Google Sheets backup.

DESIGN PRINCIPLES:
1. The Expense Store is the only writer of the canonical collection
2. Every mutation is persisted before it is visible
3. Views are derived, never stored
4. Remote data is merged, never trusted blindly
5. Collaborator failures never corrupt local state
"""

__version__ = "1.0.0"
__author__ = "SnapSpend Team"
