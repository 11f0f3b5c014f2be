"""Dashboard exception hierarchy.

Ingestion failures are whole-period failures and carry one descriptive message.
Field-level problems never raise; see `wci_core.safe`.
"""

from __future__ import annotations


class DashboardError(RuntimeError):
    """Base error for the account dashboard."""


class SnapshotIngestError(DashboardError):
    """Raised when a period's workbook cannot be turned into a snapshot."""


class PeriodNotFoundError(DashboardError):
    """Raised when a period folder or its Excel file does not exist."""
