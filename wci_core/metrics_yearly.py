from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple, Union

import pandas as pd

from wci_core.records import Snapshot


logger = logging.getLogger(__name__)

DEFAULT_TRACKED_ACCOUNTS: Tuple[str, ...] = ("新智元", "机器之心", "量子位")
YEARLY_METRICS: Tuple[str, ...] = ("阅读总数", "头条文章阅读量", "转发总量")

SnapshotSource = Union[Snapshot, Callable[[], Snapshot], BaseException]


@dataclass(frozen=True)
class PeriodMetrics:
    month: str
    values: Dict[str, float]


@dataclass(frozen=True)
class AccountYearlyStats:
    account_name: str
    series: List[PeriodMetrics] = field(default_factory=list)
    total: Dict[str, float] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "accountName": self.account_name,
            "monthlyData": [{"month": p.month, **p.values} for p in self.series],
            "total": dict(self.total),
        }


@dataclass(frozen=True)
class SkippedPeriod:
    month: str
    reason: str


@dataclass(frozen=True)
class YearlyReport:
    accounts: List[AccountYearlyStats]
    months: List[str]
    skipped: List[SkippedPeriod] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "data": [a.to_payload() for a in self.accounts],
            "months": list(self.months),
            "skipped": [asdict(s) for s in self.skipped],
        }


def _resolve(source: SnapshotSource) -> Snapshot:
    if isinstance(source, BaseException):
        raise source
    if isinstance(source, Snapshot):
        return source
    return source()


def _metric_value(value: object) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    return out if math.isfinite(out) else 0.0


def aggregate_yearly(
    periods: Iterable[Tuple[str, SnapshotSource]],
    tracked_accounts: Sequence[str] = DEFAULT_TRACKED_ACCOUNTS,
    metrics: Sequence[str] = YEARLY_METRICS,
) -> YearlyReport:
    """Fold per-period snapshots into per-account series and totals.

    Periods are processed in the given order. A period whose snapshot cannot
    be produced is skipped for every account and recorded in `skipped`.
    """
    tracked_accounts = list(dict.fromkeys(tracked_accounts))
    series: Dict[str, List[PeriodMetrics]] = {name: [] for name in tracked_accounts}
    totals: Dict[str, Dict[str, float]] = {name: {m: 0.0 for m in metrics} for name in tracked_accounts}
    months: List[str] = []
    skipped: List[SkippedPeriod] = []

    for month, source in periods:
        try:
            snapshot = _resolve(source)
        except Exception as exc:
            logger.warning("skipping period %s: %s", month, exc)
            skipped.append(SkippedPeriod(month=month, reason=str(exc)))
            continue
        months.append(month)
        for record in snapshot.records:
            name = record.primary_name.strip()
            if name not in series:
                continue
            values = {m: _metric_value(record.metric(m)) for m in metrics}
            series[name].append(PeriodMetrics(month=month, values=values))
            for m in metrics:
                totals[name][m] += values[m]

    accounts = [
        AccountYearlyStats(account_name=name, series=series[name], total=totals[name])
        for name in tracked_accounts
    ]
    return YearlyReport(accounts=accounts, months=months, skipped=skipped)


def yearly_frame(report: YearlyReport) -> pd.DataFrame:
    """Long-form view: one row per (account, month, metric)."""
    rows: List[Dict[str, Any]] = []
    for account in report.accounts:
        for point in account.series:
            for metric, value in point.values.items():
                rows.append({"account": account.account_name, "month": point.month, "metric": metric, "value": value})
    if not rows:
        return pd.DataFrame(columns=["account", "month", "metric", "value"])
    return pd.DataFrame(rows)
