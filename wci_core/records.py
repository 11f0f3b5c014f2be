from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from wci_core.errors import SnapshotIngestError
from wci_core.numeric import parse_number


logger = logging.getLogger(__name__)

PRIMARY_NAME_FIELD = "公众号"
ALTERNATE_NAME_FIELD = "帐号名"


@dataclass(frozen=True)
class AccountRecord:
    """One account row of a monthly report.

    The two identity columns are typed; every other header becomes a numeric
    metric, so new report columns flow through without code changes.
    """

    primary_name: str = ""
    alternate_name: str = ""
    metrics: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))

    def metric(self, name: str, default: float = 0) -> float:
        return self.metrics.get(name, default)

    def as_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {
            PRIMARY_NAME_FIELD: self.primary_name,
            ALTERNATE_NAME_FIELD: self.alternate_name,
        }
        out.update(self.metrics)
        return out


@dataclass(frozen=True)
class Snapshot:
    """All account records ingested from one period's report."""

    period: str
    records: Tuple[AccountRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def find(self, key: str) -> Optional[AccountRecord]:
        # Linear scan; a report holds tens of accounts. Swap for a key->record
        # dict if that stops being true.
        for record in self.records:
            if account_key(record) == key:
                return record
        return None


def account_key(record: AccountRecord) -> str:
    """Identity used for dedup and cross-period matching."""
    return record.alternate_name or record.primary_name or ""


def dedupe_records(records: Iterable[AccountRecord]) -> List[AccountRecord]:
    """Keep the first record per account key, preserving order."""
    seen = set()
    out: List[AccountRecord] = []
    for record in records:
        key = account_key(record)
        if key in seen:
            continue
        seen.add(key)
        out.append(record)
    return out


def _identity_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _header_names(header: Sequence[object]) -> List[Optional[str]]:
    names: List[Optional[str]] = []
    seen = set()
    for cell in header:
        name = _identity_text(cell)
        # Blank headers carry no field; for duplicates the first column wins.
        if not name or name in seen:
            names.append(None)
            continue
        seen.add(name)
        names.append(name)
    return names


def _build_from_names(names: Sequence[Optional[str]], row: Sequence[object]) -> Optional[AccountRecord]:
    identity = {PRIMARY_NAME_FIELD: "", ALTERNATE_NAME_FIELD: ""}
    metrics: Dict[str, float] = {}
    for idx, name in enumerate(names):
        if name is None:
            continue
        value = row[idx] if idx < len(row) else None
        if name in identity:
            identity[name] = _identity_text(value)
        else:
            metrics[name] = parse_number(value)
    if not identity[PRIMARY_NAME_FIELD] and not identity[ALTERNATE_NAME_FIELD]:
        return None
    return AccountRecord(
        primary_name=identity[PRIMARY_NAME_FIELD],
        alternate_name=identity[ALTERNATE_NAME_FIELD],
        metrics=metrics,
    )


def build_record(header: Sequence[object], row: Sequence[object]) -> Optional[AccountRecord]:
    """Map one data row onto the header; None when both identity cells are empty."""
    return _build_from_names(_header_names(header), row or ())


def build_snapshot(period: str, header: Sequence[object], rows: Iterable[Sequence[object]]) -> Snapshot:
    names = _header_names(header)
    records: List[AccountRecord] = []
    dropped = 0
    for row in rows:
        record = _build_from_names(names, row or ())
        if record is None:
            dropped += 1
            continue
        records.append(record)
    if dropped:
        logger.debug("period %s: dropped %d rows without an account name", period, dropped)
    return Snapshot(period=period, records=tuple(records))


def snapshot_from_grid(period: str, grid: Sequence[Sequence[object]]) -> Snapshot:
    """Build a snapshot from a decoded sheet (row 0 is the header).

    Raises SnapshotIngestError for a sheet that cannot hold any data; no
    partial snapshot is produced.
    """
    if grid is None or len(grid) < 2:
        raise SnapshotIngestError(f"{period}: Excel 文件格式不正确，至少需要表头和数据行")
    header = list(grid[0] or [])
    if not any(_identity_text(cell) for cell in header):
        raise SnapshotIngestError(f"{period}: Excel 文件缺少表头")
    return build_snapshot(period, header, grid[1:])
