from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from wci_core.errors import DashboardError, PeriodNotFoundError, SnapshotIngestError
from wci_core.metrics_yearly import SnapshotSource
from wci_core.records import Snapshot, snapshot_from_grid


logger = logging.getLogger(__name__)

PERIOD_PATTERN = re.compile(r"\d{6}")
EXCEL_SUFFIXES = (".xlsx", ".xls")


def _excel_files(folder: Path) -> List[Path]:
    return sorted(
        p for p in folder.iterdir()
        if p.is_file() and p.suffix.lower() in EXCEL_SUFFIXES and not p.name.startswith("~$")
    )


def list_periods(data_dir: Path) -> List[str]:
    """Period folders (YYYYMM) holding at least one Excel file, oldest first."""
    if not data_dir.is_dir():
        return []
    periods: List[str] = []
    for item in data_dir.iterdir():
        if not PERIOD_PATTERN.fullmatch(item.name):
            continue
        try:
            if item.is_dir() and _excel_files(item):
                periods.append(item.name)
        except OSError:
            logger.warning("cannot read period folder %s", item, exc_info=True)
    return sorted(periods)


def previous_period(periods: Sequence[str], period: str) -> Optional[str]:
    ordered = sorted(periods)
    if period not in ordered:
        return None
    idx = ordered.index(period)
    return ordered[idx - 1] if idx > 0 else None


def find_excel_file(data_dir: Path, period: str) -> Path:
    if not PERIOD_PATTERN.fullmatch(period or ""):
        raise PeriodNotFoundError(f"月份格式不正确: {period!r}")
    folder = data_dir / period
    if not folder.is_dir():
        raise PeriodNotFoundError(f"月份文件夹不存在: {period}")
    try:
        files = _excel_files(folder)
    except OSError as exc:
        raise SnapshotIngestError(f"无法读取文件夹: {period}") from exc
    if not files:
        names = ", ".join(sorted(p.name for p in folder.iterdir()))
        raise PeriodNotFoundError(f"未找到 Excel 文件，文件夹中的文件: {names}")
    return files[0]


def period_signature(data_dir: Path, periods: Sequence[str]) -> Tuple[Tuple[str, str, float], ...]:
    """(period, file name, mtime) per readable period; changes when a workbook is replaced."""
    sig: List[Tuple[str, str, float]] = []
    for period in periods:
        try:
            path = find_excel_file(data_dir, period)
            sig.append((period, path.name, path.stat().st_mtime))
        except (DashboardError, OSError):
            continue
    return tuple(sig)


def read_sheet_grid(path: Path) -> List[List[object]]:
    """Decode the first sheet into rows of raw cell values (empty cells -> '')."""
    try:
        sheets: Dict[object, pd.DataFrame] = pd.read_excel(path, sheet_name=None, header=None, dtype=object)
    except Exception as exc:
        raise SnapshotIngestError(f"读取 Excel 文件失败: {path.name}: {exc}") from exc
    if not sheets:
        raise SnapshotIngestError(f"Excel 文件中没有工作表: {path.name}")
    raw = next(iter(sheets.values()))
    raw = raw.astype(object).where(pd.notna(raw), "")
    return raw.values.tolist()


@lru_cache(maxsize=32)
def _load_snapshot_cached(period: str, path_str: str, mtime: float) -> Snapshot:
    grid = read_sheet_grid(Path(path_str))
    snapshot = snapshot_from_grid(period, grid)
    logger.info("loaded period %s: %d accounts from %s", period, len(snapshot), Path(path_str).name)
    return snapshot


def load_snapshot(data_dir: Path, period: str) -> Snapshot:
    path = find_excel_file(data_dir, period)
    return _load_snapshot_cached(period, str(path), path.stat().st_mtime)


def load_snapshots(
    data_dir: Path, periods: Sequence[str], max_workers: int = 4
) -> Tuple[Dict[str, Snapshot], Dict[str, Exception]]:
    """Load several periods concurrently.

    Both dicts are keyed by period and ordered like `periods`, never by
    completion order.
    """
    done: Dict[str, Snapshot] = {}
    failed: Dict[str, Exception] = {}
    if not periods:
        return done, failed
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        futures = {pool.submit(load_snapshot, data_dir, p): p for p in periods}
        for fut in as_completed(futures):
            period = futures[fut]
            try:
                done[period] = fut.result()
            except Exception as exc:
                failed[period] = exc
    ordered_done = {p: done[p] for p in periods if p in done}
    ordered_failed = {p: failed[p] for p in periods if p in failed}
    return ordered_done, ordered_failed


def load_period_sources(
    data_dir: Path, periods: Sequence[str], max_workers: int = 4
) -> List[Tuple[str, SnapshotSource]]:
    """(period, snapshot-or-error) pairs in `periods` order, for aggregate_yearly."""
    done, failed = load_snapshots(data_dir, periods, max_workers=max_workers)
    return [(p, done[p] if p in done else failed[p]) for p in periods if p in done or p in failed]
