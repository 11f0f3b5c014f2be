from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from wci_core.metrics_yearly import DEFAULT_TRACKED_ACCOUNTS


DEFAULT_DATA_DIR = Path.cwd() / "data"
DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class DashboardSettings:
    data_dir: Path = DEFAULT_DATA_DIR
    tracked_accounts: Tuple[str, ...] = field(default_factory=lambda: DEFAULT_TRACKED_ACCOUNTS)
    max_workers: int = DEFAULT_MAX_WORKERS


def _as_accounts(value: object) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    out = []
    for v in value:  # type: ignore[union-attr]
        if v is None:
            continue
        name = str(v).strip()
        if name and name not in out:
            out.append(name)
    return tuple(out)


def load_settings(raw: Optional[Mapping[str, object]] = None, *, environ: Optional[Mapping[str, str]] = None) -> DashboardSettings:
    """Build settings from `raw`, falling back to WCI_* environment variables."""
    raw = raw or {}
    env = os.environ if environ is None else environ

    data_dir = raw.get("data_dir") or env.get("WCI_DATA_DIR") or DEFAULT_DATA_DIR
    tracked_accounts = _as_accounts(raw.get("tracked_accounts") or env.get("WCI_TRACKED_ACCOUNTS"))
    if not tracked_accounts:
        tracked_accounts = DEFAULT_TRACKED_ACCOUNTS

    max_workers = raw.get("max_workers", env.get("WCI_MAX_WORKERS", DEFAULT_MAX_WORKERS))
    try:
        max_workers = int(max_workers)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        max_workers = DEFAULT_MAX_WORKERS
    max_workers = max(1, min(32, max_workers))

    return DashboardSettings(
        data_dir=Path(str(data_dir)).expanduser(),
        tracked_accounts=tracked_accounts,
        max_workers=max_workers,
    )
