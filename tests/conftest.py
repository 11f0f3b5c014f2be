"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pandas as pd
import pytest


PROJECT_ROOT = Path(__file__).resolve().parent.parent


def pytest_sessionstart() -> None:
    """Add the project root to sys.path for test imports."""
    if str(PROJECT_ROOT) not in sys.path:
        sys.path.insert(0, str(PROJECT_ROOT))


REPORT_HEADER = ["公众号", "帐号名", "文章总数", "文章总增量", "阅读总数", "阅读总数增量", "头条文章阅读量", "转发总量"]


@pytest.fixture
def write_report(tmp_path: Path) -> Callable[..., Path]:
    """Write a one-sheet monthly report under tmp_path/data/<period>/."""

    def _write(
        period: str,
        rows: Sequence[Sequence[object]],
        header: Optional[List[str]] = None,
        filename: str = "report.xlsx",
    ) -> Path:
        folder = tmp_path / "data" / period
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / filename
        frame = pd.DataFrame([list(r) for r in rows], columns=header or REPORT_HEADER)
        frame.to_excel(path, index=False, sheet_name="Sheet1")
        return path

    return _write
