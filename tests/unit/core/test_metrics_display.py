"""Unit tests for the display metric bundle and forward delta."""

from __future__ import annotations

import pytest

from wci_core.metrics_display import (
    DISPLAY_METRICS,
    compute_delta,
    compute_display_metrics,
    compute_display_table,
)
from wci_core.records import AccountRecord, Snapshot
from wci_core.safe import FieldError


def _record(primary: str, alternate: str = "", **metrics: float) -> AccountRecord:
    return AccountRecord(primary_name=primary, alternate_name=alternate, metrics=metrics)


def test_compute_delta_absent_without_previous() -> None:
    """No previous record means absent, not zero change."""
    assert compute_delta(_record("A", 转发总量=100), None) is None


def test_compute_delta_subtracts_and_can_be_negative() -> None:
    current = _record("A", 转发总量=80)

    assert compute_delta(current, _record("A", 转发总量=100)) == -20
    assert compute_delta(current, _record("A", 转发总量=30)) == 50
    assert compute_delta(current, _record("A")) == 80


def test_compute_delta_propagates_bad_reads() -> None:
    current = _record("A", 转发总量=float("nan"))

    result = compute_delta(current, _record("A", 转发总量=1))

    assert isinstance(result, FieldError)
    assert result.message == "总转发数增量数据错误"


def test_compute_delta_inf_minus_inf_is_error() -> None:
    result = compute_delta(_record("A", 转发总量=float("inf")), _record("A", 转发总量=float("inf")))

    assert isinstance(result, FieldError)


def test_display_metrics_has_fixed_labels_and_reads_increments_verbatim() -> None:
    account = _record("公众号A", "a", 文章总数=10, 文章总增量=-2, 阅读总数=5000, 阅读总数增量=300, 总排名=3, 总排名变化=1)

    bundle = compute_display_metrics(account)
    payload = bundle.to_payload()

    assert list(bundle.metrics) == [m.label for m in DISPLAY_METRICS]
    assert len(DISPLAY_METRICS) == 9
    assert payload["账号名称"] == "公众号A"
    assert payload["key"] == "a"
    assert payload["发文数"] == {"value": 10, "increment": -2}
    assert payload["总阅读数"] == {"value": 5000, "increment": 300}
    assert payload["WCI/排名"] == {"value": 3, "increment": 1}
    assert payload["总点赞数"] == {"value": 0, "increment": 0}
    assert payload["总转发数"] == {"value": 0, "increment": None}


def test_display_metrics_isolates_one_corrupt_field() -> None:
    """A NaN in one column only affects that column's cell."""
    account = _record("A", 阅读总数=float("nan"), 阅读总数增量=10, 文章总数=4)

    payload = compute_display_metrics(account).to_payload()

    assert payload["总阅读数"] == {"value": {"error": "总阅读数数据错误"}, "increment": 10}
    assert payload["发文数"]["value"] == 4


def test_display_metrics_increment_error_uses_increment_label() -> None:
    account = _record("A", 总排名变化=float("inf"))

    payload = compute_display_metrics(account).to_payload()

    assert payload["WCI/排名"]["increment"] == {"error": "WCI/排名变化数据错误"}


def test_display_metrics_name_falls_back() -> None:
    assert compute_display_metrics(_record("", "alt")).account_name == "alt"
    assert compute_display_metrics(_record("", "")).account_name == "-"


def test_display_table_matches_previous_period_by_key() -> None:
    current = Snapshot(
        "202502",
        (
            _record("A", "a", 转发总量=150),
            _record("B", "", 转发总量=40),
            _record("A again", "a", 转发总量=999),
        ),
    )
    previous = Snapshot("202501", (_record("Renamed", "a", 转发总量=100), _record("C", "", 转发总量=7)))

    rows = compute_display_table(current, previous)

    assert [r.key for r in rows] == ["a", "B"]
    assert rows[0].metrics["总转发数"].increment == 50
    assert rows[1].metrics["总转发数"].increment is None


def test_display_table_without_previous_snapshot() -> None:
    rows = compute_display_table(Snapshot("202501", (_record("A", 转发总量=3),)))

    assert rows[0].metrics["总转发数"].increment is None
    assert rows[0].metrics["总转发数"].value == pytest.approx(3)
