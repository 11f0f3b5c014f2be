from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from wci_core.records import AccountRecord, Snapshot, account_key, dedupe_records
from wci_core.safe import FieldError, FieldValue, is_field_error, safe_field, to_payload


FORWARD_TOTAL_FIELD = "转发总量"
ACCOUNT_NAME_LABEL = "账号名称"


@dataclass(frozen=True)
class DisplayMetric:
    label: str
    value_field: str
    increment_field: Optional[str]
    increment_label: str


# Increments are read verbatim from the report's own increment columns, except
# the forward total which the report does not provide (increment_field=None).
DISPLAY_METRICS: List[DisplayMetric] = [
    DisplayMetric("发文数", "文章总数", "文章总增量", "发文数增量"),
    DisplayMetric("总阅读数", "阅读总数", "阅读总数增量", "总阅读数增量"),
    DisplayMetric("头条阅读", "头条文章阅读量", "头条文章阅读增量", "头条阅读增量"),
    DisplayMetric("10万+", "超10W文章数", "超10W文章数增量", "10万+增量"),
    DisplayMetric("平均阅读", "平均阅读数", "平均阅读数增量", "平均阅读增量"),
    DisplayMetric("总在看数", "推荐总数", "推荐总数增量", "总在看数增量"),
    DisplayMetric("总点赞数", "点赞总数", "点赞数增量", "总点赞数增量"),
    DisplayMetric("总转发数", FORWARD_TOTAL_FIELD, None, "总转发数增量"),
    DisplayMetric("WCI/排名", "总排名", "总排名变化", "WCI/排名变化"),
]


@dataclass(frozen=True)
class MetricPair:
    value: FieldValue[float]
    # None means "no previous period to compare with", which is not zero change.
    increment: Optional[FieldValue[float]]

    def to_payload(self) -> Dict[str, Any]:
        return {"value": to_payload(self.value), "increment": to_payload(self.increment)}


@dataclass(frozen=True)
class DisplayMetricBundle:
    key: str
    account_name: FieldValue[str]
    metrics: Dict[str, MetricPair] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"key": self.key, ACCOUNT_NAME_LABEL: to_payload(self.account_name)}
        for label, pair in self.metrics.items():
            payload[label] = pair.to_payload()
        return payload


def compute_delta(
    current: AccountRecord,
    previous: Optional[AccountRecord],
    metric: str = FORWARD_TOTAL_FIELD,
    label: str = "总转发数增量",
) -> Optional[FieldValue[float]]:
    """current - previous for one metric.

    None when there is no previous record; FieldError when either side cannot
    be read as a finite number.
    """
    if previous is None:
        return None
    cur = safe_field(lambda: current.metric(metric), label)
    prev = safe_field(lambda: previous.metric(metric), label)
    if is_field_error(cur) or is_field_error(prev):
        return FieldError(label)
    return safe_field(lambda: cur - prev, label)


def compute_display_metrics(account: AccountRecord, previous: Optional[AccountRecord] = None) -> DisplayMetricBundle:
    metrics: Dict[str, MetricPair] = {}
    for metric_def in DISPLAY_METRICS:
        value = safe_field(lambda f=metric_def.value_field: account.metric(f), metric_def.label)
        if metric_def.increment_field is None:
            increment = compute_delta(account, previous, metric_def.value_field, metric_def.increment_label)
        else:
            increment = safe_field(lambda f=metric_def.increment_field: account.metric(f), metric_def.increment_label)
        metrics[metric_def.label] = MetricPair(value=value, increment=increment)
    return DisplayMetricBundle(
        key=account_key(account),
        account_name=safe_field(lambda: account.primary_name or account.alternate_name or "-", ACCOUNT_NAME_LABEL),
        metrics=metrics,
    )


def compute_display_table(current: Snapshot, previous: Optional[Snapshot] = None) -> List[DisplayMetricBundle]:
    """One bundle per distinct account of `current`, matched against `previous`."""
    rows: List[DisplayMetricBundle] = []
    for record in dedupe_records(current.records):
        prev_record = previous.find(account_key(record)) if previous is not None else None
        rows.append(compute_display_metrics(record, prev_record))
    return rows
