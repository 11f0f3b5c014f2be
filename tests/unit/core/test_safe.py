"""Unit tests for per-field error isolation."""

from __future__ import annotations

import pytest

from wci_core.safe import FieldError, is_field_error, safe_field, to_payload


def _boom() -> float:
    raise ValueError("corrupt cell")


def test_safe_field_returns_value_on_success() -> None:
    assert safe_field(lambda: 12.5, "总阅读数") == 12.5
    assert safe_field(lambda: "name", "账号名称") == "name"


@pytest.mark.parametrize("getter", [_boom, lambda: float("nan"), lambda: float("inf"), lambda: -float("inf"), lambda: 1 / 0])
def test_safe_field_tags_failures(getter) -> None:
    """Exceptions and non-finite numbers never cross the boundary."""
    result = safe_field(getter, "总阅读数")

    assert isinstance(result, FieldError)
    assert result.label == "总阅读数"
    assert to_payload(result) == {"error": "总阅读数数据错误"}


def test_to_payload_passes_plain_values() -> None:
    assert to_payload(3) == 3
    assert to_payload(None) is None
    assert is_field_error(FieldError("x")) is True
    assert is_field_error(0) is False
