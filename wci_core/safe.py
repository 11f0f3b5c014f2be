"""Per-field error isolation for display payloads.

A field read either yields its value or a `FieldError` naming the field, so
one corrupted metric never takes down the rest of an account row.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from numbers import Number
from typing import Any, Callable, Dict, TypeVar, Union


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FieldError:
    label: str

    @property
    def message(self) -> str:
        return f"{self.label}数据错误"

    def to_payload(self) -> Dict[str, str]:
        return {"error": self.message}


FieldValue = Union[T, FieldError]


def _is_bad_number(value: object) -> bool:
    if not isinstance(value, Number) or isinstance(value, bool):
        return False
    try:
        return not math.isfinite(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        # complex and friends
        return True


def safe_field(getter: Callable[[], T], label: str) -> FieldValue[T]:
    """Evaluate `getter`; failures and NaN/inf come back as FieldError(label)."""
    try:
        value = getter()
    except Exception:
        logger.debug("field %s raised", label, exc_info=True)
        return FieldError(label)
    if _is_bad_number(value):
        logger.debug("field %s produced a non-finite number: %r", label, value)
        return FieldError(label)
    return value


def is_field_error(value: object) -> bool:
    return isinstance(value, FieldError)


def to_payload(value: Any) -> Any:
    """JSON-friendly form: FieldError -> {'error': ...}, everything else as-is."""
    if isinstance(value, FieldError):
        return value.to_payload()
    return value
