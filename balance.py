"""Balance arithmetic and CSV rendering for lists of movements.

Everything here is a pure function. Amounts may arrive as numbers or as
numeric strings; anything that cannot be read as a number becomes NaN
instead of raising, and NaN is left to propagate through the sums so
callers can detect a bad input by checking the result.
"""
import math
import numbers
import re
from datetime import datetime, timezone
from typing import Iterable, List, Sequence, Union

from common.enum import MovementTypeEnum
from schemas import MovementSummary

CSV_HEADER = ["id", "concept", "amount", "type", "date", "user"]

_DECIMAL_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)
_INFINITY_RE = re.compile(r"[+-]?Infinity")


def to_number(value) -> Union[int, float]:
    """Read an amount as a number; NaN when it is not one"""
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, numbers.Number):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if _DECIMAL_RE.fullmatch(text) or _INFINITY_RE.fullmatch(text):
            return float(text.replace("Infinity", "inf"))
        return math.nan
    return math.nan


def signed_amount(movement: MovementSummary) -> Union[int, float]:
    amount = to_number(movement.amount)
    return amount if movement.type == MovementTypeEnum.INCOME else -amount


def compute_balance(movements: Iterable[MovementSummary]) -> Union[int, float]:
    balance = 0
    for movement in movements:
        balance += signed_amount(movement)
    return balance


def format_number(value) -> str:
    """Render a number the short way: 10.0 -> "10", nan -> "NaN" """
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing Z"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _quote(text) -> str:
    return '"' + (text or "").replace('"', '""') + '"'


def _csv_row(movement: MovementSummary) -> str:
    amount = movement.amount
    if not isinstance(amount, str):
        amount = format_number(amount)
    return ",".join([
        str(movement.id),
        _quote(movement.concept),
        amount,
        movement.type.value,
        movement.date or "",
        _quote(movement.user_name),
    ])


def generate_csv(movements: Sequence[MovementSummary]) -> str:
    """Serialize movements in the order given.

    Only ``concept`` and ``user`` are quoted; the other columns are written
    verbatim. There is no newline after the last row.
    """
    rows: List[str] = [_csv_row(m) for m in movements]
    return ",".join(CSV_HEADER) + "\n" + "\n".join(rows)
