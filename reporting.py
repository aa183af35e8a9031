import math
from typing import List, Optional, Sequence

from balance import format_number, format_timestamp, generate_csv, signed_amount, to_number
from models import Movement
from schemas import MovementSummary, ReportPoint, ReportResponse

CHART_WIDTH = 800
CHART_HEIGHT = 200
CHART_PADDING = 20

# Excel needs the BOM to pick UTF-8 for the download
CSV_BOM = "\ufeff"


def _finite_or_none(value) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return value


def to_summary(movement: Movement) -> MovementSummary:
    """Flatten a stored movement and its owner's name"""
    return MovementSummary(
        id=movement.id,
        amount=movement.amount,
        type=movement.type,
        concept=movement.concept,
        date=format_timestamp(movement.date) if movement.date else None,
        user_name=movement.user.name if movement.user else None,
    )


def build_report(movements: Sequence[MovementSummary], currency: str = "USD") -> ReportResponse:
    """Cumulative balance series in date order, laid out as chart points.

    ``movements`` is expected to come from the store already ascending by
    date; it is sorted again (stably) so the running total never depends on
    the caller. The returned movement list keeps the input order.
    """
    ordered = sorted(movements, key=lambda m: m.date or "")

    cumulative = 0
    series = []
    for movement in ordered:
        cumulative += signed_amount(movement)
        series.append((movement, cumulative))

    finite = [c for _, c in series if math.isfinite(c)]
    low = min(finite + [0])
    high = max(finite + [0])
    span = (high - low) or 1
    steps = (len(series) - 1) or 1

    points: List[ReportPoint] = []
    for i, (movement, running) in enumerate(series):
        x = CHART_PADDING + (i / steps) * (CHART_WIDTH - CHART_PADDING * 2)
        y = CHART_PADDING + (1 - (running - low) / span) * (CHART_HEIGHT - CHART_PADDING * 2)
        points.append(ReportPoint(
            id=movement.id,
            date=movement.date,
            amount=_finite_or_none(to_number(movement.amount)),
            cumulative=_finite_or_none(running),
            x=x,
            y=_finite_or_none(y),
        ))

    polyline = " ".join(
        f"{format_number(p.x)},{format_number(math.nan if p.y is None else p.y)}" for p in points
    )

    return ReportResponse(
        balance=_finite_or_none(cumulative),
        currency=currency,
        width=CHART_WIDTH,
        height=CHART_HEIGHT,
        polyline=polyline,
        points=points,
        movements=list(movements),
    )


def build_csv_download(movements: Sequence[MovementSummary]) -> str:
    return CSV_BOM + generate_csv(movements)
