from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Sequence


STATS_WINDOW_DAYS = 30
STATS_SAMPLE_SIZE = 10


def day_bounds(on_date: date, tz: timezone = timezone.utc) -> tuple[datetime, datetime]:
    """[start, end) of a calendar day."""
    start = datetime.combine(on_date, time.min).replace(tzinfo=tz)
    return start, start + timedelta(days=1)


def window_start(now: datetime, days: int = STATS_WINDOW_DAYS) -> datetime:
    return now - timedelta(days=days)


def weight_progress(measurements: Sequence[dict[str, Any]]) -> float:
    """Newest weight minus oldest weight of a newest-first sample.

    Returns 0 when the sample has fewer than two entries or either end has
    no weight recorded.
    """
    if len(measurements) < 2:
        return 0.0
    newest = measurements[0].get("weight")
    oldest = measurements[-1].get("weight")
    if newest is None or oldest is None:
        return 0.0
    return round(float(newest) - float(oldest), 3)


def sum_macros(meals: Sequence[dict[str, Any]]) -> dict[str, float]:
    totals = {"calories": 0.0, "protein": 0.0, "fats": 0.0, "carbs": 0.0}
    for m in meals:
        for key in totals:
            value = m.get(key)
            if value is not None:
                totals[key] += float(value)
    return totals
