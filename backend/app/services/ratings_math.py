from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional


def round_rating(value: Any) -> Optional[float]:
    """Round a mean score to one decimal, halves away from zero (4.25 -> 4.3)."""
    if value is None:
        return None
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def summarize_scores(avg_score: Any, count: int) -> dict[str, float | int | None]:
    """Profile-ready aggregate: rounded mean and the number of ratings behind it."""
    if count <= 0:
        return {"rating": None, "total_ratings": 0}
    return {"rating": round_rating(avg_score), "total_ratings": int(count)}
