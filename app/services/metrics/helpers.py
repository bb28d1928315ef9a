"""Helpers used by metric bundle transforms."""

from collections.abc import Iterable, Mapping

Metrics = Mapping[str, float]


def get_metric(metrics: Metrics | None, key: str) -> float | None:
    """Metric value, or None when it is not tracked (distinct from zero)."""
    if not metrics:
        return None
    return metrics.get(key)


def sum_metrics(metrics: Metrics | None, keys: Iterable[str]) -> float | None:
    """Sum of the named metrics; None when there are no metrics at all."""
    if metrics is None:
        return None
    return sum(metrics.get(key) or 0 for key in keys)


def calculate_rating(
    metrics: Metrics | None,
    positive: str = "ThumbsUp",
    negative: str = "ThumbsDown",
    scale: int = 5,
) -> dict[str, float | int | None]:
    """Rating on a 0..scale range from positive/negative counts.

    >>> calculate_rating({"ThumbsUp": 3, "ThumbsDown": 1})
    {'rating': 3.75, 'rating_count': 4}
    """
    up = int(get_metric(metrics, positive) or 0)
    down = int(get_metric(metrics, negative) or 0)
    count = up + down
    if count == 0:
        return {"rating": None, "rating_count": None}
    return {"rating": round(up / count * scale, 2), "rating_count": count}
