from __future__ import annotations

from typing import List, Sequence, Tuple

from .models import RankedBar

DEFAULT_MAX_BARS = 8


def top_n(series: Sequence[Tuple[str, int]], max_bars: int = DEFAULT_MAX_BARS) -> List[Tuple[str, int]]:
    """
    Highest ``max_bars`` entries by value, descending.

    ``sorted`` is stable, so equal values keep their input order. There is no
    secondary ordering key.
    """
    if max_bars <= 0:
        return []
    return sorted(series, key=lambda item: item[1] or 0, reverse=True)[:max_bars]


def ranked_bars(series: Sequence[Tuple[str, int]], max_bars: int = DEFAULT_MAX_BARS) -> List[RankedBar]:
    # Widths scale against the largest value in the truncated set.
    top = top_n(series, max_bars)
    max_value = max([1] + [value or 0 for _, value in top])
    return [
        RankedBar(label=label, value=value, width_percent=round(100 * (value or 0) / max_value, 2))
        for label, value in top
    ]
