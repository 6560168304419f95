from __future__ import annotations

import math
from typing import Any, Sequence


def normalize(entries: Sequence[Any], field: str) -> bool:
    """Rescale ``field`` on every entry so the values sum to 1.0.

    Returns False and leaves the entries untouched when the list is empty or
    the sum is not a positive finite number.
    """
    if not entries:
        return False
    total = sum(float(getattr(entry, field)) for entry in entries)
    if not math.isfinite(total) or total <= 0:
        return False
    for entry in entries:
        setattr(entry, field, float(getattr(entry, field)) / total)
    return True
