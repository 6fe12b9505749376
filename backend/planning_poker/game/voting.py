from __future__ import annotations

import re
from collections import Counter
from typing import Iterable

from .cards import HALF
from .models import Vote


_NUMERIC = re.compile(r"-?\d+")


def majority(values: Iterable[str]) -> str | None:
    """Return the plurality value among numeric and half-point votes.

    None means there is no majority: nothing countable was cast, or two or
    more values tie for the highest count.
    """
    counted = Counter(v for v in values if v is not None and (_NUMERIC.fullmatch(v) or v == HALF))
    if not counted:
        return None

    ranked = counted.most_common()
    top_value, top_count = ranked[0]
    if len(ranked) > 1 and ranked[1][1] == top_count:
        return None
    return top_value


def vote_sort_key(value: str) -> tuple[int, int]:
    """Numbers first in numeric order, then other tokens by first character."""
    if value and _NUMERIC.fullmatch(value):
        return (0, int(value))
    return (1, ord(value[0]) if value else 0)


def sort_votes(votes: list[Vote]) -> None:
    # list.sort is stable, so equal keys keep their cast order.
    votes.sort(key=lambda v: vote_sort_key(v.value))
