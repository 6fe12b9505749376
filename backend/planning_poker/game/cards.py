from __future__ import annotations

from typing import Iterable


HALF = "½"

DEFAULT_CARDS = (HALF, "1", "2", "3", "5", "8", "13", "20", "30", "50", "100", "?")

MIN_CARDS = 2


def parse_card_list(raw: str) -> list[str]:
    """Split a comma separated card list, dropping blanks and duplicates."""
    cards: list[str] = []
    for part in (raw or "").split(","):
        card = part.strip()
        if card and card not in cards:
            cards.append(card)
    return cards


class CardSet:
    """The ordered set of tokens a vote may take in one session."""

    def __init__(self, cards: Iterable[str] = DEFAULT_CARDS) -> None:
        self._cards: tuple[str, ...] = ()
        if not self.replace(cards):
            raise ValueError(f"A card set needs at least {MIN_CARDS} distinct cards")

    @property
    def cards(self) -> tuple[str, ...]:
        return self._cards

    def replace(self, cards: Iterable[str]) -> bool:
        new_cards: list[str] = []
        for c in cards:
            c = (c or "").strip()
            if c and c not in new_cards:
                new_cards.append(c)
        if len(new_cards) < MIN_CARDS:
            return False
        self._cards = tuple(new_cards)
        return True

    def __contains__(self, value: object) -> bool:
        return value in self._cards

    def __len__(self) -> int:
        return len(self._cards)

    def __str__(self) -> str:
        return ",".join(self._cards)

    def to_human_string(self) -> str:
        return ", ".join(self._cards)
