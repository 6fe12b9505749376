from __future__ import annotations

import logging
from typing import Callable, Iterable

from .cards import CardSet
from .models import Client, Round, RoundState, Vote
from .voting import sort_votes


logger = logging.getLogger(__name__)


class RoundHistory:
    """Append-only list of rounds plus the transitions of the active one.

    At most one round is active (undecided) at any time. This is kept by
    refusing ``begin_round`` while one exists, not by the data layout.
    Every transition returns a bool: False means the rule for that
    transition rejected the request and nothing changed.
    """

    def __init__(
        self,
        on_flip: Callable[[], None] | None = None,
        on_decide: Callable[[Round], None] | None = None,
    ) -> None:
        self.rounds: list[Round] = []
        self._on_flip = on_flip
        self._on_decide = on_decide

    @property
    def active(self) -> Round | None:
        for r in self.rounds:
            if r.active:
                return r
        return None

    def state(self, eligible: Iterable[Client]) -> RoundState | None:
        r = self.active
        if r is None:
            last = self.rounds[-1] if self.rounds else None
            return "decided" if last is not None else None
        if r.flipped:
            return "flipped"
        if not r.votes:
            return "open"
        voters = list(eligible)
        if voters and all(r.vote_of(c) is not None for c in voters):
            return "all_voted"
        return "voting"

    def begin_round(self, title: str) -> bool:
        if self.active is not None:
            return False
        self.rounds.append(Round(title=title))
        logger.info("Round opened: %r", title)
        return True

    def register_vote(self, client: Client, value: str, cards: CardSet) -> bool:
        r = self.active
        if r is None or r.flipped:
            return False
        if value not in cards:
            return False
        if client.is_spectator:
            return False
        if r.vote_of(client) is not None:
            return False

        r.votes.append(Vote(client_id=client.id, client_name=client.name, value=value))
        return True

    def undo_vote(self, client: Client, eligible: Iterable[Client]) -> bool:
        r = self.active
        if r is None or r.vote_of(client) is None:
            return False
        # Once everyone eligible has voted the pending flip owns the round.
        voters = list(eligible)
        if voters and all(r.vote_of(c) is not None for c in voters):
            return False
        r.votes = [v for v in r.votes if not v.matches(client)]
        return True

    def remove_votes_of(self, client: Client) -> bool:
        r = self.active
        if r is None:
            return False
        before = len(r.votes)
        r.votes = [v for v in r.votes if not v.matches(client)]
        return len(r.votes) != before

    def flip_cards(self) -> bool:
        r = self.active
        if r is None or r.flipped:
            return False
        r.flipped = True
        if self._on_flip is not None:
            self._on_flip()
        return True

    def sort_cards(self) -> bool:
        r = self.active
        if r is None or not r.flipped:
            return False
        sort_votes(r.votes)
        return True

    def decide_vote(self, value: str, cards: CardSet) -> bool:
        r = self.active
        if r is None or value not in cards:
            return False
        r.decision = value
        if self._on_decide is not None:
            self._on_decide(r)
        # Vote detail is not kept in the history once a round is decided.
        r.votes = []
        logger.info("Round decided: %r -> %s", r.title, value)
        return True

    def restart(self) -> bool:
        r = self.active
        if r is None:
            return False
        r.votes = []
        r.flipped = False
        r.decision = ""
        r.generation += 1
        return True

    def discard(self) -> bool:
        r = self.active
        if r is None:
            return False
        self.rounds.remove(r)
        logger.info("Round discarded: %r", r.title)
        return True

    def to_public(self) -> list[dict]:
        return [r.to_public() for r in self.rounds]
