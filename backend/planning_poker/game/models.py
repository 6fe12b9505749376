from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Literal


RoundState = Literal["open", "voting", "all_voted", "flipped", "decided"]


def new_client_id() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class Client:
    sid: str
    id: str = field(default_factory=new_client_id)
    name: str = ""
    is_spectator: bool = False
    is_admin: bool = False
    registered: bool = False

    def to_public(self) -> dict:
        return {
            "ID": self.id,
            "Name": self.name,
            "IsAdmin": self.is_admin,
            "IsSpectator": self.is_spectator,
        }


@dataclass(frozen=True)
class Vote:
    client_id: str
    client_name: str
    value: str

    def matches(self, client: Client) -> bool:
        # Identity is the (id, name) pair captured at cast time.
        return self.client_id == client.id and self.client_name == client.name

    def to_public(self) -> dict:
        return {
            "ClientID": self.client_id,
            "ClientName": self.client_name,
            "VoteValue": self.value,
        }


@dataclass(eq=False)
class Round:
    title: str
    votes: list[Vote] = field(default_factory=list)
    flipped: bool = False
    decision: str = ""
    # Bumped on restart so a pending auto-flip can tell it is stale.
    generation: int = 0

    @property
    def active(self) -> bool:
        return not self.decision

    def vote_of(self, client: Client) -> Vote | None:
        for v in self.votes:
            if v.matches(client):
                return v
        return None

    def to_public(self) -> dict:
        return {
            "Title": self.title,
            "Votes": [v.to_public() for v in self.votes],
            "Flipped": self.flipped,
            "Decision": self.decision,
        }
