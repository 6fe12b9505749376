from __future__ import annotations

from ..game.cards import parse_card_list
from ..game.models import Client
from ..game.session import SessionEngine
from .dispatcher import Command, Tier


def register_client(engine: SessionEngine, client: Client, name: str, spectator: str) -> None:
    name = name.strip()
    engine.hub.send(client, "RegisterClient", ClientID=client.id)
    engine.register_client(client, name, spectator == "1")


def swap_spectator(engine: SessionEngine, client: Client) -> None:
    engine.swap_spectator(client)


def register_admin(engine: SessionEngine, client: Client, password: str) -> None:
    if engine.register_admin(client, password):
        engine.hub.send(client, "RegisterAdmin")
    else:
        engine.hub.send_error(client, "RegisterAdmin", "Invalid admin password.")


def register_vote(engine: SessionEngine, client: Client, value: str) -> None:
    if engine.register_vote(client, value):
        engine.hub.send(client, "RegisterVote")
    else:
        engine.hub.send_error(
            client,
            "RegisterVote",
            "Cannot vote at this time. You may have already voted, or a round may not be in progress.",
        )


def undo_vote(engine: SessionEngine, client: Client) -> None:
    if engine.undo_vote(client):
        engine.hub.send(client, "UndoVote")
    else:
        engine.hub.send_error(client, "UndoVote", "Unable to undo vote at this time.")


def new_round(engine: SessionEngine, client: Client, title: str) -> None:
    if engine.begin_round(title.strip()):
        engine.hub.send(client, "NewRoundRequest")
    else:
        engine.hub.send_error(
            client,
            "NewRoundRequest",
            "Another round is already in progress, and must be finalized before starting a new round.",
        )


def take_majority(engine: SessionEngine, client: Client) -> None:
    if engine.rounds.active is None:
        engine.hub.send_error(client, "TakeMajority", "There is no active round for which to take the majority on.")
        return
    decision = engine.take_majority()
    if decision is None:
        engine.hub.send_error(
            client,
            "TakeMajority",
            "Cannot take a majority at this time. This usually means there is a tie.",
        )
        return
    engine.hub.send(client, "TakeMajority", Decision=decision)


def finalize_vote(engine: SessionEngine, client: Client, value: str) -> None:
    if engine.rounds.active is None:
        engine.hub.send_error(client, "FinalizeVote", "There is no active round for which to finalize the vote on.")
        return
    if not engine.decide_vote(value):
        engine.hub.send_error(
            client,
            "FinalizeVote",
            "The value you entered does not match one of the current game cards.",
        )
        return
    engine.hub.send(client, "FinalizeVote", Decision=value)


def restart_round(engine: SessionEngine, client: Client) -> None:
    if engine.restart_round():
        engine.hub.send(client, "RestartRound")
    else:
        engine.hub.send_error(client, "RestartRound", "There is no active round to restart.")


def flip_cards(engine: SessionEngine, client: Client) -> None:
    if engine.flip_cards():
        engine.hub.send(client, "FlipCards")
    else:
        engine.hub.send_error(
            client,
            "FlipCards",
            "There is no active round for which cards have not already been flipped.",
        )


def discard_active_round(engine: SessionEngine, client: Client) -> None:
    if engine.discard_active_round():
        engine.hub.send(client, "DiscardActiveRound")


def sort_cards(engine: SessionEngine, client: Client) -> None:
    if engine.sort_cards():
        engine.hub.send(client, "SortCards")
    else:
        engine.hub.send_error(client, "SortCards", "Unable to sort the cards at this time.")


def get_card_list(engine: SessionEngine, client: Client) -> None:
    engine.hub.send(client, "GetCardList", CardList=engine.cards.to_human_string())


def set_cards(engine: SessionEngine, client: Client, cards: str) -> None:
    if engine.rounds.active is not None:
        engine.hub.send_error(client, "SetCards", "You cannot modify card settings while a round is active.")
        return
    if not engine.set_cards(parse_card_list(cards)):
        engine.hub.send_error(
            client,
            "SetCards",
            "Not enough valid cards provided. You must provide at least two cards to add.",
        )
        return
    engine.hub.send(client, "SetCards")


def set_setting(engine: SessionEngine, client: Client, key: str, value: str) -> None:
    engine.update_setting(key, value)
    engine.hub.send(client, "SetSetting", Key=key, Value=value)


def build_commands() -> list[Command]:
    standard, admin = Tier.STANDARD, Tier.ADMIN
    return [
        Command("RegisterClient", register_client, standard, ("name", "spectator"), requires_registration=False),
        Command("SwapSpectator", swap_spectator, standard),
        Command("RegisterAdmin", register_admin, standard, ("password",)),
        Command("RegisterVote", register_vote, standard, ("value",)),
        Command("UndoVote", undo_vote, standard),
        Command("NewRoundRequest", new_round, admin, ("title",)),
        Command("TakeMajority", take_majority, admin),
        Command("FinalizeVote", finalize_vote, admin, ("value",)),
        Command("RestartRound", restart_round, admin),
        Command("FlipCards", flip_cards, admin),
        Command("DiscardActiveRound", discard_active_round, admin),
        Command("SortCards", sort_cards, admin),
        Command("GetCardList", get_card_list, admin),
        Command("SetCards", set_cards, admin, ("cards",)),
        Command("SetSetting", set_setting, admin, ("key", "value")),
    ]
