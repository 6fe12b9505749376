from __future__ import annotations

import logging
import threading
import time
from threading import RLock
from typing import Any, Callable, Iterable

from ..audit import AuditSink, NullAuditSink
from ..realtime import events
from ..realtime.broadcast import BroadcastHub, Transport
from .cards import DEFAULT_CARDS, CardSet
from .clients import ClientRegistry
from .models import Client, Round
from .rounds import RoundHistory
from .voting import majority


logger = logging.getLogger(__name__)

AUTO_SORT = "AutoSort"

ROUND_STOPPED_MESSAGE = (
    "There are no more non-spectator players, so the current round has been automatically discarded."
)


def _spawn_thread(fn: Callable[..., Any], *args: Any) -> None:
    threading.Thread(target=fn, args=args, daemon=True).start()


class SessionEngine:
    """One estimation session: who is connected, the rounds, and the cards.

    All mutation goes through ``lock``. Inbound commands hold it for their
    whole run, and so does the deferred auto-flip when it fires, so the
    session behaves as if events were applied one at a time.

    ``spawn`` and ``sleep`` run the auto-flip in the background; the server
    passes ``socketio.start_background_task`` and ``socketio.sleep`` so the
    timer cooperates with whichever async mode Socket.IO is using.
    """

    def __init__(
        self,
        admin_password: str,
        transport: Transport,
        *,
        name: str = "",
        cards: Iterable[str] = DEFAULT_CARDS,
        flip_delay: float = 1.0,
        is_open: Callable[[str], bool] | None = None,
        spawn: Callable[..., Any] = _spawn_thread,
        sleep: Callable[[float], Any] = time.sleep,
        audit: AuditSink | None = None,
    ) -> None:
        self.lock = RLock()
        self.name = name
        self.admin_password = admin_password
        self.flip_delay = flip_delay
        self.settings: dict[str, str] = {}

        self.cards = CardSet(cards)
        self.clients = ClientRegistry()
        self.audit = audit or NullAuditSink()
        self.rounds = RoundHistory(on_flip=self._auto_sort_on_flip, on_decide=self.audit.record)
        self.hub = BroadcastHub(self.clients, transport, is_open)

        self._spawn = spawn
        self._sleep = sleep
        self._pending_flip: tuple[Round, int] | None = None

    # ---- settings ----

    def update_setting(self, key: str, value: str) -> None:
        with self.lock:
            self.settings[key] = value

    def get_setting(self, key: str, default: str = "") -> str:
        with self.lock:
            return self.settings.get(key, default)

    # ---- state snapshots ----

    def game_state(self) -> dict:
        with self.lock:
            return {"CardSet": str(self.cards), "RoundData": self.rounds.to_public()}

    def client_list(self) -> list[dict]:
        with self.lock:
            return self.clients.to_public()

    def summary(self) -> dict:
        with self.lock:
            active = self.rounds.active
            return {
                "name": self.name,
                "clients": len(self.clients),
                "spectators": sum(1 for c in self.clients if c.is_spectator),
                "rounds": len(self.rounds.rounds),
                "activeRound": active.title if active is not None else None,
                "state": self.rounds.state(self.clients.players()),
            }

    def broadcast_game_state(self) -> None:
        self.hub.broadcast(None, events.GAME_STATE, {"Data": self.game_state()})

    def broadcast_client_list(self) -> None:
        self.hub.broadcast(None, events.CLIENT_LIST, {"Clients": self.client_list()})
        # Clients redraw the table from the game state, so it follows every roster change.
        self.broadcast_game_state()

    # ---- connection lifecycle ----

    def connect(self, sid: str) -> Client:
        with self.lock:
            return self.clients.connect(sid)

    def disconnect(self, client: Client) -> None:
        with self.lock:
            if self.clients.get(client.sid) is not client:
                return
            self.rounds.remove_votes_of(client)
            self.clients.disconnect(client)

            self._stop_round_without_players()
            self.check_completion()
            self.broadcast_client_list()

    def _stop_round_without_players(self) -> bool:
        if self.rounds.active is None or not self.clients.all_spectators():
            return False
        self.discard_active_round()
        self.hub.broadcast_error(None, events.ROUND_STOPPED, ROUND_STOPPED_MESSAGE)
        return True

    # ---- participants ----

    def register_client(self, client: Client, name: str, spectator: bool) -> None:
        with self.lock:
            self.clients.register(client, name, spectator)
            self.broadcast_client_list()

    def swap_spectator(self, client: Client) -> bool:
        with self.lock:
            is_spectator = self.clients.swap_spectator(client)
            self.hub.send(client, events.SPECTATOR_SWAP, IsSpectator=is_spectator)
            self.hub.broadcast(None, events.CLIENT_LIST, {"Clients": self.client_list()})
            if not self._stop_round_without_players():
                self.broadcast_game_state()
                self.check_completion()
            return is_spectator

    def register_admin(self, client: Client, password: str) -> bool:
        with self.lock:
            if password != self.admin_password:
                logger.warning("Client %s failed admin authentication", client.id)
                return False
            self.clients.promote_admin(client)
            logger.info("Client %s is now an admin", client.id)
            self.broadcast_client_list()
            return True

    def is_admin(self, client: Client) -> bool:
        with self.lock:
            return self.clients.is_admin(client)

    # ---- voting ----

    def register_vote(self, client: Client, value: str) -> bool:
        with self.lock:
            if not self.rounds.register_vote(client, value, self.cards):
                return False
            self.broadcast_game_state()
            self.check_completion()
            return True

    def undo_vote(self, client: Client) -> bool:
        with self.lock:
            # Spectators cannot vote, so only players count towards the lock.
            if not self.rounds.undo_vote(client, self.clients.players()):
                return False
            self.broadcast_game_state()
            return True

    def voting_complete(self) -> bool:
        with self.lock:
            r = self.rounds.active
            if r is None or r.flipped:
                return False
            players = self.clients.players()
            return bool(players) and all(r.vote_of(c) is not None for c in players)

    def check_completion(self) -> bool:
        """Lock undo and schedule the flip once every player has voted."""
        with self.lock:
            if not self.voting_complete():
                return False
            r = self.rounds.active
            if self._pending_flip == (r, r.generation):
                return True

            self.hub.broadcast(None, events.LOCK_UNDO)
            token = (r, r.generation)
            self._pending_flip = token
            self._spawn(self._flip_when_due, token)
            return True

    def _flip_when_due(self, token: tuple[Round, int]) -> None:
        self._sleep(self.flip_delay)
        with self.lock:
            if self._pending_flip is not token:
                return
            self._pending_flip = None

            r, generation = token
            if self.rounds.active is not r or r.generation != generation:
                return
            # Someone may have left or undone during the delay.
            if not self.voting_complete():
                return
            self.rounds.flip_cards()
            logger.info("Cards flipped automatically for %r", r.title)
            self.broadcast_game_state()

    def _cancel_pending_flip(self) -> None:
        self._pending_flip = None

    # ---- round control ----

    def begin_round(self, title: str) -> bool:
        with self.lock:
            if not self.rounds.begin_round(title):
                return False
            self.broadcast_game_state()
            return True

    def flip_cards(self) -> bool:
        with self.lock:
            if not self.rounds.flip_cards():
                return False
            self._cancel_pending_flip()
            self.broadcast_game_state()
            return True

    def _auto_sort_on_flip(self) -> None:
        if self.get_setting(AUTO_SORT, "0") == "1":
            self.rounds.sort_cards()

    def sort_cards(self) -> bool:
        with self.lock:
            if not self.rounds.sort_cards():
                return False
            self.broadcast_game_state()
            return True

    def take_majority(self) -> str | None:
        with self.lock:
            r = self.rounds.active
            if r is None:
                return None
            decision = majority(v.value for v in r.votes)
            if decision is None or not self.decide_vote(decision):
                return None
            return decision

    def decide_vote(self, value: str) -> bool:
        with self.lock:
            if not self.rounds.decide_vote(value, self.cards):
                return False
            self._cancel_pending_flip()
            self.broadcast_game_state()
            return True

    def restart_round(self) -> bool:
        with self.lock:
            if not self.rounds.restart():
                return False
            self._cancel_pending_flip()
            self.broadcast_game_state()
            return True

    def discard_active_round(self) -> bool:
        with self.lock:
            if not self.rounds.discard():
                return False
            self._cancel_pending_flip()
            self.broadcast_game_state()
            return True

    # ---- cards ----

    def set_cards(self, cards: list[str]) -> bool:
        with self.lock:
            if self.rounds.active is not None:
                return False
            if not self.cards.replace(cards):
                return False
            logger.info("Card set replaced: %s", self.cards)
            self.broadcast_game_state()
            return True
