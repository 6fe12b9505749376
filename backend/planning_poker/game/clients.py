from __future__ import annotations

import logging

from .models import Client


logger = logging.getLogger(__name__)


class ClientRegistry:
    """Connected participants, keyed by their transport session id."""

    def __init__(self) -> None:
        self._clients: dict[str, Client] = {}
        self._admins: set[str] = set()

    def __len__(self) -> int:
        return len(self._clients)

    def __iter__(self):
        return iter(list(self._clients.values()))

    def get(self, sid: str) -> Client | None:
        return self._clients.get(sid)

    def connect(self, sid: str) -> Client:
        client = self._clients.get(sid)
        if client is None:
            client = Client(sid=sid)
            self._clients[sid] = client
            logger.info("Client %s connected (sid=%s)", client.id, sid)
        return client

    def register(self, client: Client, name: str, spectator: bool) -> None:
        # Votes are matched by (id, name), so the name is fixed once set.
        if client.registered:
            if name != client.name:
                logger.warning("Client %s tried to rename %r to %r", client.id, client.name, name)
            name = client.name
        client.name = name
        client.is_spectator = spectator
        client.registered = True
        logger.info("Client %s registered as %r (spectator=%s)", client.id, name, spectator)

    def swap_spectator(self, client: Client) -> bool:
        client.is_spectator = not client.is_spectator
        return client.is_spectator

    def promote_admin(self, client: Client) -> None:
        client.is_admin = True
        self._admins.add(client.sid)

    def is_admin(self, client: Client) -> bool:
        return client.sid in self._admins

    def disconnect(self, client: Client) -> bool:
        self._admins.discard(client.sid)
        # The connection layer may report the same close twice.
        removed = self._clients.pop(client.sid, None)
        if removed is None:
            return False
        logger.info("Client %s disconnected (sid=%s)", client.id, client.sid)
        return True

    def players(self) -> list[Client]:
        return [c for c in self._clients.values() if not c.is_spectator]

    def all_spectators(self) -> bool:
        return all(c.is_spectator for c in self._clients.values())

    def to_public(self) -> list[dict]:
        return [c.to_public() for c in self._clients.values()]
