from __future__ import annotations

import logging
from typing import Any, Callable

from ..game.clients import ClientRegistry
from ..game.models import Client
from . import events


logger = logging.getLogger(__name__)

Transport = Callable[[str, str], None]


def _always_open(sid: str) -> bool:
    return True


class BroadcastHub:
    """Best-effort fan-out of outbound frames to connected clients."""

    def __init__(
        self,
        clients: ClientRegistry,
        transport: Transport,
        is_open: Callable[[str], bool] | None = None,
    ) -> None:
        self._clients = clients
        self._transport = transport
        self._is_open = is_open or _always_open

    def _deliver(self, client: Client, frame: str) -> None:
        if not self._is_open(client.sid):
            return
        try:
            self._transport(client.sid, frame)
        except Exception:
            # One dead socket must not stop delivery to the rest.
            logger.warning("Delivery to client %s failed", client.id, exc_info=True)

    def _fan_out(self, origin: Client | None, frame: str, send_back: bool) -> None:
        for c in self._clients:
            if origin is not None and not send_back and c is origin:
                continue
            self._deliver(c, frame)

    def send(self, client: Client, command: str, **fields: Any) -> None:
        self._deliver(client, events.message(command, **fields))

    def send_error(self, client: Client, source: str, error_message: str) -> None:
        self._deliver(client, events.error(source, error_message))

    def broadcast(
        self,
        origin: Client | None,
        command: str,
        fields: dict[str, Any] | None = None,
        send_back: bool = False,
    ) -> None:
        self._fan_out(origin, events.message(command, **(fields or {})), send_back)

    def broadcast_error(
        self,
        origin: Client | None,
        source: str,
        error_message: str,
        send_back: bool = False,
    ) -> None:
        self._fan_out(origin, events.error(source, error_message), send_back)
