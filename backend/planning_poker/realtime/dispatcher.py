from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from ..game.models import Client
from ..game.session import SessionEngine
from . import events


logger = logging.getLogger(__name__)

Handler = Callable[..., None]


class Tier(enum.Enum):
    STANDARD = "standard"
    ADMIN = "admin"


@dataclass(frozen=True)
class Command:
    name: str
    handler: Handler
    tier: Tier = Tier.STANDARD
    params: tuple[str, ...] = ()
    requires_registration: bool = True

    @property
    def key(self) -> str:
        return self.name.lower()


class CapabilityDispatcher:
    """Routes inbound frames to command handlers after checking privileges.

    The registry is fixed when the server starts. Handlers are called as
    ``handler(engine, client, **arguments)`` with the arguments bound to the
    command's declared parameter names, so a frame with the wrong number of
    arguments is rejected here instead of reaching the handler.
    """

    def __init__(
        self,
        engine: SessionEngine,
        commands: Iterable[Command] = (),
        report_unknown: bool = True,
    ) -> None:
        self.engine = engine
        self.report_unknown = report_unknown
        self._commands: dict[str, Command] = {}
        for command in commands:
            self.register(command)

    def register(self, command: Command) -> None:
        if command.key in self._commands:
            raise ValueError(f"Command {command.name} is already registered")
        self._commands[command.key] = command

    def lookup(self, name: str) -> Command | None:
        return self._commands.get((name or "").strip().lower())

    @property
    def commands(self) -> list[Command]:
        return list(self._commands.values())

    def dispatch(self, client: Client, raw: Any) -> bool:
        """Handle one inbound frame from ``client``; True if a handler ran."""
        hub = self.engine.hub
        try:
            request = events.parse_request(raw)
        except events.ProtocolError as exc:
            logger.info("Client %s sent a malformed request: %s", client.id, exc)
            hub.send_error(client, events.RECEIVE_MESSAGE, str(exc))
            return False

        command = self.lookup(request.method)
        if command is None:
            logger.warning("Client %s sent an unknown command: %r", client.id, request.method)
            if self.report_unknown:
                hub.send_error(client, events.RECEIVE_MESSAGE, f"Unknown command '{request.method}'.")
            return False

        with self.engine.lock:
            if command.tier is Tier.ADMIN and not self.engine.is_admin(client):
                logger.warning("Client %s is not authorized to call %s", client.id, command.name)
                hub.send_error(
                    client,
                    events.SECURITY_FAILURE,
                    "You are not authorized to perform this function.",
                )
                return False

            if command.requires_registration and not client.registered:
                hub.send_error(client, command.name, "You must register before calling this function.")
                return False

            if len(request.arguments) != len(command.params):
                hub.send_error(
                    client,
                    command.name,
                    f"{command.name} expects {len(command.params)} argument(s), got {len(request.arguments)}.",
                )
                return False

            kwargs = dict(zip(command.params, request.arguments))
            try:
                command.handler(self.engine, client, **kwargs)
            except Exception:
                logger.exception("Command %s failed for client %s", command.name, client.id)
                hub.send_error(client, command.name, "The server failed to process this request.")
                return False
            return True
