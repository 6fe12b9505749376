from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


# Pushed by the server without a request.
CLIENT_LIST = "ClientList"
GAME_STATE = "GameState"
LOCK_UNDO = "LockUndo"
SPECTATOR_SWAP = "SpectatorSwap"

# Error sources that are not a command name.
RECEIVE_MESSAGE = "ReceiveMessage"
SECURITY_FAILURE = "SecurityFailure"
ROUND_STOPPED = "RoundStopped"


class ProtocolError(ValueError):
    pass


@dataclass(frozen=True)
class Request:
    method: str
    arguments: tuple[str, ...]


def parse_request(raw: Any) -> Request:
    """Decode one inbound frame into a Request or raise ProtocolError."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolError("Server request was not valid UTF-8.") from exc

    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise ProtocolError("Server request was not in JSON format.") from exc
    else:
        data = raw

    if not isinstance(data, dict):
        raise ProtocolError("Server request must be a JSON object.")

    method = data.get("MethodName")
    if not isinstance(method, str) or not method.strip():
        raise ProtocolError("Server request is missing MethodName.")

    args = data.get("MethodArguments")
    if args is None:
        args = []
    if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
        raise ProtocolError("MethodArguments must be a list of strings.")

    return Request(method=method.strip(), arguments=tuple(args))


def message(command: str, **fields: Any) -> str:
    payload: dict[str, Any] = {"Command": command, "Error": False}
    payload.update(fields)
    return json.dumps(payload, ensure_ascii=False)


def error(source: str, error_message: str) -> str:
    return json.dumps(
        {"Source": source, "Error": True, "ErrorMessage": error_message},
        ensure_ascii=False,
    )
