from __future__ import annotations

import logging

from flask import request
from flask_socketio import SocketIO

from .dispatcher import CapabilityDispatcher


logger = logging.getLogger(__name__)


def register_socketio_handlers(socketio: SocketIO, dispatcher: CapabilityDispatcher) -> None:
    engine = dispatcher.engine

    @socketio.on("connect")
    def on_connect(auth=None):
        engine.connect(request.sid)

    @socketio.on("message")
    def on_message(data):
        logger.debug("Frame from %s: %r", request.sid, data)
        client = engine.clients.get(request.sid)
        if client is None:
            # Frame raced with the close of this socket.
            return
        try:
            dispatcher.dispatch(client, data)
        except Exception:
            logger.exception("Unhandled error while processing a frame from %s", request.sid)

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        client = engine.clients.get(request.sid)
        if client is None:
            return
        try:
            engine.disconnect(client)
        except Exception:
            logger.exception("Cleanup failed for client %s", client.id)
