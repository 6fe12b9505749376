from __future__ import annotations

from flask import Blueprint, Response, current_app, jsonify

from ..discovery import discovery_line

bp = Blueprint("session", __name__)


def _engine():
    return current_app.extensions["planning_poker"]


@bp.get("/session")
def session_summary():
    return jsonify(_engine().summary())


@bp.get("/discovery")
def discovery():
    line = discovery_line(current_app.config["SESSION_NAME"], current_app.config["PORT"])
    return Response(line, mimetype="text/plain")
