from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import Protocol

from .game.models import Round


logger = logging.getLogger(__name__)

RULE = "================"


class AuditSink(Protocol):
    def record(self, finished: Round) -> None: ...


class NullAuditSink:
    def record(self, finished: Round) -> None:
        return None


def format_round(finished: Round) -> str:
    lines = [
        RULE,
        f'Round topic : "{finished.title}"',
        "Votes:",
    ]
    lines.extend(f"{v.client_name} - {v.value}" for v in finished.votes)
    lines.append(f"--> Estimation: {finished.decision}")
    lines.append(RULE)
    return "\n".join(lines) + "\n"


class TextAuditSink:
    """Appends each decided round to one plain-text file per day."""

    def __init__(self, directory: str | Path, today=datetime.date.today) -> None:
        self.directory = Path(directory)
        self._today = today

    def path_for(self, day: datetime.date) -> Path:
        return self.directory / f"{day.isoformat()}.txt"

    def record(self, finished: Round) -> None:
        path = self.path_for(self._today())
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as fh:
                fh.write(format_round(finished))
        except OSError:
            # The session keeps running without its audit trail.
            logger.exception("Could not write audit log %s", path)


def make_audit_sink(directory: str) -> AuditSink:
    if not directory:
        return NullAuditSink()
    return TextAuditSink(directory)
