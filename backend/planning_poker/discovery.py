from __future__ import annotations


def discovery_line(name: str, port: int) -> str:
    """The one line a directory service reads to learn where this session lives."""
    return f"{name}:{port}\r\n"


def parse_discovery_line(line: str) -> tuple[str, int] | None:
    chunks = (line or "").strip().split(":")
    if len(chunks) != 2:
        return None
    try:
        return chunks[0], int(chunks[1])
    except ValueError:
        return None
