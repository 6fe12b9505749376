import os
import re


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Session
    SESSION_NAME = os.environ.get("SESSION_NAME", "poker")
    HOST = os.environ.get("HOST", "0.0.0.0")
    PORT = int(os.environ.get("PORT", "5000"))
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "")

    # Game
    FLIP_DELAY_SEC = float(os.environ.get("FLIP_DELAY_SEC", "1.0"))
    DEFAULT_CARDS = os.environ.get("DEFAULT_CARDS", "½,1,2,3,5,8,13,20,30,50,100,?")
    REPORT_UNKNOWN_COMMANDS = os.environ.get("REPORT_UNKNOWN_COMMANDS", "1") == "1"

    # Audit log, one text file per day. Empty disables it.
    AUDIT_LOG_DIR = os.environ.get("AUDIT_LOG_DIR", "")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


SESSION_NAME_RE = re.compile(r"[a-zA-Z0-9_\-.]+")

MIN_PORT = 1000
MAX_PORT = 65535


class SessionConfigError(ValueError):
    pass


def validate_config(name: str, port: int, admin_password: str) -> None:
    if not SESSION_NAME_RE.fullmatch(name or ""):
        raise SessionConfigError(
            "Name is invalid. Valid name characters are A-Z, a-z, 0-9, _, -, and ."
        )
    if not isinstance(port, int) or port < MIN_PORT or port > MAX_PORT:
        raise SessionConfigError(f"Port number is outside valid range [{MIN_PORT}-{MAX_PORT}].")
    if not admin_password or any(ch.isspace() for ch in admin_password):
        raise SessionConfigError("Admin password must be set and can not contain spaces.")
