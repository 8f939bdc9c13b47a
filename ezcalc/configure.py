"""
Configuration for the ezcalc server, CLI and client.

Values come from the process environment, optionally seeded from a `.env`
file in the working directory.
"""
import logging
import os
import secrets
from typing import Mapping, NamedTuple, Optional

from dotenv import find_dotenv, load_dotenv

DB_FILENAME = ".ezcalcdata"
DEFAULT_HISTORY_LIMIT = 10
DEFAULT_DB_TIMEOUT = 30
DEFAULT_SERVER = "http://localhost:8000"


class ConfigError(Exception):
    pass


class Config(NamedTuple):
    datafile: str = DB_FILENAME
    history_limit: int = DEFAULT_HISTORY_LIMIT
    db_timeout: int = DEFAULT_DB_TIMEOUT
    secret_key: Optional[str] = None
    origin: str = "*"
    log_level: int = logging.INFO
    server_url: str = DEFAULT_SERVER


def _int_var(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _log_level(env: Mapping[str, str]) -> int:
    raw = env.get("EZCALC_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(raw)
    if not isinstance(level, int):
        raise ConfigError(f"EZCALC_LOG_LEVEL is not a log level: {raw!r}")
    return level


def load_config(env: Optional[Mapping[str, str]] = None) -> Config:
    """
    Build a Config from `env` (defaults to os.environ after loading `.env`).
    """
    if env is None:
        load_dotenv(find_dotenv(usecwd=True))
        env = os.environ

    return Config(
        datafile=env.get("EZCALC_DATAFILE") or DB_FILENAME,
        history_limit=_int_var(env, "EZCALC_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT, minimum=1),
        db_timeout=_int_var(env, "EZCALC_DB_TIMEOUT", DEFAULT_DB_TIMEOUT),
        secret_key=env.get("EZCALC_SECRET_KEY") or secrets.token_hex(32),
        origin=env.get("EZCALC_ORIGIN") or "*",
        log_level=_log_level(env),
        server_url=(env.get("EZCALC_SERVER") or DEFAULT_SERVER).rstrip("/"),
    )
