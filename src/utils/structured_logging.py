# -*- coding: utf-8 -*-
"""
===============================================================================
Modulo: structured_logging.py
Descrizione:
    Logging strutturato (JSON di default) per il cablaggio dei build service:
      - Configurazione idempotente del logger root.
      - Eventi applicativi coerenti: `log_event(logger, event, payload, level=...)`.
      - Correlazione: `request_id` (ContextVar) incluso in ogni evento e
        propagato verso i master GitLab CI come `X-Request-ID`.
      - Redazione automatica dei campi sensibili (PRIVATE-TOKEN, token, secret...).

Variabili d'ambiente supportate:
    LOG_LEVEL   = DEBUG|INFO|WARNING|ERROR|CRITICAL (default: INFO)
    LOG_JSON    = true|false                         (default: true)
    LOG_CONSOLE = true|false                         (default: false)

Uso tipico:
    setup_logging()
    logger = get_logger(__name__)
    log_event(logger, "gitlab_ci_masters_create", {"count": 2})

Autore: Lorenzo Biosa <lorenzo@biosa-labs.com>
Copyright:
    © 2026 Biosa Labs. Tutti i diritti riservati.
===============================================================================
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import socket
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional

__all__ = [
    "setup_logging",
    "get_logger",
    "log_event",
    "REQUEST_ID_HEADER",
    "new_request_id",
    "get_request_id",
    "request_id_context",
    "get_correlation_headers",
    "redact_headers",
]

_configured: bool = False
_installed: List[logging.Handler] = []
_DEFAULT_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"
_DEFAULT_PLAIN_FMT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

REQUEST_ID_HEADER = "X-Request-ID"

_request_id_cv: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


# -----------------------------------------------------------------------------
# Correlazione
# -----------------------------------------------------------------------------
def new_request_id() -> str:
    """Genera e imposta un nuovo request_id nel contesto corrente."""
    rid = uuid.uuid4().hex
    _request_id_cv.set(rid)
    return rid


def get_request_id() -> str:
    """
    Restituisce il request_id corrente; se assente ne genera uno (lazy init).
    """
    rid = _request_id_cv.get()
    if not rid:
        rid = new_request_id()
    return rid


@contextlib.contextmanager
def request_id_context(request_id: Optional[str] = None) -> Iterator[str]:
    """
    Imposta un `request_id` temporaneo e ripristina il precedente all'uscita.
    """
    rid: str = request_id or uuid.uuid4().hex
    token = _request_id_cv.set(rid)
    try:
        yield rid
    finally:
        _request_id_cv.reset(token)


def get_correlation_headers() -> Dict[str, str]:
    """Header HTTP di correlazione da allegare alle richieste in uscita."""
    return {REQUEST_ID_HEADER: get_request_id()}


# -----------------------------------------------------------------------------
# Redazione
# -----------------------------------------------------------------------------
_SENSITIVE_KEYS = {
    "token",
    "private_token",
    "private-token",
    "privatetoken",
    "authorization",
    "password",
    "secret",
    "api_key",
    "access_token",
}


def _redact_value(v: Any) -> str:
    s = str(v)
    if len(s) <= 8:
        return "***"
    return f"{s[:4]}***{s[-4:]}"


def _redact_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Applica redazione ai campi sensibili e garantisce serializzabilità JSON."""
    safe: Dict[str, Any] = {}
    for k, v in payload.items():
        if k.lower() in _SENSITIVE_KEYS:
            safe[k] = _redact_value(v) if v else v
            continue
        try:
            json.dumps(v)
            safe[k] = v
        except (TypeError, ValueError):
            safe[k] = str(v)
    return safe


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Copia degli header HTTP con i valori sensibili mascherati (per log FULL)."""
    return {k: (_redact_value(v) if k.lower() in _SENSITIVE_KEYS else v) for k, v in headers.items()}


# -----------------------------------------------------------------------------
# JSON Formatter
# -----------------------------------------------------------------------------
class _JsonLogFormatter(logging.Formatter):
    """Serializza il record in JSON con campi standard + correlazione."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        base: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "host": socket.gethostname(),
            "message": record.getMessage(),
            "request_id": get_request_id(),
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


# -----------------------------------------------------------------------------
# Configurazione centralizzata
# -----------------------------------------------------------------------------
def setup_logging(
    level: Optional[str] = None,
    json_mode: Optional[bool] = None,
    *,
    console: Optional[bool] = None,
    force: bool = False,
) -> None:
    """
    Configura il logging di processo in modo idempotente.

    Args:
        level: livello (DEBUG/INFO/WARNING/ERROR/CRITICAL), default LOG_LEVEL.
        json_mode: True → JSON, False → plain, default LOG_JSON.
        console: abilita lo stream handler, default LOG_CONSOLE.
        force: riconfigura rimuovendo gli handler installati in precedenza (es. CLI).
    """
    global _configured
    if _configured and not force:
        return

    root = logging.getLogger()
    while _installed:
        root.removeHandler(_installed.pop())

    lvl_raw: Optional[str] = level if level is not None else os.getenv("LOG_LEVEL")
    use_json = json_mode if json_mode is not None else _env_flag("LOG_JSON", default=True)
    use_console = console if console is not None else _env_flag("LOG_CONSOLE", default=False)

    root.setLevel(_parse_level(lvl_raw))

    if use_console:
        ch = logging.StreamHandler()
        ch.setFormatter(
            _JsonLogFormatter()
            if use_json
            else logging.Formatter(fmt=_DEFAULT_PLAIN_FMT, datefmt=_DEFAULT_DATEFMT)
        )
        handler: logging.Handler = ch
    else:
        handler = logging.NullHandler()
    root.addHandler(handler)
    _installed.append(handler)

    _configured = True


def get_logger(name: str, *, level: Optional[str] = None) -> logging.Logger:
    """Restituisce un logger coerente; garantisce setup idempotente."""
    setup_logging()
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(_parse_level(level))
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    payload: Optional[Mapping[str, Any]] = None,
    *,
    level: int = logging.INFO,
) -> None:
    """
    Registra un evento applicativo (JSON) con redazione dei campi sensibili.
    """
    safe_payload = _redact_payload(payload or {})
    entry: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "request_id": get_request_id(),
        **safe_payload,
    }
    logger.log(level, json.dumps(entry, ensure_ascii=False))


# -----------------------------------------------------------------------------
# Helper
# -----------------------------------------------------------------------------
def _parse_level(value: Optional[str]) -> int:
    if value is None:
        return logging.INFO
    mapping = {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARNING": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
    }
    return mapping.get(value.upper().strip(), logging.INFO)


def _env_flag(name: str, *, default: bool = True) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")
