# -*- coding: utf-8 -*-
"""
===============================================================================
Modulo: http_client.py
Descrizione:
    Infrastruttura HTTP per i binding REST tipizzati verso i provider CI. Fornisce:
      - Validazione dell'URL base di un master (tramite la preparazione URL di `requests`).
      - Creazione di una `requests.Session` con intercettore di autenticazione (`auth`)
        e header stabili (Accept/User-Agent).
      - `JsonConverter`: contesto di serializzazione JSON condiviso tra i client.
      - `RestClient`: base dei binding; ogni metodo pubblico di una sottoclasse
        corrisponde a una chiamata remota e passa da `_call`.
      - `UpstreamErrorHandler`: politica condivisa che traduce status non 2xx ed
        errori di trasporto in `UpstreamError`.
      - Logging universale (JSON) di richiesta/risposta secondo `RestLogLevel`.

    Timeout:
      - Il read timeout è espresso in millisecondi (configurazione `client.timeout`)
        e passato a `requests` come tupla (connect, read) in secondi.

    Note:
      - Nessun retry/backoff: gli errori vengono tradotti e propagati al chiamante.
      - Nessuna chiamata di rete in fase di costruzione: le richieste partono solo
        all'invocazione dei metodi del binding.

Autore: Lorenzo Biosa <lorenzo@biosa-labs.com>
Copyright:
    © 2026 Biosa Labs. Tutti i diritti riservati.
Licenza:
    Vedi LICENSE alla radice del repository.
===============================================================================
"""

from __future__ import annotations

import dataclasses
import enum
import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlsplit

import requests
from requests.auth import AuthBase

from .errors import (
    ConfigurationError,
    UpstreamConversionError,
    UpstreamError,
    UpstreamHttpError,
    UpstreamNetworkError,
)
from .structured_logging import get_correlation_headers, get_logger, log_event, redact_headers

__all__ = [
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_HEADERS",
    "JsonConverter",
    "RestLogLevel",
    "RestClient",
    "UpstreamErrorHandler",
    "build_session",
    "validate_base_url",
]

# =============================================================================
# Costanti
# =============================================================================
DEFAULT_CONNECT_TIMEOUT: float = 10.0

DEFAULT_HEADERS: Dict[str, str] = {
    "Accept": "application/json",
    "User-Agent": "forgeops-buildservices/0.1.0",
}

# Limite dei body riportati nei log e nelle eccezioni
_BODY_LOG_LIMIT = 2000

_logger = get_logger(__name__)


# =============================================================================
# Validazione URL e sessione
# =============================================================================
def validate_base_url(address: str) -> str:
    """
    Valida l'URL base di un master e lo restituisce normalizzato (senza "/" finale).

    Raises:
        ConfigurationError: schema mancante/non http(s), host assente, porta non valida.
    """
    if not isinstance(address, str) or not address.strip():
        raise ConfigurationError("address vuoto non valido.")
    candidate = address.strip()

    try:
        requests.models.PreparedRequest().prepare_url(candidate, None)
    except requests.exceptions.RequestException as exc:
        raise ConfigurationError(f"address non valido {candidate!r}: {exc}") from exc

    parts = urlsplit(candidate)
    if parts.scheme.lower() not in ("http", "https"):
        raise ConfigurationError(f"address {candidate!r}: schema non supportato (atteso http/https).")
    if not parts.hostname:
        raise ConfigurationError(f"address {candidate!r}: host mancante.")
    try:
        parts.port
    except ValueError as exc:
        raise ConfigurationError(f"address {candidate!r}: porta non valida.") from exc

    return candidate.rstrip("/")


def build_session(
    *,
    auth: Optional[AuthBase] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> requests.Session:
    """
    Crea una `requests.Session` con header stabili e l'intercettore `auth`,
    invocato da `requests` su ogni richiesta preparata dalla sessione.
    """
    sess = requests.Session()
    sess.headers.update(DEFAULT_HEADERS)
    if headers:
        sess.headers.update(headers)
    sess.auth = auth
    return sess


# =============================================================================
# Serializzazione
# =============================================================================
class JsonConverter:
    """
    Contesto di serializzazione JSON condiviso dai binding REST.
    Supporta dataclass ed enum in uscita; in ingresso restituisce strutture Python.
    """

    def __init__(self, *, ensure_ascii: bool = False, sort_keys: bool = False) -> None:
        self.ensure_ascii = ensure_ascii
        self.sort_keys = sort_keys

    def _default(self, obj: Any) -> Any:
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        if isinstance(obj, enum.Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        raise TypeError(f"Oggetto non serializzabile: {type(obj).__name__}")

    def encode(self, obj: Any) -> str:
        return json.dumps(
            obj,
            default=self._default,
            ensure_ascii=self.ensure_ascii,
            sort_keys=self.sort_keys,
        )

    def decode(self, text: str) -> Any:
        """Decodifica un body JSON; solleva ValueError se non valido."""
        return json.loads(text)


# =============================================================================
# Error handling
# =============================================================================
class UpstreamErrorHandler:
    """
    Politica condivisa di traduzione errori (istanza unica: `get_instance()`).
    """

    _instance: Optional["UpstreamErrorHandler"] = None

    @classmethod
    def get_instance(cls) -> "UpstreamErrorHandler":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def from_response(self, resp: requests.Response, *, method: str, url: str) -> UpstreamError:
        body = (resp.text or "")[:_BODY_LOG_LIMIT]
        reason = getattr(resp, "reason", None) or f"HTTP {resp.status_code}"
        return UpstreamHttpError(str(reason), method=method, url=url, status=resp.status_code, body=body)

    def from_exception(self, exc: requests.RequestException, *, method: str, url: str) -> UpstreamError:
        return UpstreamNetworkError(f"{type(exc).__name__}: {exc}", method=method, url=url)

    def from_conversion(
        self, exc: ValueError, resp: requests.Response, *, method: str, url: str
    ) -> UpstreamError:
        return UpstreamConversionError(
            f"body non JSON: {exc}",
            method=method,
            url=url,
            status=resp.status_code,
            body=(resp.text or "")[:_BODY_LOG_LIMIT],
        )


# =============================================================================
# Binding REST
# =============================================================================
class RestLogLevel(enum.IntEnum):
    NONE = 0
    BASIC = 1
    HEADERS = 2
    FULL = 3


class RestClient:
    """
    Base dei binding REST tipizzati.

    Attributi:
        endpoint: URL base fisso del master.
        session: sessione `requests` (intercettore auth già collegato).
        read_timeout_ms: read timeout in millisecondi.
        converter: contesto di serializzazione JSON.
        log_level: verbosità del logging richiesta/risposta.
        error_handler: politica di traduzione errori.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        session: requests.Session,
        read_timeout_ms: int,
        converter: JsonConverter,
        log_level: RestLogLevel = RestLogLevel.FULL,
        error_handler: Optional[UpstreamErrorHandler] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.session = session
        self.read_timeout_ms = read_timeout_ms
        self.converter = converter
        self.log_level = log_level
        self.error_handler = error_handler or UpstreamErrorHandler.get_instance()
        self.connect_timeout = connect_timeout
        self._log = logger or _logger

    @property
    def timeout(self) -> Tuple[float, Optional[float]]:
        """Tupla (connect, read) in secondi per `requests`; 0 ms = nessun read timeout."""
        if self.read_timeout_ms == 0:
            return (self.connect_timeout, None)
        return (self.connect_timeout, self.read_timeout_ms / 1000.0)

    def _url(self, path: str) -> str:
        rel = path if path.startswith("/") else f"/{path}"
        return f"{self.endpoint}{rel}"

    def _call(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """
        Esegue la chiamata remota e decodifica il body JSON.

        Returns:
            JSON decodificato, oppure None per risposte senza contenuto.

        Raises:
            UpstreamHttpError: status non 2xx.
            UpstreamNetworkError: errore di trasporto.
            UpstreamConversionError: body non JSON.
        """
        verb = method.upper()
        url = self._url(path)
        headers: Dict[str, str] = dict(get_correlation_headers())
        data: Optional[str] = None
        if body is not None:
            data = self.converter.encode(body)
            headers["Content-Type"] = "application/json"

        self._log_request(verb, url, params, data)

        try:
            resp = self.session.request(
                verb,
                url,
                params=dict(params) if params else None,
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            err = self.error_handler.from_exception(exc, method=verb, url=url)
            log_event(
                self._log,
                "http_transport_error",
                {"method": verb, "url": url, "error_type": type(exc).__name__, "error": str(exc)},
                level=logging.ERROR,
            )
            raise err from exc

        self._log_response(verb, url, resp)

        if not 200 <= resp.status_code < 300:
            err = self.error_handler.from_response(resp, method=verb, url=url)
            log_event(
                self._log,
                "http_unexpected_status",
                {"method": verb, "url": url, "status": resp.status_code, "retryable": err.retryable},
                level=logging.WARNING,
            )
            raise err

        text = resp.text or ""
        if resp.status_code == 204 or not text.strip():
            return None
        try:
            return self.converter.decode(text)
        except ValueError as exc:
            raise self.error_handler.from_conversion(exc, resp, method=verb, url=url) from exc

    # ----------------------------- Logging ----------------------------- #
    def _log_request(
        self, verb: str, url: str, params: Optional[Mapping[str, Any]], data: Optional[str]
    ) -> None:
        if self.log_level is RestLogLevel.NONE:
            return
        payload: Dict[str, Any] = {"method": verb, "url": url}
        if self.log_level >= RestLogLevel.HEADERS:
            payload["params"] = dict(params or {})
        if self.log_level >= RestLogLevel.FULL and data is not None:
            payload["body"] = data[:_BODY_LOG_LIMIT]
        log_event(self._log, "http_request", payload, level=logging.DEBUG)

    def _log_response(self, verb: str, url: str, resp: requests.Response) -> None:
        if self.log_level is RestLogLevel.NONE:
            return
        payload: Dict[str, Any] = {"method": verb, "url": url, "status": resp.status_code}
        if self.log_level >= RestLogLevel.HEADERS:
            sent = getattr(getattr(resp, "request", None), "headers", None)
            if isinstance(sent, Mapping):
                payload["request_headers"] = redact_headers(sent)
            if isinstance(resp.headers, Mapping):
                payload["response_headers"] = redact_headers(resp.headers)
        if self.log_level >= RestLogLevel.FULL:
            payload["body"] = (resp.text or "")[:_BODY_LOG_LIMIT]
        log_event(self._log, "http_response", payload, level=logging.DEBUG)
