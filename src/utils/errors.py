# -*- coding: utf-8 -*-
"""
===============================================================================
Modulo: errors.py
Descrizione:
    Gerarchia di eccezioni del progetto:
      - ConfigurationError: configurazione malformata (fail-fast all'avvio).
      - UpstreamError e sottoclassi: rappresentazione uniforme degli errori
        restituiti dai master GitLab CI (status non 2xx, errori di rete,
        body non decodificabile).
      - RegistryFrozenError: scrittura sul registro dopo la fase di avvio.

Note:
    `retryable` è solo informativo: nessun retry viene eseguito in questo
    progetto; la decisione spetta al chiamante.

Autore: Lorenzo Biosa <lorenzo@biosa-labs.com>
Copyright:
    © 2026 Biosa Labs. Tutti i diritti riservati.
===============================================================================
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "ForgeOpsError",
    "ConfigurationError",
    "RegistryFrozenError",
    "UpstreamError",
    "UpstreamHttpError",
    "UpstreamNetworkError",
    "UpstreamConversionError",
]


class ForgeOpsError(Exception):
    """Radice della gerarchia di eccezioni."""


class ConfigurationError(ForgeOpsError, ValueError):
    """Sollevata quando la configurazione di un master (o globale) non è valida."""


class RegistryFrozenError(ForgeOpsError, RuntimeError):
    """Sollevata quando si tenta di aggiungere servizi a un registro sigillato."""


class UpstreamError(ForgeOpsError):
    """
    Errore uniforme verso un provider CI a monte.

    Attributi:
        kind: "http" | "network" | "conversion".
        status: status HTTP (None per errori di rete).
        method: verbo HTTP della richiesta.
        url: URL assoluto della richiesta.
        reason: descrizione sintetica.
        body: estratto del body di risposta (troncato).
    """

    kind: str = "unknown"

    def __init__(
        self,
        reason: str,
        *,
        method: str,
        url: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        self.reason = reason
        self.method = method
        self.url = url
        self.status = status
        self.body = body
        super().__init__(self._message())

    def _message(self) -> str:
        status = f" status={self.status}" if self.status is not None else ""
        return f"{self.kind} error on {self.method} {self.url}{status}: {self.reason}"

    @property
    def retryable(self) -> bool:
        """True per 429/5xx e per errori di rete."""
        if self.status is None:
            return self.kind == "network"
        return self.status == 429 or self.status >= 500


class UpstreamHttpError(UpstreamError):
    """Risposta con status non 2xx."""

    kind = "http"


class UpstreamNetworkError(UpstreamError):
    """Errore di trasporto (connessione, timeout, TLS)."""

    kind = "network"


class UpstreamConversionError(UpstreamError):
    """Body di risposta non decodificabile come JSON."""

    kind = "conversion"
