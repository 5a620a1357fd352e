# -*- coding: utf-8 -*-
"""
===============================================================================
Modulo: config.py
Descrizione:
    Configurazione centralizzata per l'integrazione GitLab CI. Fornisce:
      - Parsing tollerante di variabili d'ambiente (bool, interi).
      - Dataclass tipizzate e immutabili:
          * GitlabCiHost       : un master (name, address, private_token, permissions).
          * GitlabCiProperties : flag `enabled` + lista dei master.
          * ClientProperties   : configurazione client globale (timeout in ms).
      - Loader da mappa (forma logica `gitlab-ci` / `client`) e da file JSON.

    Forma logica attesa:
        {
          "gitlab-ci": {
            "enabled": true,
            "masters": [
              {"name": "...", "address": "https://...", "privateToken": "...",
               "permissions": {"READ": ["role"], "WRITE": ["role"]}}
            ]
          },
          "client": {"timeout": 30000}
        }

    Override da ENV (hanno precedenza sul file):
      - GITLAB_CI_ENABLED : true/false
      - CLIENT_TIMEOUT_MS : intero >= 0

    Linee guida:
      - Nessun token nei log: si registra solo `private_token_present`.
      - Configurazione malformata -> ConfigurationError (fail-fast all'avvio).

Autore: Lorenzo Biosa <lorenzo@biosa-labs.com>
Copyright:
    © 2026 Biosa Labs. Tutti i diritti riservati.
Licenza:
    Questo file è rilasciato secondo i termini della licenza del repository.
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from src.providers.permissions import PermissionsBuilder
from src.utils.errors import ConfigurationError
from src.utils.structured_logging import get_logger, log_event

__all__ = [
    "GitlabCiHost",
    "GitlabCiProperties",
    "ClientProperties",
    "DEFAULT_CLIENT_TIMEOUT_MS",
    "load_gitlab_ci_properties",
    "load_client_properties",
    "load_config_file",
]

_logger = get_logger(__name__)

DEFAULT_CLIENT_TIMEOUT_MS: int = 30000


# =============================================================================
# Helper di parsing ENV (bool, int)
# =============================================================================
_TRUE_VALUES = ("1", "true", "yes", "y", "on")
_FALSE_VALUES = ("0", "false", "no", "n", "off")


def _parse_bool(value: Optional[str], *, default: bool = False) -> bool:
    """
    Converte una stringa in booleano in modo tollerante.
    Accetta: "1", "true", "yes", "y", "on" (True) | "0", "false", "no", "n", "off" (False).
    Se None o non riconosciuto -> default.
    """
    if value is None:
        return default
    val = value.strip().lower()
    if val in _TRUE_VALUES:
        return True
    if val in _FALSE_VALUES:
        return False
    return default


def _parse_int(
    value: Optional[str],
    *,
    default: int,
    min_value: Optional[int] = None,
) -> int:
    """
    Converte una stringa in intero; se parsing fallisce o fuori vincoli -> default.
    """
    if value is None or not value.strip():
        return default
    try:
        num = int(value.strip())
    except ValueError:
        return default
    if min_value is not None and num < min_value:
        return default
    return num


def _coerce_bool(value: Any, *, label: str) -> bool:
    """Booleano da file di configurazione: stringhe non riconosciute sono errori."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        val = value.strip().lower()
        if val in _TRUE_VALUES:
            return True
        if val in _FALSE_VALUES:
            return False
        log_event(
            _logger,
            "config_error",
            {"reason": f"{label} non booleano", "value": value},
            level=logging.ERROR,
        )
        raise ConfigurationError(f"{label} non riconosciuto come booleano: {value!r}")
    if value is None:
        return False
    raise ConfigurationError(f"{label} deve essere booleano, ricevuto {type(value).__name__}.")


# =============================================================================
# Dataclass di configurazione
# =============================================================================
@dataclass(frozen=True)
class GitlabCiHost:
    """
    Descrittore di un master GitLab CI. Immutabile dopo il caricamento.

    Attributi:
        name: chiave univoca nel registro dei build service.
        address: URL base del master (es. https://gitlab.example.com).
        private_token: token di accesso (facoltativo; se assente le chiamate non sono autenticate).
        permissions: regole di autorizzazione (builder, chiuso dal service wrapper).
    """

    name: str
    address: str
    private_token: Optional[str] = None
    permissions: PermissionsBuilder = field(default_factory=PermissionsBuilder, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigurationError("name obbligatorio per ogni master gitlab-ci.")
        if not isinstance(self.address, str) or not self.address.strip():
            raise ConfigurationError(f"address obbligatorio per il master '{self.name}'.")

    def __repr__(self) -> str:
        return (
            f"GitlabCiHost(name={self.name!r}, address={self.address!r}, "
            f"private_token_present={bool(self.private_token)})"
        )


def _hosts_factory() -> List[GitlabCiHost]:
    return []


@dataclass(frozen=True)
class GitlabCiProperties:
    """Impostazioni `gitlab-ci`: flag di attivazione e lista dei master."""

    enabled: bool = False
    masters: List[GitlabCiHost] = field(default_factory=_hosts_factory)


@dataclass(frozen=True)
class ClientProperties:
    """Impostazioni client globali condivise dalle integrazioni (timeout in millisecondi)."""

    timeout: int = DEFAULT_CLIENT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, int):
            raise ConfigurationError("client.timeout deve essere un intero (millisecondi).")
        if self.timeout < 0:
            raise ConfigurationError("client.timeout non può essere negativo.")


# =============================================================================
# Loader
# =============================================================================
def _load_host(raw: Any, index: int) -> GitlabCiHost:
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"gitlab-ci.masters[{index}] deve essere un oggetto.")
    token = raw.get("privateToken", raw.get("private_token"))
    if token is not None and not isinstance(token, str):
        raise ConfigurationError(f"gitlab-ci.masters[{index}].privateToken deve essere stringa.")
    return GitlabCiHost(
        name=str(raw.get("name") or "").strip(),
        address=str(raw.get("address") or "").strip(),
        private_token=token or None,
        permissions=PermissionsBuilder.from_mapping(raw.get("permissions")),
    )


def load_gitlab_ci_properties(raw: Optional[Mapping[str, Any]]) -> GitlabCiProperties:
    """
    Costruisce GitlabCiProperties dalla sezione `gitlab-ci` della configurazione.

    ENV:
        GITLAB_CI_ENABLED sovrascrive `enabled`.

    Raises:
        ConfigurationError: se la sezione non è un oggetto, `masters` non è una
            lista o un master è malformato.
    """
    if raw is not None and not isinstance(raw, Mapping):
        log_event(
            _logger,
            "config_error",
            {"reason": "sezione gitlab-ci non è un oggetto", "type": type(raw).__name__},
            level=logging.ERROR,
        )
        raise ConfigurationError(f"gitlab-ci deve essere un oggetto, ricevuto {type(raw).__name__}.")
    section: Mapping[str, Any] = raw or {}
    enabled = _coerce_bool(section.get("enabled", False), label="gitlab-ci.enabled")
    env_enabled = os.environ.get("GITLAB_CI_ENABLED")
    if env_enabled is not None:
        enabled = _parse_bool(env_enabled, default=enabled)

    masters_raw = section.get("masters") or []
    if not isinstance(masters_raw, list):
        log_event(
            _logger,
            "config_error",
            {"reason": "gitlab-ci.masters non è una lista"},
            level=logging.ERROR,
        )
        raise ConfigurationError("gitlab-ci.masters deve essere una lista.")

    masters = [_load_host(item, i) for i, item in enumerate(masters_raw)]

    log_event(
        _logger,
        "gitlab_ci_properties_loaded",
        {
            "enabled": enabled,
            "masters_count": len(masters),
            "masters": [m.name for m in masters],
            "private_token_present": [bool(m.private_token) for m in masters],
        },
    )
    return GitlabCiProperties(enabled=enabled, masters=masters)


def load_client_properties(raw: Optional[Mapping[str, Any]]) -> ClientProperties:
    """
    Legge `client.timeout` in forma annidata (`{"client": {"timeout": n}}`)
    o puntata (`{"client.timeout": n}`). ENV CLIENT_TIMEOUT_MS ha precedenza.
    """
    if raw is not None and not isinstance(raw, Mapping):
        raise ConfigurationError(f"configurazione client non valida: {type(raw).__name__}.")
    root: Mapping[str, Any] = raw or {}
    nested = root.get("client")
    if nested is not None and not isinstance(nested, Mapping):
        log_event(
            _logger,
            "config_error",
            {"reason": "sezione client non è un oggetto", "type": type(nested).__name__},
            level=logging.ERROR,
        )
        raise ConfigurationError(f"client deve essere un oggetto, ricevuto {type(nested).__name__}.")
    timeout: Any = DEFAULT_CLIENT_TIMEOUT_MS
    if isinstance(nested, Mapping) and "timeout" in nested:
        timeout = nested["timeout"]
    elif "client.timeout" in root:
        timeout = root["client.timeout"]

    if isinstance(timeout, str):
        try:
            timeout = int(timeout.strip())
        except ValueError:
            raise ConfigurationError(f"client.timeout non numerico: {timeout!r}") from None

    env_timeout = os.environ.get("CLIENT_TIMEOUT_MS")
    if env_timeout is not None:
        timeout = _parse_int(env_timeout, default=timeout, min_value=0)

    props = ClientProperties(timeout=timeout)
    log_event(_logger, "client_properties_loaded", {"timeout_ms": props.timeout})
    return props


def load_config_file(
    path: Union[str, Path],
) -> Tuple[GitlabCiProperties, ClientProperties]:
    """
    Carica un file JSON con le sezioni `gitlab-ci` e `client`.

    Raises:
        ConfigurationError: file illeggibile o JSON non valido.
    """
    p = Path(path)
    try:
        data: Any = json.loads(p.read_text(encoding="utf-8"))
    except OSError as exc:
        log_event(_logger, "config_error", {"reason": "file illeggibile", "path": str(p)}, level=logging.ERROR)
        raise ConfigurationError(f"Impossibile leggere {p}: {exc}") from exc
    except json.JSONDecodeError as exc:
        log_event(_logger, "config_error", {"reason": "JSON non valido", "path": str(p)}, level=logging.ERROR)
        raise ConfigurationError(f"JSON non valido in {p}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"{p}: atteso un oggetto JSON alla radice.")
    doc: Dict[str, Any] = data
    return load_gitlab_ci_properties(doc.get("gitlab-ci")), load_client_properties(doc)
