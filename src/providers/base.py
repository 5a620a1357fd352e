# -*- coding: utf-8 -*-
"""
===============================================================================
Modulo: base.py
Descrizione:
    Astrazione base per i "build service": un provider CI configurato (es. un
    master GitLab CI) esposto al resto del sistema con un contratto uniforme:
      - get_name()                  : chiave nel registro BuildServices.
      - get_build_service_provider(): tipo di provider (es. "GITLAB_CI").
      - get_permissions()           : regole di autorizzazione immutabili.

Linee guida:
    - Le istanze sono in sola lettura dopo la costruzione.
    - Logging strutturato tramite `src.utils.structured_logging`.

Autore: Lorenzo Biosa <lorenzo@biosa-labs.com>
Licenza:
    Questo file è rilasciato secondo i termini della licenza del repository.
===============================================================================
"""

from __future__ import annotations

import enum
import logging

from src.providers.permissions import Permissions
from src.utils.structured_logging import get_logger, log_event

__all__ = ["BuildServiceProvider", "BuildService"]

_logger = get_logger(__name__)


class BuildServiceProvider(str, enum.Enum):
    GITLAB_CI = "GITLAB_CI"


class BuildService:
    """
    Classe base per i build service.

    Attributi:
        name (str): Nome del servizio (chiave univoca nel registro).
        permissions (Permissions): Regole di autorizzazione.
    """

    provider: BuildServiceProvider

    def __init__(self, name: str, permissions: Permissions) -> None:
        if not name or not name.strip():
            log_event(
                _logger,
                "build_service_init_error",
                {"reason": "name vuoto"},
                level=logging.ERROR,
            )
            raise ValueError("name obbligatorio e non può essere vuoto.")

        self._name = name.strip()
        self._permissions = permissions

        log_event(
            _logger,
            "build_service_initialized",
            {
                "name": self._name,
                "provider": self.get_build_service_provider().value,
                "restricted": permissions.is_restricted(),
            },
        )

    def get_name(self) -> str:
        return self._name

    def get_permissions(self) -> Permissions:
        return self._permissions

    def get_build_service_provider(self) -> BuildServiceProvider:
        return self.provider

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self._name!r}, "
            f"provider={self.get_build_service_provider().value})"
        )
