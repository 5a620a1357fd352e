# -*- coding: utf-8 -*-
"""
===============================================================================
Modulo: registry.py
Descrizione:
    Registro condiviso dei build service (`BuildServices`), indicizzato per nome.

    Ciclo di vita:
      1) Fase di avvio: le integrazioni (es. GitLab CI) aggiungono le proprie
         mappe con `add_services` (merge, non sostituzione; last-write-wins).
      2) `seal()`: da qui il registro è in sola lettura; `add_services` solleva
         RegistryFrozenError.
      3) Hot-reload: solo come swap atomico dell'intera mappa (`replace_all`).

    Le letture restituiscono viste `MappingProxyType` non modificabili.

Autore: Lorenzo Biosa <lorenzo@biosa-labs.com>
Copyright:
    © 2026 Biosa Labs. Tutti i diritti riservati.
===============================================================================
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping

from src.providers.base import BuildService
from src.utils.errors import RegistryFrozenError
from src.utils.structured_logging import get_logger, log_event

__all__ = ["BuildServices"]

_logger = get_logger(__name__)


class BuildServices:
    """Registro nome -> BuildService, scrivibile solo durante l'avvio."""

    def __init__(self) -> None:
        self._services: Mapping[str, BuildService] = MappingProxyType({})
        self._sealed = False

    # ----------------------------- Scrittura ----------------------------- #
    def add_services(self, services: Mapping[str, BuildService]) -> None:
        """
        Unisce `services` al registro (merge; a parità di nome vince l'ultimo).

        Raises:
            RegistryFrozenError: se il registro è già stato sigillato.
        """
        if self._sealed:
            log_event(
                _logger,
                "build_services_add_rejected",
                {"names": sorted(services.keys()), "reason": "registro sigillato"},
                level=logging.ERROR,
            )
            raise RegistryFrozenError("BuildServices è sigillato: add_services non consentito.")
        merged: Dict[str, BuildService] = dict(self._services)
        replaced = sorted(k for k in services if k in merged)
        merged.update(services)
        self._services = MappingProxyType(merged)

        log_event(
            _logger,
            "build_services_added",
            {"added": sorted(services.keys()), "replaced": replaced, "total": len(merged)},
        )

    def seal(self) -> None:
        """Chiude la fase di avvio: il registro diventa in sola lettura."""
        self._sealed = True
        log_event(_logger, "build_services_sealed", {"total": len(self._services)})

    @property
    def sealed(self) -> bool:
        return self._sealed

    def replace_all(self, services: Mapping[str, BuildService]) -> None:
        """Swap atomico dell'intera mappa (hot-reload); mai modifiche in place."""
        snapshot = MappingProxyType(dict(services))
        self._services = snapshot
        log_event(_logger, "build_services_replaced", {"total": len(snapshot)})

    # ----------------------------- Lettura ----------------------------- #
    def get_service(self, name: str) -> BuildService:
        """
        Raises:
            KeyError: se nessun servizio è registrato con `name`.
        """
        services = self._services
        if name not in services:
            raise KeyError(f"Nessun build service registrato con nome '{name}'.")
        return services[name]

    def get_all_build_services(self) -> Mapping[str, BuildService]:
        return self._services

    def get_service_names(self) -> List[str]:
        return sorted(self._services.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._services

    def __len__(self) -> int:
        return len(self._services)

    def __repr__(self) -> str:
        return f"BuildServices(names={self.get_service_names()}, sealed={self._sealed})"
