# -*- coding: utf-8 -*-
"""
Autore:        Lorenzo Biosa
Email:         lorenzo@biosa-labs.com
Copyright:
  © 2026 Biosa Labs. Tutti i diritti riservati.

Modulo: providers/gitlab/config.py
Descrizione:
  Fase di avvio dell'integrazione GitLab CI:
    - gitlab_ci_service : host -> GitlabCiService (client + nome + permission).
    - gitlab_ci_masters : costruisce tutti i servizi e li unisce a BuildServices.
    - configure_gitlab_ci: come sopra, ma solo se `gitlab-ci.enabled` è vero.
    - bootstrap         : carica la configurazione, popola e sigilla il registro.

  Politica errori:
    - Construct-all-or-abort: il primo master non valido interrompe l'avvio e
      nulla viene aggiunto al registro.
    - Nomi duplicati: vince l'ultimo master configurato (evento WARNING).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from src.providers.registry import BuildServices
from src.utils.config import (
    ClientProperties,
    GitlabCiHost,
    GitlabCiProperties,
    load_client_properties,
    load_gitlab_ci_properties,
)
from src.utils.http_client import JsonConverter
from src.utils.structured_logging import get_logger, log_event

from .client import gitlab_ci_client
from .service import GitlabCiService

__all__ = [
    "gitlab_ci_service",
    "gitlab_ci_masters",
    "configure_gitlab_ci",
    "bootstrap",
]

_logger = get_logger(__name__)


def gitlab_ci_service(
    client_properties: ClientProperties,
    name: str,
    host: GitlabCiHost,
    converter: JsonConverter,
) -> GitlabCiService:
    return GitlabCiService(
        gitlab_ci_client(
            host.address,
            host.private_token,
            client_properties.timeout,
            converter,
        ),
        name,
        host,
        host.permissions.build(),
    )


def gitlab_ci_masters(
    build_services: BuildServices,
    client_properties: ClientProperties,
    gitlab_ci_properties: GitlabCiProperties,
    converter: JsonConverter,
) -> Dict[str, GitlabCiService]:
    """
    Costruisce un GitlabCiService per ogni master e li unisce al registro condiviso.

    Returns:
        Mappa nome -> GitlabCiService aggiunta al registro.

    Raises:
        ConfigurationError: al primo master non valido; il registro resta invariato.
    """
    log_event(
        _logger,
        "gitlab_ci_masters_create",
        {"masters_count": len(gitlab_ci_properties.masters)},
    )

    masters: Dict[str, GitlabCiService] = {}
    for host in gitlab_ci_properties.masters:
        try:
            service = gitlab_ci_service(client_properties, host.name, host, converter)
        except Exception as exc:
            log_event(
                _logger,
                "gitlab_ci_master_error",
                {
                    "name": host.name,
                    "address": host.address,
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                },
                level=logging.ERROR,
            )
            raise

        key = service.get_name()
        if key in masters:
            log_event(
                _logger,
                "gitlab_ci_duplicate_master",
                {
                    "name": key,
                    "replaced_address": masters[key].get_host().address,
                    "address": host.address,
                },
                level=logging.WARNING,
            )
        masters[key] = service

    build_services.add_services(masters)
    log_event(
        _logger,
        "gitlab_ci_masters_created",
        {"names": sorted(masters.keys())},
    )
    return masters


def configure_gitlab_ci(
    build_services: BuildServices,
    client_properties: ClientProperties,
    gitlab_ci_properties: GitlabCiProperties,
    converter: JsonConverter,
) -> Dict[str, GitlabCiService]:
    """Attiva l'integrazione solo se `gitlab-ci.enabled` è vero; altrimenti non tocca il registro."""
    if not gitlab_ci_properties.enabled:
        log_event(_logger, "gitlab_ci_disabled", {})
        return {}
    return gitlab_ci_masters(build_services, client_properties, gitlab_ci_properties, converter)


def bootstrap(
    config: Mapping[str, Any],
    *,
    build_services: Optional[BuildServices] = None,
    converter: Optional[JsonConverter] = None,
) -> BuildServices:
    """
    Fase di avvio completa: carica la configurazione, popola il registro e lo sigilla.
    """
    registry = build_services if build_services is not None else BuildServices()
    configure_gitlab_ci(
        registry,
        load_client_properties(config),
        load_gitlab_ci_properties(config.get("gitlab-ci")),
        converter or JsonConverter(),
    )
    registry.seal()
    return registry
