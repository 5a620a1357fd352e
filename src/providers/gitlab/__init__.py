# -*- coding: utf-8 -*-
"""
===============================================================================
Pacchetto: src.providers.gitlab
Descrizione:
    Integrazione GitLab CI: binding REST (API v4) con autenticazione
    PRIVATE-TOKEN, service wrapper e fase di avvio che popola BuildServices.

Autore: Lorenzo Biosa <lorenzo@biosa-labs.com>
Copyright:
    © 2026 Biosa Labs. Tutti i diritti riservati.
===============================================================================
"""

from __future__ import annotations

from .client import GitlabCiClient, GitlabCiHeaders, gitlab_ci_client
from .config import bootstrap, configure_gitlab_ci, gitlab_ci_masters
from .service import GitlabCiService

__all__ = [
    "GitlabCiClient",
    "GitlabCiHeaders",
    "GitlabCiService",
    "gitlab_ci_client",
    "gitlab_ci_masters",
    "configure_gitlab_ci",
    "bootstrap",
]
