# -*- coding: utf-8 -*-
"""
Autore:        Lorenzo Biosa
Email:         lorenzo@biosa-labs.com
Copyright:
  © 2026 Biosa Labs. Tutti i diritti riservati.

Modulo: providers/gitlab/service.py
Descrizione:
  Service wrapper per un master GitLab CI: associa il binding REST al nome
  del master e alle sue permission. Possiede il client in modo esclusivo ed
  è in sola lettura dopo la costruzione.
"""

from __future__ import annotations

from src.providers.base import BuildService, BuildServiceProvider
from src.providers.permissions import Permissions
from src.utils.config import GitlabCiHost

from .client import GitlabCiClient

__all__ = ["GitlabCiService"]


class GitlabCiService(BuildService):
    provider = BuildServiceProvider.GITLAB_CI

    def __init__(
        self,
        client: GitlabCiClient,
        name: str,
        host: GitlabCiHost,
        permissions: Permissions,
    ) -> None:
        self._client = client
        self._host = host
        super().__init__(name, permissions)

    @property
    def client(self) -> GitlabCiClient:
        return self._client

    def get_host(self) -> GitlabCiHost:
        return self._host
