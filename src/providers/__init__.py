# -*- coding: utf-8 -*-
"""
===============================================================================
Pacchetto: src.providers
Descrizione:
    Build service dei provider CI e registro condiviso che li indicizza per nome.

Linee guida:
    - Non importare automaticamente i sottopacchetti (es. gitlab) per evitare overhead.
    - Esporre solo il contratto comune (BuildService, Permissions).

Autore: Lorenzo Biosa <lorenzo@biosa-labs.com>
Copyright:
    © 2026 Biosa Labs. Tutti i diritti riservati.
===============================================================================
"""

from __future__ import annotations

from .base import BuildService, BuildServiceProvider
from .permissions import Authorization, Permissions, PermissionsBuilder

__all__ = [
    "BuildService",
    "BuildServiceProvider",
    "Authorization",
    "Permissions",
    "PermissionsBuilder",
]
