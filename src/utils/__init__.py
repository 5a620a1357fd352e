# -*- coding: utf-8 -*-
"""
===============================================================================
Pacchetto: src.utils
Descrizione:
    Utilità comuni riutilizzabili:
      - Logging strutturato (setup/get_logger/log_event).
      - Gerarchia di eccezioni (configurazione, errori upstream, registro).
      - Configurazione e infrastruttura HTTP (importare i moduli direttamente:
        `src.utils.config`, `src.utils.http_client`).

Autore: Lorenzo Biosa <lorenzo@biosa-labs.com>
Copyright:
    © 2026 Biosa Labs. Tutti i diritti riservati.
===============================================================================
"""

from __future__ import annotations

from .errors import ConfigurationError, ForgeOpsError, RegistryFrozenError, UpstreamError
from .structured_logging import get_logger, log_event, setup_logging

# config/http_client non sono importati qui: dipendono da src.providers.permissions

__all__ = [
    "get_logger",
    "setup_logging",
    "log_event",
    "ForgeOpsError",
    "ConfigurationError",
    "RegistryFrozenError",
    "UpstreamError",
]
