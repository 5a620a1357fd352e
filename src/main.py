# -*- coding: utf-8 -*-
"""
Autore:        Lorenzo Biosa
Email:         lorenzo@biosa-labs.com
Copyright:
  © 2026 Biosa Labs. Tutti i diritti riservati.

Modulo: main.py
Descrizione:
  Entrypoint CLI per verificare il cablaggio dei build service GitLab CI.
    - `describe --config file.json`: esegue la fase di avvio (caricamento
      configurazione, costruzione client/servizi, registro sigillato) e stampa
      un riepilogo JSON dei master registrati.

  Osservabilità:
    - Logging centralizzato via src.utils.structured_logging (JSON di default).
    - Nessun log né output di segreti: per ogni master si riporta solo
      `private_token_present`.

  Codici di uscita:
    0 = successo, 2 = errore di configurazione o errore inatteso.

Licenza:
  Questo file è rilasciato secondo i termini della licenza del repository.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

from src.providers.gitlab.config import configure_gitlab_ci
from src.providers.gitlab.service import GitlabCiService
from src.providers.registry import BuildServices
from src.utils.config import load_config_file
from src.utils.errors import ConfigurationError
from src.utils.http_client import JsonConverter
from src.utils.structured_logging import get_logger, log_event, new_request_id, setup_logging


def describe_registry(registry: BuildServices) -> List[Dict[str, Any]]:
    """Riepilogo serializzabile del registro (senza segreti)."""
    out: List[Dict[str, Any]] = []
    for name in registry.get_service_names():
        service = registry.get_service(name)
        entry: Dict[str, Any] = {
            "name": name,
            "provider": service.get_build_service_provider().value,
            "permissions": service.get_permissions().to_dict(),
        }
        if isinstance(service, GitlabCiService):
            entry["address"] = service.client.endpoint
            entry["read_timeout_ms"] = service.client.read_timeout_ms
            entry["private_token_present"] = bool(service.get_host().private_token)
        out.append(entry)
    return out


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="forgeops-buildservices",
        description="Cablaggio build service GitLab CI",
    )
    parser.add_argument("--log-level", default=None, help="DEBUG|INFO|WARNING|ERROR|CRITICAL")
    parser.add_argument(
        "--log-json",
        dest="log_json",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Log in JSON (default: LOG_JSON o true)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    describe = sub.add_parser("describe", help="Costruisce il registro e ne stampa il riepilogo")
    describe.add_argument("--config", required=True, help="File JSON con sezioni gitlab-ci e client")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    setup_logging(level=args.log_level, json_mode=args.log_json, console=True, force=True)
    logger = get_logger(__name__)
    new_request_id()

    if args.command == "describe":
        log_event(logger, "cli_describe_start", {"config": args.config})
        try:
            gitlab_props, client_props = load_config_file(args.config)
            registry = BuildServices()
            configure_gitlab_ci(registry, client_props, gitlab_props, JsonConverter())
            registry.seal()
        except ConfigurationError as exc:
            log_event(
                logger,
                "cli_config_error",
                {"config": args.config, "error_message": str(exc)},
                level=logging.ERROR,
            )
            sys.stderr.write(f"Errore di configurazione: {exc}\n")
            return 2
        except Exception as exc:
            logger.exception("Errore inatteso durante la fase di avvio")
            log_event(
                logger,
                "cli_error",
                {"error_type": type(exc).__name__, "error_message": str(exc)},
                level=logging.ERROR,
            )
            sys.stderr.write(f"Errore: {exc}\n")
            return 2

        summary = {"enabled": gitlab_props.enabled, "masters": describe_registry(registry)}
        print(json.dumps(summary, indent=2, ensure_ascii=False))
        log_event(logger, "cli_describe_complete", {"masters_count": len(registry)})
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
