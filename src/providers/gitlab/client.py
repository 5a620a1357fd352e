# -*- coding: utf-8 -*-
"""
Autore:        Lorenzo Biosa
Email:         lorenzo@biosa-labs.com
Copyright:
  © 2026 Biosa Labs. Tutti i diritti riservati.

Modulo: providers/gitlab/client.py
Descrizione:
  Binding REST tipizzato verso l'API v4 di un master GitLab CI e relativa factory:
    - GitlabCiHeaders : intercettore `requests` che aggiunge `PRIVATE-TOKEN`
                        quando il token è configurato.
    - GitlabCiClient  : metodi 1:1 con gli endpoint usati per l'aggregazione build
                        (progetti, pipeline, job, trigger).
    - gitlab_ci_client: factory (address, token, timeout ms, converter) -> client.

Linee guida:
  - Nessuna chiamata di rete in costruzione.
  - Nessun token nei log (il logging FULL maschera `PRIVATE-TOKEN`).
  - Errori a monte tradotti in `UpstreamError` dal layer `src.utils.http_client`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union, cast
from urllib.parse import quote

import requests
from requests.auth import AuthBase

from src.utils.errors import ConfigurationError
from src.utils.http_client import (
    JsonConverter,
    RestClient,
    RestLogLevel,
    UpstreamErrorHandler,
    build_session,
    validate_base_url,
)
from src.utils.structured_logging import log_event

__all__ = [
    "PRIVATE_TOKEN_HEADER",
    "GitlabCiHeaders",
    "GitlabCiClient",
    "gitlab_ci_client",
]

PRIVATE_TOKEN_HEADER = "PRIVATE-TOKEN"

_logger = logging.getLogger(__name__)

ProjectId = Union[int, str]


class GitlabCiHeaders(AuthBase):
    """
    Intercettore di autenticazione: `requests` lo invoca su ogni richiesta preparata.
    Il token è catturato alla costruzione e non cambia più.
    """

    def __init__(self, private_token: Optional[str]) -> None:
        self._private_token = private_token or ""

    @property
    def has_token(self) -> bool:
        return bool(self._private_token)

    def intercept(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        """
        Restituisce la richiesta con `PRIVATE-TOKEN` se il token non è vuoto,
        altrimenti la restituisce invariata.
        """
        if self._private_token:
            request.headers[PRIVATE_TOKEN_HEADER] = self._private_token
        return request

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        return self.intercept(r)

    def __repr__(self) -> str:
        return f"GitlabCiHeaders(has_token={self.has_token})"


def _project_path(project_id: ProjectId) -> str:
    # "group/sub/project" -> "group%2Fsub%2Fproject"
    return quote(str(project_id), safe="")


class GitlabCiClient(RestClient):
    """
    Binding REST dell'API GitLab v4 per l'aggregazione build.
    """

    API_PREFIX = "/api/v4"

    # ----------------------------- Progetti ----------------------------- #
    def get_projects(
        self,
        *,
        owned: bool = False,
        membership: bool = True,
        page: int = 1,
        per_page: int = 100,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {
            "owned": str(owned).lower(),
            "membership": str(membership).lower(),
            "page": page,
            "per_page": per_page,
        }
        return self._list(f"{self.API_PREFIX}/projects", params=params)

    def get_project(self, project_id: ProjectId) -> Dict[str, Any]:
        return self._object(f"{self.API_PREFIX}/projects/{_project_path(project_id)}")

    # ----------------------------- Pipeline ----------------------------- #
    def get_pipeline_summaries(
        self,
        project_id: ProjectId,
        *,
        per_page: int = 20,
        ref: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"per_page": per_page}
        if ref:
            params["ref"] = ref
        return self._list(
            f"{self.API_PREFIX}/projects/{_project_path(project_id)}/pipelines",
            params=params,
        )

    def get_pipeline(self, project_id: ProjectId, pipeline_id: int) -> Dict[str, Any]:
        return self._object(
            f"{self.API_PREFIX}/projects/{_project_path(project_id)}/pipelines/{int(pipeline_id)}"
        )

    def get_jobs(self, project_id: ProjectId, pipeline_id: int) -> List[Dict[str, Any]]:
        return self._list(
            f"{self.API_PREFIX}/projects/{_project_path(project_id)}"
            f"/pipelines/{int(pipeline_id)}/jobs"
        )

    def trigger_pipeline(
        self,
        project_id: ProjectId,
        ref: str,
        variables: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Avvia una pipeline su `ref` con variabili opzionali (POST /projects/:id/pipeline).
        """
        if not ref or not ref.strip():
            raise ValueError("ref obbligatorio per avviare una pipeline.")
        body: Dict[str, Any] = {"ref": ref.strip()}
        if variables:
            body["variables"] = [{"key": k, "value": v} for k, v in variables.items()]
        return self._object(
            f"{self.API_PREFIX}/projects/{_project_path(project_id)}/pipeline",
            method="POST",
            body=body,
        )

    # ----------------------------- Helpers ----------------------------- #
    def _list(self, path: str, *, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        data = self._call("GET", path, params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise TypeError(f"Risposta inattesa da {path}: atteso array, ricevuto {type(data).__name__}.")
        items = cast(List[Any], data)
        return [cast(Dict[str, Any], it) for it in items if isinstance(it, dict)]

    def _object(
        self,
        path: str,
        *,
        method: str = "GET",
        body: Any = None,
    ) -> Dict[str, Any]:
        data = self._call(method, path, body=body)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise TypeError(f"Risposta inattesa da {path}: atteso oggetto, ricevuto {type(data).__name__}.")
        return cast(Dict[str, Any], data)


def gitlab_ci_client(
    address: str,
    private_token: Optional[str],
    timeout: int,
    converter: JsonConverter,
) -> GitlabCiClient:
    """
    Costruisce un GitlabCiClient verso `address`.

    Args:
        address: URL base del master (validato).
        private_token: token facoltativo; se vuoto le chiamate non sono autenticate.
        timeout: read timeout in millisecondi (>= 0).
        converter: contesto di serializzazione JSON condiviso.

    Raises:
        ConfigurationError: address non valido o timeout negativo/non intero.
    """
    endpoint = validate_base_url(address)
    if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout < 0:
        raise ConfigurationError(f"timeout non valido: {timeout!r} (atteso intero >= 0 ms).")

    interceptor = GitlabCiHeaders(private_token)
    session = build_session(auth=interceptor)

    client = GitlabCiClient(
        endpoint,
        session=session,
        read_timeout_ms=timeout,
        converter=converter,
        log_level=RestLogLevel.FULL,
        error_handler=UpstreamErrorHandler.get_instance(),
        logger=_logger,
    )
    log_event(
        _logger,
        "gitlab_ci_client_created",
        {
            "address": endpoint,
            "read_timeout_ms": timeout,
            "private_token_present": interceptor.has_token,
        },
    )
    return client
