# -*- coding: utf-8 -*-
"""
Autore:        Lorenzo Biosa
Email:         lorenzo@biosa-labs.com
Copyright:
  © 2026 Biosa Labs. Tutti i diritti riservati.

Modulo: tests/conftest.py
Descrizione:
  Fixture comuni per la suite di test:
    - clean_env (autouse): rimuove gli override ENV che alterano la configurazione.
    - gl_token: token GitLab fittizio (mai usato per chiamate reali).
    - converter: JsonConverter condiviso.
    - make_host: factory di GitlabCiHost.
    - make_response: factory di response finte (MagicMock) compatibili con requests.Response.
    - fake_session: sessione HTTP finta con .request() e .headers.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Mapping, Optional
from unittest.mock import MagicMock

import pytest
from _pytest.monkeypatch import MonkeyPatch

from src.providers.permissions import PermissionsBuilder
from src.utils.config import GitlabCiHost
from src.utils.http_client import JsonConverter


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: MonkeyPatch) -> None:
    for name in ("GITLAB_CI_ENABLED", "CLIENT_TIMEOUT_MS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def gl_token() -> str:
    """Token GitLab fittizio."""
    return "glpat-test-token-0001"


@pytest.fixture
def converter() -> JsonConverter:
    return JsonConverter()


@pytest.fixture
def make_host() -> Callable[..., GitlabCiHost]:
    def _make(
        name: str,
        address: str = "https://gitlab.example.com",
        private_token: Optional[str] = None,
        permissions: Optional[Mapping[str, Any]] = None,
    ) -> GitlabCiHost:
        return GitlabCiHost(
            name=name,
            address=address,
            private_token=private_token,
            permissions=PermissionsBuilder.from_mapping(permissions),
        )

    return _make


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    def _make(
        status_code: int = 200,
        payload: Any = None,
        text: Optional[str] = None,
        reason: str = "OK",
    ) -> MagicMock:
        resp = MagicMock()
        resp.status_code = status_code
        resp.reason = reason
        resp.headers = {"Content-Type": "application/json"}
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        resp.text = text
        return resp

    return _make


@pytest.fixture
def fake_session(make_response: Callable[..., MagicMock]) -> MagicMock:
    """
    Sessione HTTP finta con interfaccia minima compatibile con `requests.Session`.
    I test possono ridefinire `sess.request.return_value` / `side_effect`.
    """
    sess = MagicMock(spec_set=["request", "headers"])
    headers: Dict[str, str] = {}
    sess.headers = headers
    sess.request.return_value = make_response()
    return sess
