# -*- coding: utf-8 -*-
"""
Autore:        Lorenzo Biosa
Email:         lorenzo@biosa-labs.com
Copyright:
  © 2026 Biosa Labs. Tutti i diritti riservati.

Modulo: tests/test_gitlab_client.py
Descrizione:
  Test della factory `gitlab_ci_client` e del binding REST `GitlabCiClient`:
    - read timeout in millisecondi riportato esattamente (5000 ms -> 5.0 s);
    - validazione address (fail-fast con ConfigurationError);
    - nessuna chiamata di rete in costruzione;
    - traduzione errori (HTTP, rete, conversione) in UpstreamError.
  La sessione HTTP è sostituita da `fake_session` (MagicMock), senza rete.
"""

from __future__ import annotations

import json
from typing import Any, Callable
from unittest.mock import MagicMock

import pytest
import requests
from _pytest.monkeypatch import MonkeyPatch

from src.providers.gitlab.client import GitlabCiClient, gitlab_ci_client
from src.utils.errors import (
    ConfigurationError,
    UpstreamConversionError,
    UpstreamError,
    UpstreamHttpError,
    UpstreamNetworkError,
)
from src.utils.http_client import JsonConverter, RestLogLevel


def _client(converter: JsonConverter, session: MagicMock, timeout: int = 5000) -> GitlabCiClient:
    client = gitlab_ci_client("https://gitlab.example.com/", "glpat-x", timeout, converter)
    client.session = session
    return client


# ----------------------------- Factory ----------------------------- #
def test_read_timeout_is_exact(converter: JsonConverter) -> None:
    client = gitlab_ci_client("https://gitlab.example.com", None, 5000, converter)
    assert client.read_timeout_ms == 5000
    assert client.timeout[1] == 5.0
    assert client.log_level is RestLogLevel.FULL
    assert client.converter is converter


def test_timeout_is_passed_to_transport(
    converter: JsonConverter, fake_session: MagicMock, make_response: Callable[..., MagicMock]
) -> None:
    fake_session.request.return_value = make_response(payload=[])
    client = _client(converter, fake_session, timeout=5000)

    client.get_projects()

    kwargs = fake_session.request.call_args.kwargs
    assert kwargs["timeout"] == (client.connect_timeout, 5.0)


@pytest.mark.parametrize(
    "address",
    [
        "not a url",
        "gitlab.example.com",
        "ftp://gitlab.example.com",
        "http://",
        "https://gitlab.example.com:99999",
        "",
    ],
)
def test_invalid_address_fails_fast(address: str, converter: JsonConverter) -> None:
    with pytest.raises(ConfigurationError):
        gitlab_ci_client(address, "glpat-x", 5000, converter)


@pytest.mark.parametrize("timeout", [-1, "5000", True])
def test_invalid_timeout_fails_fast(timeout: Any, converter: JsonConverter) -> None:
    with pytest.raises(ConfigurationError):
        gitlab_ci_client("https://gitlab.example.com", None, timeout, converter)


def test_construction_does_not_hit_network(
    converter: JsonConverter, monkeypatch: MonkeyPatch
) -> None:
    def _no_network(*args: Any, **kwargs: Any) -> Any:
        raise AssertionError("nessuna richiesta attesa in costruzione")

    monkeypatch.setattr(requests.Session, "request", _no_network)
    client = gitlab_ci_client("https://gitlab.example.com", "glpat-x", 1000, converter)
    assert client.endpoint == "https://gitlab.example.com"


def test_zero_timeout_means_no_read_timeout(
    converter: JsonConverter, monkeypatch: MonkeyPatch
) -> None:
    """Sessione `requests` reale: timeout 0 arriva al pool urllib3 come read=None."""
    captured: dict = {}

    def _urlopen(self: Any, method: str, url: str, **kwargs: Any) -> Any:
        captured["timeout"] = kwargs.get("timeout")
        raise requests.ConnectionError("connessione rifiutata")

    monkeypatch.setattr("urllib3.connectionpool.HTTPConnectionPool.urlopen", _urlopen)
    client = gitlab_ci_client("http://127.0.0.1:9", None, 0, converter)

    assert client.timeout == (10.0, None)
    assert isinstance(client.session, requests.Session)
    with pytest.raises(UpstreamNetworkError):
        client.get_projects()
    assert captured["timeout"].connect_timeout == 10.0
    assert captured["timeout"].read_timeout is None


def test_session_identifies_project(converter: JsonConverter) -> None:
    client = gitlab_ci_client("https://gitlab.example.com", None, 1000, converter)
    assert client.session.headers["User-Agent"] == "forgeops-buildservices/0.1.0"
    assert client.session.headers["Accept"] == "application/json"


# ----------------------------- Binding ----------------------------- #
def test_get_pipeline_decodes_json(
    converter: JsonConverter, fake_session: MagicMock, make_response: Callable[..., MagicMock]
) -> None:
    fake_session.request.return_value = make_response(payload={"id": 7, "status": "success"})
    client = _client(converter, fake_session)

    pipeline = client.get_pipeline("acme/tools", 7)

    assert pipeline == {"id": 7, "status": "success"}
    args = fake_session.request.call_args.args
    assert args[0] == "GET"
    assert args[1] == "https://gitlab.example.com/api/v4/projects/acme%2Ftools/pipelines/7"
    assert "X-Request-ID" in fake_session.request.call_args.kwargs["headers"]


def test_get_pipeline_summaries_passes_ref(
    converter: JsonConverter, fake_session: MagicMock, make_response: Callable[..., MagicMock]
) -> None:
    fake_session.request.return_value = make_response(payload=[{"id": 1}, "junk", {"id": 2}])
    client = _client(converter, fake_session)

    items = client.get_pipeline_summaries(42, per_page=5, ref="main")

    assert items == [{"id": 1}, {"id": 2}]
    assert fake_session.request.call_args.kwargs["params"] == {"per_page": 5, "ref": "main"}


def test_trigger_pipeline_encodes_body(
    converter: JsonConverter, fake_session: MagicMock, make_response: Callable[..., MagicMock]
) -> None:
    fake_session.request.return_value = make_response(201, payload={"id": 99})
    client = _client(converter, fake_session)

    result = client.trigger_pipeline(42, "main", {"DEPLOY": "1"})

    assert result == {"id": 99}
    kwargs = fake_session.request.call_args.kwargs
    assert fake_session.request.call_args.args[0] == "POST"
    assert kwargs["headers"]["Content-Type"] == "application/json"
    assert json.loads(kwargs["data"]) == {
        "ref": "main",
        "variables": [{"key": "DEPLOY", "value": "1"}],
    }


def test_trigger_pipeline_requires_ref(converter: JsonConverter, fake_session: MagicMock) -> None:
    client = _client(converter, fake_session)
    with pytest.raises(ValueError):
        client.trigger_pipeline(42, " ")
    fake_session.request.assert_not_called()


def test_empty_body_returns_empty_list(
    converter: JsonConverter, fake_session: MagicMock, make_response: Callable[..., MagicMock]
) -> None:
    fake_session.request.return_value = make_response(204)
    client = _client(converter, fake_session)
    assert client.get_jobs(1, 2) == []


# ----------------------------- Errori ----------------------------- #
def test_non_2xx_is_translated(
    converter: JsonConverter, fake_session: MagicMock, make_response: Callable[..., MagicMock]
) -> None:
    fake_session.request.return_value = make_response(
        404, text='{"message":"404 Project Not Found"}', reason="Not Found"
    )
    client = _client(converter, fake_session)

    with pytest.raises(UpstreamHttpError) as excinfo:
        client.get_project(123)

    err = excinfo.value
    assert err.status == 404
    assert err.kind == "http"
    assert err.method == "GET"
    assert err.url.endswith("/api/v4/projects/123")
    assert "Project Not Found" in (err.body or "")
    assert err.retryable is False


def test_server_error_is_retryable(
    converter: JsonConverter, fake_session: MagicMock, make_response: Callable[..., MagicMock]
) -> None:
    fake_session.request.return_value = make_response(503, text="busy", reason="Service Unavailable")
    client = _client(converter, fake_session)

    with pytest.raises(UpstreamError) as excinfo:
        client.get_projects()

    assert excinfo.value.retryable is True
    assert fake_session.request.call_count == 1


@pytest.mark.parametrize(
    "exc", [requests.ConnectionError("refused"), requests.Timeout("read timed out")]
)
def test_transport_failure_is_translated(
    exc: Exception, converter: JsonConverter, fake_session: MagicMock
) -> None:
    fake_session.request.side_effect = exc
    client = _client(converter, fake_session)

    with pytest.raises(UpstreamNetworkError) as excinfo:
        client.get_projects()

    assert excinfo.value.status is None
    assert excinfo.value.retryable is True
    assert excinfo.value.__cause__ is exc


def test_invalid_json_is_translated(
    converter: JsonConverter, fake_session: MagicMock, make_response: Callable[..., MagicMock]
) -> None:
    fake_session.request.return_value = make_response(200, text="<html>oops</html>")
    client = _client(converter, fake_session)

    with pytest.raises(UpstreamConversionError) as excinfo:
        client.get_project(1)

    assert excinfo.value.status == 200
