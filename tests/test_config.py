# -*- coding: utf-8 -*-
"""
Autore:        Lorenzo Biosa
Email:         lorenzo@biosa-labs.com
Copyright:
  © 2026 Biosa Labs. Tutti i diritti riservati.

Modulo: tests/test_config.py
Descrizione:
  Test del caricamento configurazione (`gitlab-ci`, `client.timeout`):
    - alias privateToken/private_token;
    - timeout in forma annidata e puntata, override ENV;
    - errori di configurazione (fail-fast) e lettura da file JSON.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from _pytest.monkeypatch import MonkeyPatch

from src.providers.permissions import Authorization
from src.utils.config import (
    DEFAULT_CLIENT_TIMEOUT_MS,
    ClientProperties,
    GitlabCiHost,
    load_client_properties,
    load_config_file,
    load_gitlab_ci_properties,
)
from src.utils.errors import ConfigurationError


def test_load_masters_with_token_aliases() -> None:
    props = load_gitlab_ci_properties(
        {
            "enabled": True,
            "masters": [
                {"name": "a", "address": "https://a.example.com", "privateToken": "tok-a"},
                {"name": "b", "address": "https://b.example.com", "private_token": "tok-b"},
                {"name": "c", "address": "https://c.example.com", "privateToken": ""},
                {
                    "name": "d",
                    "address": "https://d.example.com",
                    "permissions": {"READ": ["x"], "execute": "y"},
                },
            ],
        }
    )

    assert props.enabled is True
    assert [m.name for m in props.masters] == ["a", "b", "c", "d"]
    assert [m.private_token for m in props.masters] == ["tok-a", "tok-b", None, None]
    perms = props.masters[3].permissions.build()
    assert perms.get(Authorization.EXECUTE) == frozenset({"y"})


def test_host_repr_hides_token() -> None:
    host = GitlabCiHost(name="a", address="https://a.example.com", private_token="secret-value")
    assert "secret-value" not in repr(host)


def test_missing_section_means_disabled() -> None:
    props = load_gitlab_ci_properties(None)
    assert props.enabled is False
    assert props.masters == []


def test_env_overrides_enabled(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("GITLAB_CI_ENABLED", "true")
    assert load_gitlab_ci_properties({"enabled": False}).enabled is True


@pytest.mark.parametrize(
    "section",
    [
        "yes",
        ["x"],
        {"enabled": "maybe"},
        {"masters": {"name": "a"}},
        {"masters": ["not-an-object"]},
        {"masters": [{"address": "https://a.example.com"}]},
        {"masters": [{"name": "a"}]},
        {"masters": [{"name": "a", "address": "https://a", "privateToken": 123}]},
        {"masters": [{"name": "a", "address": "https://a", "permissions": {"ADMIN": ["x"]}}]},
    ],
)
def test_malformed_section_fails_fast(section: object) -> None:
    with pytest.raises(ConfigurationError):
        load_gitlab_ci_properties(section)


@pytest.mark.parametrize("value, expected", [("true", True), (" NO ", False), ("on", True)])
def test_enabled_accepts_boolean_strings(value: str, expected: bool) -> None:
    assert load_gitlab_ci_properties({"enabled": value}).enabled is expected


def test_env_enabled_stays_lenient(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("GITLAB_CI_ENABLED", "maybe")
    assert load_gitlab_ci_properties({"enabled": True}).enabled is True


def test_client_timeout_forms(monkeypatch: MonkeyPatch) -> None:
    assert load_client_properties({}).timeout == DEFAULT_CLIENT_TIMEOUT_MS
    assert load_client_properties({"client": {"timeout": 5000}}).timeout == 5000
    assert load_client_properties({"client.timeout": "7000"}).timeout == 7000

    monkeypatch.setenv("CLIENT_TIMEOUT_MS", "1200")
    assert load_client_properties({"client": {"timeout": 5000}}).timeout == 1200


def test_client_timeout_env_invalid_keeps_file_value(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("CLIENT_TIMEOUT_MS", "-5")
    assert load_client_properties({"client": {"timeout": 5000}}).timeout == 5000


@pytest.mark.parametrize("timeout", [-1, "abc", 1.5])
def test_client_timeout_invalid(timeout: object) -> None:
    with pytest.raises(ConfigurationError):
        load_client_properties({"client": {"timeout": timeout}})


@pytest.mark.parametrize("client", ["fast", [1], 5000])
def test_client_section_must_be_object(client: object) -> None:
    with pytest.raises(ConfigurationError):
        load_client_properties({"client": client})


def test_client_properties_validation() -> None:
    with pytest.raises(ConfigurationError):
        ClientProperties(timeout=-10)


def test_load_config_file(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "gitlab-ci": {
                    "enabled": True,
                    "masters": [{"name": "a", "address": "https://a.example.com"}],
                },
                "client": {"timeout": 4000},
            }
        ),
        encoding="utf-8",
    )

    gitlab_props, client_props = load_config_file(path)

    assert gitlab_props.enabled is True
    assert gitlab_props.masters[0].address == "https://a.example.com"
    assert client_props.timeout == 4000


def test_load_config_file_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_config_file(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config_file(bad)

    arr = tmp_path / "array.json"
    arr.write_text("[]", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config_file(arr)
