# -*- coding: utf-8 -*-
"""
===============================================================================
Modulo: permissions.py
Descrizione:
    Insieme di regole di autorizzazione associato a ciascun build service.
      - Authorization: READ / WRITE / EXECUTE.
      - PermissionsBuilder: forma mutabile usata durante il caricamento config.
      - Permissions: forma immutabile consegnata al service wrapper.

    Un insieme vuoto significa "nessuna restrizione": qualunque ruolo è autorizzato.
    I ruoli sono normalizzati in minuscolo e senza duplicati.

Autore: Lorenzo Biosa <lorenzo@biosa-labs.com>
Copyright:
    © 2026 Biosa Labs. Tutti i diritti riservati.
===============================================================================
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from src.utils.errors import ConfigurationError

__all__ = ["Authorization", "Permissions", "PermissionsBuilder"]


class Authorization(str, enum.Enum):
    READ = "READ"
    WRITE = "WRITE"
    EXECUTE = "EXECUTE"

    @classmethod
    def parse(cls, value: str) -> "Authorization":
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ConfigurationError(f"Authorization sconosciuta: {value!r}") from None


def _normalize_roles(roles: Iterable[str]) -> List[str]:
    out: List[str] = []
    for r in roles:
        role = str(r).strip().lower()
        if role and role not in out:
            out.append(role)
    return out


@dataclass(frozen=True)
class Permissions:
    """
    Regole immutabili: Authorization -> ruoli ammessi.
    """

    rules: Tuple[Tuple[Authorization, FrozenSet[str]], ...] = ()

    def get(self, auth: Authorization) -> FrozenSet[str]:
        for key, roles in self.rules:
            if key is auth:
                return roles
        return frozenset()

    def is_restricted(self) -> bool:
        return any(roles for _, roles in self.rules)

    def is_authorized(self, auth: Authorization, roles: Iterable[str]) -> bool:
        """
        True se l'insieme non è restrittivo o se almeno un ruolo è ammesso per `auth`.
        """
        if not self.is_restricted():
            return True
        allowed = self.get(auth)
        return any(r in allowed for r in _normalize_roles(roles))

    def to_dict(self) -> Dict[str, List[str]]:
        return {key.value: sorted(roles) for key, roles in self.rules}


class PermissionsBuilder:
    """
    Builder mutabile, popolato dal loader di configurazione e "chiuso" con `build()`.
    """

    def __init__(self) -> None:
        self._rules: Dict[Authorization, List[str]] = {}

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "PermissionsBuilder":
        """
        Costruisce il builder da una mappa `{"READ": ["role"], "WRITE": [...]}`.
        """
        builder = cls()
        if raw is None:
            return builder
        if not isinstance(raw, Mapping):
            raise ConfigurationError("permissions deve essere una mappa Authorization -> ruoli.")
        for key, roles in raw.items():
            if isinstance(roles, str):
                roles = [roles]
            if not isinstance(roles, (list, tuple)):
                raise ConfigurationError(f"Ruoli per {key!r} devono essere una lista.")
            builder.add(Authorization.parse(str(key)), roles)
        return builder

    def add(self, auth: Authorization, roles: Iterable[str]) -> "PermissionsBuilder":
        current = self._rules.setdefault(auth, [])
        for role in _normalize_roles(roles):
            if role not in current:
                current.append(role)
        return self

    def build(self) -> Permissions:
        ordered = sorted(self._rules.items(), key=lambda kv: kv[0].value)
        rules = tuple((auth, frozenset(roles)) for auth, roles in ordered)
        return Permissions(rules=rules)

    def __repr__(self) -> str:
        rules = {k.value: v for k, v in self._rules.items()}
        return f"PermissionsBuilder({rules!r})"
