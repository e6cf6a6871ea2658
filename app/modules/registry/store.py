"""
store.py
==============================

In-Memory-Speicher der Provider-Registry
----------------------------------------

Hält Aktionen und Provider in Registrierungsreihenfolge. Alle Änderungen
ersetzen komplette (unveränderliche) Provider-Objekte unter einer Sperre;
ein Leser sieht daher nie einen halb aktualisierten Regelsatz.
Änderungen laufen über update(): Lesen, Ändern und Schreiben geschehen
unter derselben Sperre, ebenso die Prüfung auf eindeutige Typen.

Lesezugriffe für die Identifikation:
  • snapshot()                         – Regeln aller freigegebenen Provider
  • find_approved_provider_by_type()   – Provider für typgebundene Prüfung
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from app.core.errors import ConflictError
from app.modules.registry.models import Action, Provider, ProviderPage, Rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapshotEntry:
    """Eine Regel zusammen mit dem freigegebenen Provider, dem sie gehört."""

    provider: Provider
    rule: Rule


class ProviderStore:

    def __init__(self, actions: Iterable[Action] = ()):
        self._lock = threading.RLock()
        self._providers: Dict[int, Provider] = {}
        self._actions: Dict[str, Action] = {a.id: a for a in actions}
        self._next_id = 1

    # ------------------------------------------------------------------
    # Snapshot (Lesesicht für die Identifikation)
    # ------------------------------------------------------------------
    def snapshot(self) -> Tuple[SnapshotEntry, ...]:
        """
        Geordnete Regeln aller APPROVED-Provider: zuerst nach
        Registrierungsreihenfolge der Provider, dann nach Regelreihenfolge.
        """
        with self._lock:
            providers = list(self._providers.values())

        return tuple(
            SnapshotEntry(provider, rule)
            for provider in providers
            if provider.approved
            for rule in provider.rules
        )

    list_approved_rules = snapshot

    def find_approved_provider_by_type(self, type_: str) -> Optional[Provider]:
        with self._lock:
            for provider in self._providers.values():
                if provider.type == type_ and provider.approved:
                    return provider
        return None

    # ------------------------------------------------------------------
    # Provider
    # ------------------------------------------------------------------
    def next_id(self) -> int:
        with self._lock:
            pid = self._next_id
            self._next_id += 1
            return pid

    def add(self, provider: Provider) -> Provider:
        with self._lock:
            if provider.id in self._providers:
                raise KeyError(f"Provider id {provider.id} already stored")
            self._check_type_free(provider)
            self._providers[provider.id] = provider
            self._next_id = max(self._next_id, provider.id + 1)
        logger.debug("➕ Provider gespeichert: %s (%s)", provider.type, provider.status.value)
        return provider

    def replace(self, provider: Provider) -> Provider:
        # Dict-Zuweisung erhält die ursprüngliche Einfügereihenfolge
        with self._lock:
            if provider.id not in self._providers:
                raise KeyError(f"Provider id {provider.id} not stored")
            self._check_type_free(provider)
            self._providers[provider.id] = provider
        return provider

    def update(self, provider_id: int, change: Callable[[Provider], Provider]) -> Optional[Provider]:
        """
        Wendet `change` auf den aktuell gespeicherten Provider an und
        speichert das Ergebnis, alles unter der Sperre. Gibt None zurück,
        wenn es den Provider nicht (mehr) gibt.
        """
        with self._lock:
            current = self._providers.get(provider_id)
            if current is None:
                return None
            updated = change(current)
            return self.replace(updated)

    def _check_type_free(self, provider: Provider) -> None:
        # nur unter self._lock aufrufen
        for other in self._providers.values():
            if other.type == provider.type and other.id != provider.id:
                raise ConflictError(f"This Provider type {{{provider.type}}} exists.")

    def delete(self, provider_id: int) -> bool:
        with self._lock:
            return self._providers.pop(provider_id, None) is not None

    def get(self, provider_id: int) -> Optional[Provider]:
        with self._lock:
            return self._providers.get(provider_id)

    def find_by_type(self, type_: str) -> Optional[Provider]:
        with self._lock:
            for provider in self._providers.values():
                if provider.type == type_:
                    return provider
        return None

    def list_providers(self, approved_only: bool = False) -> List[Provider]:
        with self._lock:
            providers = list(self._providers.values())
        if approved_only:
            providers = [p for p in providers if p.approved]
        return providers

    def page(self, index: int, size: int, approved_only: bool = False) -> ProviderPage:
        """Seite `index` (0-basiert) mit höchstens `size` Einträgen."""
        providers = self.list_providers(approved_only)
        start = index * size
        return ProviderPage(items=providers[start:start + size], total=len(providers))

    # ------------------------------------------------------------------
    # Aktionen
    # ------------------------------------------------------------------
    def add_action(self, action: Action) -> None:
        with self._lock:
            self._actions[action.id] = action

    def find_action(self, action_id: str) -> Optional[Action]:
        with self._lock:
            return self._actions.get(action_id)

    def actions(self) -> List[Action]:
        with self._lock:
            return list(self._actions.values())
