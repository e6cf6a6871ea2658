"""
provider_service.py
==============================

Verwaltung der Provider
-----------------------

Registrierung, Änderung, Löschung und Freigabe von Providern. Jede
Regel wird bei der Registrierung kompiliert; fehlerhafte Regeln werden
hier abgewiesen und gelangen nie in einen Snapshot der Identifikation.

Regeln des Ablaufs:
-------------------
• neue Provider starten immer mit Status PENDING
• jede inhaltliche Änderung setzt den Status zurück auf PENDING
• der Typ eines Providers ist eindeutig (ConflictError)
• alle Aktionen müssen bekannt sein (NotFoundError)
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from app.core.errors import ConflictError, NotFoundError
from app.modules.identification.pattern_compiler import compile_rule
from app.modules.registry.models import (
    Action,
    Provider,
    ProviderPage,
    ProviderRequest,
    ProviderStatus,
    Rule,
    UpdateProviderRequest,
)
from app.modules.registry.store import ProviderStore

logger = logging.getLogger(__name__)


class ProviderService:

    def __init__(self, store: ProviderStore, match_timeout: Optional[float] = None):
        self.store = store
        self.match_timeout = match_timeout

    # ------------------------------------------------------------------
    # Anlegen
    # ------------------------------------------------------------------
    def create(
        self,
        request: ProviderRequest,
        created_by: Optional[str] = None,
        status: ProviderStatus = ProviderStatus.PENDING,
    ) -> Provider:
        self._check_type_free(request.type)
        actions = self._resolve_actions(request.actions)

        provider_id = self.store.next_id()
        rules = self._compile_rules(provider_id, request.regexes)

        provider = Provider(
            id=provider_id,
            type=request.type,
            name=request.name,
            description=request.description,
            example=request.example,
            status=status,
            actions=actions,
            rules=rules,
            created_by=created_by,
        )
        self.store.add(provider)
        logger.info("📝 Provider registriert: %s (id=%s, %d Regeln)", provider.type, provider.id, len(rules))
        return provider

    # ------------------------------------------------------------------
    # Ändern
    # ------------------------------------------------------------------
    def update(self, provider_id: int, request: UpdateProviderRequest) -> Provider:
        self.get(provider_id)

        # Aktionen und Regeln außerhalb der Sperre vorbereiten
        changes = {}
        if request.type:
            changes["type"] = request.type

        if request.actions:
            changes["actions"] = self._resolve_actions(request.actions)

        if request.regexes:
            changes["rules"] = self._compile_rules(provider_id, request.regexes)

        for name in ("name", "description", "example"):
            value = getattr(request, name)
            if value:
                changes[name] = value

        changes["status"] = ProviderStatus.PENDING

        updated = self.store.update(provider_id, lambda current: current.with_changes(**changes))
        if updated is None:
            raise NotFoundError(f"There is no Provider with the following id: {provider_id}")
        logger.info("✏️ Provider %s aktualisiert, Status → PENDING", updated.id)
        return updated

    def update_status(self, provider_id: int, status: ProviderStatus) -> Provider:
        previous = []

        def _apply(current: Provider) -> Provider:
            previous.append(current.status)
            return current.with_changes(status=status)

        updated = self.store.update(provider_id, _apply)
        if updated is None:
            raise NotFoundError(f"There is no Provider with the following id: {provider_id}")
        logger.info("🔁 Provider %s (%s): %s → %s", updated.id, updated.type, previous[0].value, status.value)
        return updated

    # ------------------------------------------------------------------
    # Lesen / Löschen
    # ------------------------------------------------------------------
    def get(self, provider_id: int) -> Provider:
        provider = self.store.get(provider_id)
        if provider is None:
            raise NotFoundError(f"There is no Provider with the following id: {provider_id}")
        return provider

    def delete(self, provider_id: int) -> bool:
        deleted = self.store.delete(provider_id)
        if deleted:
            logger.info("🗑️ Provider %s gelöscht", provider_id)
        return deleted

    def page(self, index: int, size: int, approved_only: bool = True) -> ProviderPage:
        return self.store.page(index, size, approved_only=approved_only)

    def resolution_modes(self) -> Set[str]:
        return {action.mode for action in self.store.actions()}

    # ------------------------------------------------------------------
    # Hilfsfunktionen
    # ------------------------------------------------------------------
    def _check_type_free(self, type_: str) -> None:
        if self.store.find_by_type(type_) is not None:
            raise ConflictError(f"This Provider type {{{type_}}} exists.")

    def _resolve_actions(self, action_ids: List[str]) -> tuple:
        actions: List[Action] = []
        for action_id in dict.fromkeys(action_ids):
            action = self.store.find_action(action_id)
            if action is None:
                raise NotFoundError("There is an action that is not supported.")
            actions.append(action)
        return tuple(actions)

    def _compile_rules(self, provider_id: int, texts: List[str]) -> tuple:
        return tuple(
            Rule(provider_id=provider_id, pattern=compile_rule(text, self.match_timeout))
            for text in texts
        )
