"""
engine.py
==============================

Identifikation persistenter Identifier (PIDs)
---------------------------------------------

Dieses Modul klassifiziert eine beliebige Eingabe gegen die Regeln aller
freigegebenen (APPROVED) Provider. Mögliche Ergebnisse:

• VALID      – eine Regel passt vollständig auf die Eingabe
• AMBIGUOUS  – die Eingabe ist ein gültiger Anfang einer Regel,
               könnte mit weiteren Zeichen also noch gültig werden
• INVALID    – keine Regel passt, auch nicht teilweise

Ablauf von identify():
----------------------
1. Ergebnis mit INVALID initialisieren
2. Snapshot der Registry holen (Provider-Reihenfolge, dann Regel-Reihenfolge)
3. Regeln der Reihe nach prüfen:
   a. vollständiger Treffer → VALID, Scan endet sofort
   b. Teiltreffer           → AMBIGUOUS; Standard: Scan endet ebenfalls.
      Mit `prefer_valid=True` wird weitergesucht, ein späterer
      vollständiger Treffer überschreibt dann das AMBIGUOUS-Ergebnis.
4. Ergebnis zurückgeben

Die Eingabe wird weder normalisiert noch verändert.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from app.core.errors import UnsupportedTypeError
from app.modules.registry.models import Provider
from app.modules.registry.store import ProviderStore

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------
# Ergebnisobjekte
# --------------------------------------------------------------------
class IdentificationStatus(str, Enum):
    VALID = "VALID"
    AMBIGUOUS = "AMBIGUOUS"
    INVALID = "INVALID"


@dataclass(frozen=True)
class MatchedProvider:
    type: str
    example: str
    actions: Tuple[str, ...] = ()

    @classmethod
    def from_provider(cls, provider: Provider) -> "MatchedProvider":
        return cls(
            type=provider.type,
            example=provider.example,
            actions=tuple(a.id for a in provider.actions),
        )


@dataclass(frozen=True)
class Identification:
    """
    Klassifikationsergebnis. `match` ist genau dann None, wenn der
    Status INVALID ist.
    """

    status: IdentificationStatus
    match: Optional[MatchedProvider] = None

    def __post_init__(self):
        if (self.status is IdentificationStatus.INVALID) != (self.match is None):
            raise ValueError("INVALID carries no provider, VALID/AMBIGUOUS require one")

    @classmethod
    def invalid(cls) -> "Identification":
        return cls(IdentificationStatus.INVALID)

    @classmethod
    def valid(cls, provider: Provider) -> "Identification":
        return cls(IdentificationStatus.VALID, MatchedProvider.from_provider(provider))

    @classmethod
    def ambiguous(cls, provider: Provider) -> "Identification":
        return cls(IdentificationStatus.AMBIGUOUS, MatchedProvider.from_provider(provider))

    @property
    def type(self) -> str:
        return self.match.type if self.match else ""

    @property
    def example(self) -> str:
        return self.match.example if self.match else ""

    @property
    def actions(self) -> Tuple[str, ...]:
        return self.match.actions if self.match else ()

    def as_dict(self) -> dict:
        return {
            "status": self.status.value,
            "type": self.type,
            "example": self.example,
            "actions": list(self.actions),
        }


@dataclass(frozen=True)
class Validity:
    valid: bool
    type: str = ""


# --------------------------------------------------------------------
# Engine
# --------------------------------------------------------------------
class IdentificationEngine:

    def __init__(self, store: ProviderStore, prefer_valid: bool = False):
        self.store = store
        self.prefer_valid = prefer_valid

    def identify(self, text: str) -> Identification:
        result = Identification.invalid()

        for entry in self.store.snapshot():
            pattern = entry.rule.pattern

            if pattern.full_match(text):
                logger.debug("✅ %r → VALID (%s)", text, entry.provider.type)
                return Identification.valid(entry.provider)

            if pattern.prefix_viable(text):
                if not self.prefer_valid:
                    logger.debug("❔ %r → AMBIGUOUS (%s)", text, entry.provider.type)
                    return Identification.ambiguous(entry.provider)
                if result.status is IdentificationStatus.INVALID:
                    result = Identification.ambiguous(entry.provider)

        logger.debug("🔎 %r → %s", text, result.status.value)
        return result

    def is_valid(self, text: str) -> Validity:
        """Prüft die Eingabe gegen alle freigegebenen Typen (nur vollständige Treffer)."""
        provider = self._first_full_match(text)
        if provider is None:
            return Validity(valid=False, type="")
        return Validity(valid=True, type=provider.type)

    def is_valid_for_type(self, text: str, type_: str) -> Validity:
        """
        Prüft die Eingabe ausschließlich gegen die Regeln des freigegebenen
        Providers `type_`. Unbekannte Typen führen zu UnsupportedTypeError.
        """
        provider = self.store.find_approved_provider_by_type(type_)
        if provider is None:
            raise UnsupportedTypeError(f"This type {{{type_}}} is not supported.")

        valid = any(rule.pattern.full_match(text) for rule in provider.rules)
        return Validity(valid=valid, type=type_)

    def provider_for_pid(self, text: str) -> Provider:
        provider = self._first_full_match(text)
        if provider is None:
            raise UnsupportedTypeError(f"{text} doesn't belong to any of the available types.")
        return provider

    def _first_full_match(self, text: str) -> Optional[Provider]:
        for entry in self.store.snapshot():
            if entry.rule.pattern.full_match(text):
                return entry.provider
        return None
