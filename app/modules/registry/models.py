"""
models.py
==============================

Datenmodell der Provider-Registry
---------------------------------

Interne Objekte (dataclasses, unveränderlich):
  • Action    – Auflösungsaktion eines Providers (Name + Modus)
  • Rule      – kompilierte Regel eines Providers
  • Provider  – Identifier-Schema mit Metadaten, Aktionen und Regeln

Transportobjekte für die REST-Schicht (pydantic):
  • ProviderRequest / UpdateProviderRequest / StatusUpdateRequest
  • ProviderDto / AdminProviderDto / ActionDto
  • IdentificationDto / ValidityDto / InformativeResponse
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from app.modules.identification.pattern_compiler import CompiledPattern


# --------------------------------------------------------------------
# Status eines Providers
# --------------------------------------------------------------------
class ProviderStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    DEPRECATED = "DEPRECATED"


# --------------------------------------------------------------------
# Interne Objekte
# --------------------------------------------------------------------
@dataclass(frozen=True)
class Action:
    id: str
    name: str
    mode: str


@dataclass(frozen=True)
class Rule:
    provider_id: int
    pattern: CompiledPattern

    @property
    def source(self) -> str:
        return self.pattern.source


@dataclass(frozen=True)
class Provider:
    id: int
    type: str
    name: str
    description: str
    example: str
    status: ProviderStatus = ProviderStatus.PENDING
    actions: Tuple[Action, ...] = ()
    rules: Tuple[Rule, ...] = ()
    created_by: Optional[str] = None

    @property
    def approved(self) -> bool:
        return self.status is ProviderStatus.APPROVED

    def with_changes(self, **changes) -> "Provider":
        return replace(self, **changes)


# --------------------------------------------------------------------
# Anfragen
# --------------------------------------------------------------------
class ProviderRequest(BaseModel):
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    description: str = ""
    example: str = ""
    actions: List[str] = Field(default_factory=list)
    regexes: List[str] = Field(min_length=1)


class UpdateProviderRequest(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    example: Optional[str] = None
    actions: List[str] = Field(default_factory=list)
    regexes: List[str] = Field(default_factory=list)


class StatusUpdateRequest(BaseModel):
    status: ProviderStatus


# --------------------------------------------------------------------
# Antworten
# --------------------------------------------------------------------
class ActionDto(BaseModel):
    id: str
    name: str
    mode: str

    @classmethod
    def from_action(cls, action: Action) -> "ActionDto":
        return cls(id=action.id, name=action.name, mode=action.mode)


class ProviderDto(BaseModel):
    id: int
    type: str
    name: str
    description: str
    example: str
    actions: List[ActionDto] = Field(default_factory=list)
    regexes: List[str] = Field(default_factory=list)

    @classmethod
    def from_provider(cls, provider: Provider) -> "ProviderDto":
        return cls(
            id=provider.id,
            type=provider.type,
            name=provider.name,
            description=provider.description,
            example=provider.example,
            actions=[ActionDto.from_action(a) for a in provider.actions],
            regexes=[r.source for r in provider.rules],
        )


class AdminProviderDto(ProviderDto):
    status: ProviderStatus
    created_by: Optional[str] = None

    @classmethod
    def from_provider(cls, provider: Provider) -> "AdminProviderDto":
        base = ProviderDto.from_provider(provider)
        return cls(**base.model_dump(), status=provider.status, created_by=provider.created_by)


class IdentificationDto(BaseModel):
    status: str
    type: str = ""
    example: str = ""
    actions: List[str] = Field(default_factory=list)


class ValidityDto(BaseModel):
    valid: bool
    type: str = ""


class InformativeResponse(BaseModel):
    code: int
    message: str


@dataclass
class ProviderPage:
    """Ausschnitt einer Providerliste inkl. Gesamtzahl."""

    items: List[Provider] = field(default_factory=list)
    total: int = 0
