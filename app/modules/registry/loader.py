"""
loader.py
==============================

Lädt Aktionen und vorregistrierte Provider aus einer JSON-Datei
(Standard: app/data/providers.json).

Format:
    {
      "actions":   [{"id": "landingpage", "name": "Landing page", "mode": "landingpage"}, ...],
      "providers": [{"type": "doi", "name": "...", "description": "...",
                     "example": "...", "status": "APPROVED",
                     "actions": ["landingpage"], "regexes": ["..."]}, ...]
    }
"""

import json
import logging
from pathlib import Path
from typing import Union

from app.modules.registry.models import Action, ProviderRequest, ProviderStatus
from app.modules.registry.provider_service import ProviderService

logger = logging.getLogger(__name__)


def load_providers_file(path: Union[str, Path], service: ProviderService) -> int:
    """
    Registriert alle Aktionen und Provider der Datei im Store des Services.
    Gibt die Anzahl geladener Provider zurück.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    for raw in data.get("actions", []):
        service.store.add_action(Action(id=raw["id"], name=raw.get("name", raw["id"]), mode=raw["mode"]))

    count = 0
    for raw in data.get("providers", []):
        status = ProviderStatus(raw.get("status", ProviderStatus.APPROVED.value))
        request = ProviderRequest(
            name=raw["name"],
            type=raw["type"],
            description=raw.get("description", ""),
            example=raw.get("example", ""),
            actions=raw.get("actions", []),
            regexes=raw["regexes"],
        )
        service.create(request, created_by=raw.get("created_by"), status=status)
        count += 1

    logger.info("📦 %d Provider aus %s geladen", count, path.name)
    return count
