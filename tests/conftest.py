"""
Shared fixtures for the meta-resolver tests.

Every test works against a fresh in-memory registry; nothing here touches
the bundled providers.json unless a test asks for it explicitly.
"""

import pytest
from typing import List, Optional

from app.modules.identification.engine import IdentificationEngine
from app.modules.registry.models import Action, ProviderRequest, ProviderStatus
from app.modules.registry.provider_service import ProviderService
from app.modules.registry.store import ProviderStore


ACTIONS = [
    Action(id="landingpage", name="Landing page", mode="landingpage"),
    Action(id="metadata", name="Metadata", mode="metadata"),
    Action(id="resource", name="Resource", mode="resource"),
]


@pytest.fixture
def store():
    """Empty store that knows the standard actions."""
    return ProviderStore(actions=ACTIONS)


@pytest.fixture
def service(store):
    return ProviderService(store)


@pytest.fixture
def engine(store):
    return IdentificationEngine(store)


@pytest.fixture
def register(service):
    """Factory registering a provider directly with the given status."""

    def _register(
        type_: str,
        regexes: List[str],
        status: ProviderStatus = ProviderStatus.APPROVED,
        example: str = "",
        actions: Optional[List[str]] = None,
    ):
        request = ProviderRequest(
            name=f"{type_} provider",
            type=type_,
            description=f"Identifiers of type {type_}",
            example=example or f"{type_}-example",
            actions=actions if actions is not None else ["landingpage"],
            regexes=regexes,
        )
        return service.create(request, status=status)

    return _register


@pytest.fixture
def ark_doi(register):
    """Registry from the reference scenario: ark first, then doi."""
    ark = register("ark", [r"ark:/\d{5}/.*"], example="ark:/13030/tf5p30086k",
                   actions=["landingpage", "metadata"])
    doi = register("doi", [r"10\.\d{4,9}/.*"], example="10.1000/182")
    return ark, doi
