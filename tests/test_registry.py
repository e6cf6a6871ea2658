"""
Tests for the provider registry: store snapshots, provider management
and loading providers from a JSON file.
"""

import json
import threading

import pytest

from app.core.errors import ConflictError, NotFoundError, PatternSyntaxError
from app.modules.registry.loader import load_providers_file
from app.modules.registry.models import (
    AdminProviderDto,
    ProviderDto,
    ProviderRequest,
    ProviderStatus,
    UpdateProviderRequest,
)
from app.modules.registry.store import ProviderStore


# =============================================================================
# STORE / SNAPSHOT
# =============================================================================

class TestSnapshot:

    def test_empty_store(self, store):
        assert store.snapshot() == ()

    def test_only_approved_providers(self, store, register):
        register("a", [r"a"])
        register("b", [r"b"], status=ProviderStatus.PENDING)
        register("c", [r"c"], status=ProviderStatus.REJECTED)

        types = [entry.provider.type for entry in store.snapshot()]
        assert types == ["a"]

    def test_order_by_registration_then_rule(self, store, register):
        register("first", [r"1a", r"1b"])
        register("second", [r"2a"])
        register("third", [r"3a", r"3b"])

        sources = [entry.rule.source for entry in store.snapshot()]
        assert sources == ["1a", "1b", "2a", "3a", "3b"]

    def test_order_stable_after_status_change(self, store, service, register):
        first = register("first", [r"1"], status=ProviderStatus.PENDING)
        register("second", [r"2"])

        service.update_status(first.id, ProviderStatus.APPROVED)

        assert [e.provider.type for e in store.snapshot()] == ["first", "second"]

    def test_snapshot_is_detached_from_later_changes(self, store, service, register):
        provider = register("a", [r"a"])
        snapshot = store.snapshot()

        service.update_status(provider.id, ProviderStatus.DEPRECATED)

        assert len(snapshot) == 1
        assert store.snapshot() == ()

    def test_list_approved_rules_is_snapshot(self, store, register):
        register("a", [r"a"])
        assert store.list_approved_rules() == store.snapshot()

    def test_find_approved_provider_by_type(self, store, register):
        register("a", [r"a"])
        register("p", [r"p"], status=ProviderStatus.PENDING)

        assert store.find_approved_provider_by_type("a").type == "a"
        assert store.find_approved_provider_by_type("p") is None
        assert store.find_approved_provider_by_type("missing") is None

    def test_page(self, store, register):
        for i in range(5):
            register(f"t{i}", [rf"{i}"])

        page = store.page(1, 2)
        assert [p.type for p in page.items] == ["t2", "t3"]
        assert page.total == 5

    def test_add_duplicate_id_rejected(self, store, register):
        provider = register("a", [r"a"])
        with pytest.raises(KeyError):
            store.add(provider)


# =============================================================================
# PROVIDER SERVICE
# =============================================================================

class TestCreateProvider:

    def _request(self, **overrides):
        data = dict(
            name="Digital Object Identifier",
            type="doi",
            description="DOI",
            example="10.1000/182",
            actions=["landingpage", "metadata"],
            regexes=[r"10\.\d{4,9}/.*"],
        )
        data.update(overrides)
        return ProviderRequest(**data)

    def test_new_provider_is_pending(self, service):
        provider = service.create(self._request(), created_by="user-1")

        assert provider.status is ProviderStatus.PENDING
        assert provider.created_by == "user-1"
        assert [a.id for a in provider.actions] == ["landingpage", "metadata"]
        assert [r.source for r in provider.rules] == [r"10\.\d{4,9}/.*"]

    def test_pending_provider_not_in_snapshot(self, service, store):
        service.create(self._request())
        assert store.snapshot() == ()

    def test_duplicate_type_conflicts(self, service):
        service.create(self._request())
        with pytest.raises(ConflictError) as exc_info:
            service.create(self._request(name="Other"))
        assert exc_info.value.code == 409

    def test_unknown_action_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.create(self._request(actions=["teleport"]))

    def test_malformed_rule_rejected(self, service, store):
        with pytest.raises(PatternSyntaxError):
            service.create(self._request(regexes=[r"10\.(\d{4"]))
        assert store.list_providers() == []

    def test_rules_bound_to_provider(self, service):
        provider = service.create(self._request(regexes=[r"a", r"b"]))
        assert {r.provider_id for r in provider.rules} == {provider.id}


class TestUpdateProvider:

    def test_partial_update_resets_status(self, service, register):
        provider = register("ark", [r"ark:/\d{5}/.*"])

        updated = service.update(provider.id, UpdateProviderRequest(description="new text"))

        assert updated.description == "new text"
        assert updated.name == provider.name
        assert updated.status is ProviderStatus.PENDING

    def test_rules_replaced_wholesale(self, service, register):
        provider = register("ark", [r"a", r"b"])

        updated = service.update(provider.id, UpdateProviderRequest(regexes=[r"c"]))

        assert [r.source for r in updated.rules] == ["c"]

    def test_empty_lists_keep_rules_and_actions(self, service, register):
        provider = register("ark", [r"a"], actions=["metadata"])

        updated = service.update(provider.id, UpdateProviderRequest(name="ARK"))

        assert [r.source for r in updated.rules] == ["a"]
        assert [a.id for a in updated.actions] == ["metadata"]

    def test_type_change_to_existing_type_conflicts(self, service, register):
        register("ark", [r"a"])
        doi = register("doi", [r"d"])

        with pytest.raises(ConflictError):
            service.update(doi.id, UpdateProviderRequest(type="ark"))

    def test_malformed_rule_keeps_old_provider(self, service, register):
        provider = register("ark", [r"a"])

        with pytest.raises(PatternSyntaxError):
            service.update(provider.id, UpdateProviderRequest(regexes=["("]))

        assert service.get(provider.id).status is ProviderStatus.APPROVED

    def test_unknown_provider(self, service):
        with pytest.raises(NotFoundError):
            service.update(99, UpdateProviderRequest(name="x"))


class TestOtherOperations:

    def test_get_missing(self, service):
        with pytest.raises(NotFoundError) as exc_info:
            service.get(42)
        assert "42" in exc_info.value.message

    def test_delete(self, service, register, store):
        provider = register("ark", [r"a"])

        assert service.delete(provider.id) is True
        assert service.delete(provider.id) is False
        assert store.snapshot() == ()

    def test_update_status(self, service, register):
        provider = register("ark", [r"a"], status=ProviderStatus.PENDING)

        updated = service.update_status(provider.id, ProviderStatus.APPROVED)

        assert updated.status is ProviderStatus.APPROVED

    def test_resolution_modes(self, service):
        assert service.resolution_modes() == {"landingpage", "metadata", "resource"}

    def test_public_page_only_approved(self, service, register):
        register("a", [r"a"])
        register("p", [r"p"], status=ProviderStatus.PENDING)

        assert [p.type for p in service.page(0, 10).items] == ["a"]
        assert service.page(0, 10, approved_only=False).total == 2


class TestDtos:

    def test_provider_dto(self, register):
        provider = register("ark", [r"ark:/\d{5}/.*"], actions=["landingpage", "metadata"])

        dto = ProviderDto.from_provider(provider)

        assert dto.type == "ark"
        assert dto.regexes == [r"ark:/\d{5}/.*"]
        assert [a.mode for a in dto.actions] == ["landingpage", "metadata"]

    def test_admin_dto_carries_status(self, register):
        provider = register("ark", [r"a"], status=ProviderStatus.REJECTED)

        dto = AdminProviderDto.from_provider(provider)

        assert dto.status is ProviderStatus.REJECTED


# =============================================================================
# LOADER
# =============================================================================

class TestLoadProvidersFile:

    def test_loads_actions_and_providers(self, tmp_path, service):
        path = tmp_path / "providers.json"
        path.write_text(json.dumps({
            "actions": [{"id": "download", "name": "Download", "mode": "resource"}],
            "providers": [
                {"type": "ark", "name": "ARK", "regexes": [r"ark:/\d{5}/.*"], "actions": ["download"]},
                {"type": "draft", "name": "Draft", "regexes": ["d"], "status": "PENDING"},
            ],
        }), encoding="utf-8")

        count = load_providers_file(path, service)

        assert count == 2
        assert service.store.find_approved_provider_by_type("ark").actions[0].id == "download"
        assert service.store.find_by_type("draft").status is ProviderStatus.PENDING

    def test_bundled_file_is_loadable(self):
        from app.core.config import BASE_DIR
        from app.modules.registry.provider_service import ProviderService

        service = ProviderService(ProviderStore())
        count = load_providers_file(BASE_DIR / "app" / "data" / "providers.json", service)

        assert count > 0
        assert service.store.find_approved_provider_by_type("doi") is not None

    def test_malformed_rule_in_file_fails(self, tmp_path, service):
        path = tmp_path / "providers.json"
        path.write_text(json.dumps({
            "providers": [{"type": "bad", "name": "Bad", "regexes": ["("]}],
        }), encoding="utf-8")

        with pytest.raises(PatternSyntaxError):
            load_providers_file(path, service)


# =============================================================================
# CONCURRENT MUTATIONS
# =============================================================================

class TestConcurrentMutations:
    """Type uniqueness and read-modify-write must hold across threads."""

    def test_parallel_creates_of_same_type(self, service, store, monkeypatch):
        barrier = threading.Barrier(2)
        original_find = store.find_by_type

        def find_then_wait(type_):
            found = original_find(type_)
            barrier.wait(timeout=5)
            return found

        monkeypatch.setattr(store, "find_by_type", find_then_wait)

        created, conflicts = [], []

        def worker(name):
            request = ProviderRequest(name=name, type="doi", regexes=[r"10\.\d{4,9}/.*"])
            try:
                created.append(service.create(request))
            except ConflictError:
                conflicts.append(name)

        threads = [threading.Thread(target=worker, args=(n,)) for n in ("one", "two")]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert len(created) == 1
        assert len(conflicts) == 1
        assert [p.type for p in store.list_providers()] == ["doi"]

    def test_store_rejects_duplicate_type(self, store, register):
        ark = register("ark", [r"a"])
        doi = register("doi", [r"d"])

        with pytest.raises(ConflictError):
            store.replace(doi.with_changes(type="ark"))
        with pytest.raises(ConflictError):
            store.add(ark.with_changes(id=store.next_id()))

        assert store.get(doi.id).type == "doi"

    def test_approval_applies_to_current_rules(self, service, store, register, monkeypatch):
        provider = register("ark", [r"a"], status=ProviderStatus.PENDING)
        original_update = store.update
        pending_edit = [True]

        def edit_lands_first(provider_id, change):
            # the edit completes between the approval request and its write
            if pending_edit:
                pending_edit.clear()
                service.update(provider_id, UpdateProviderRequest(regexes=["new"]))
            return original_update(provider_id, change)

        monkeypatch.setattr(store, "update", edit_lands_first)

        service.update_status(provider.id, ProviderStatus.APPROVED)

        stored = store.get(provider.id)
        assert [r.source for r in stored.rules] == ["new"]
        assert stored.status is ProviderStatus.APPROVED

    def test_parallel_edit_and_approval_keep_both_changes(self, service, store, register):
        provider = register("ark", [r"a"], status=ProviderStatus.PENDING)
        inside, release = threading.Event(), threading.Event()

        def slow_edit(current):
            inside.set()
            release.wait(timeout=5)
            return current.with_changes(description="edited")

        editor = threading.Thread(target=store.update, args=(provider.id, slow_edit))
        editor.start()
        assert inside.wait(timeout=5)

        approver = threading.Thread(
            target=service.update_status, args=(provider.id, ProviderStatus.APPROVED)
        )
        approver.start()
        release.set()
        editor.join(timeout=10)
        approver.join(timeout=10)

        stored = store.get(provider.id)
        assert stored.description == "edited"
        assert stored.status is ProviderStatus.APPROVED

    def test_update_of_deleted_provider(self, service, register):
        provider = register("ark", [r"a"])
        service.delete(provider.id)

        with pytest.raises(NotFoundError):
            service.update_status(provider.id, ProviderStatus.APPROVED)
