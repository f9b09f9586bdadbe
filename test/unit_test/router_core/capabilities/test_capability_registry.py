from __future__ import annotations

import threading

import pytest
from conftest import ScriptedCapability

from switchboard_ai.router_core.capabilities.base import CapabilityRecord
from switchboard_ai.router_core.capabilities.registry import CapabilityRegistry
from switchboard_ai.router_core.errors import DuplicateIdentifier


def _record(cid: str) -> CapabilityRecord:
    return CapabilityRecord(id=cid, description=f"{cid} capability", capability=ScriptedCapability())


def test_registry_empty() -> None:
    reg = CapabilityRegistry()
    assert reg.list() == ()
    assert len(reg) == 0
    assert reg.has("a") is False


def test_registry_get_missing_raises_keyerror() -> None:
    reg = CapabilityRegistry()
    with pytest.raises(KeyError, match="unknown capability"):
        reg.get("a")


def test_registry_register_then_get_returns_same_record() -> None:
    reg = CapabilityRegistry()
    rec = _record("a")
    reg.register(rec)

    assert reg.has("a")
    assert "a" in reg
    assert reg.get("a") is rec


def test_registry_rejects_duplicate_identifier() -> None:
    reg = CapabilityRegistry()
    reg.register(_record("a"))
    with pytest.raises(DuplicateIdentifier, match="'a'"):
        reg.register(_record("a"))
    assert len(reg) == 1


def test_registry_list_preserves_insertion_order() -> None:
    reg = CapabilityRegistry()
    for cid in ("c", "a", "b"):
        reg.register(_record(cid))
    assert [r.id for r in reg.list()] == ["c", "a", "b"]


def test_unregister_absent_is_noop() -> None:
    reg = CapabilityRegistry()
    reg.register(_record("a"))
    reg.unregister("missing")
    assert [r.id for r in reg.list()] == ["a"]


def test_unregister_then_reregister_goes_to_the_end() -> None:
    reg = CapabilityRegistry()
    for cid in ("a", "b"):
        reg.register(_record(cid))
    reg.unregister("a")
    reg.register(_record("a"))
    assert [r.id for r in reg.list()] == ["b", "a"]


def test_snapshot_is_not_affected_by_later_mutation() -> None:
    reg = CapabilityRegistry()
    reg.register(_record("a"))
    snapshot = reg.list()

    reg.register(_record("b"))
    reg.unregister("a")

    assert [r.id for r in snapshot] == ["a"]
    assert [r.id for r in reg.list()] == ["b"]


def test_register_all_is_all_or_nothing() -> None:
    reg = CapabilityRegistry()
    reg.register(_record("a"))

    with pytest.raises(DuplicateIdentifier):
        reg.register_all([_record("b"), _record("a")])
    assert [r.id for r in reg.list()] == ["a"]

    with pytest.raises(DuplicateIdentifier):
        reg.register_all([_record("c"), _record("c")])

    reg.register_all([_record("b"), _record("c")])
    assert [r.id for r in reg.list()] == ["a", "b", "c"]


def test_register_capability_builds_record() -> None:
    reg = CapabilityRegistry()
    cap = ScriptedCapability()
    rec = reg.register_capability("a", cap, "does a")
    assert rec.capability is cap
    assert reg.get("a").description == "does a"


def test_record_requires_identifier() -> None:
    with pytest.raises(ValueError):
        CapabilityRecord(id=" ", description="", capability=ScriptedCapability())


def test_concurrent_registration_keeps_unique_ids() -> None:
    reg = CapabilityRegistry()
    errors: list[Exception] = []

    def _worker() -> None:
        for i in range(50):
            try:
                reg.register(_record(f"cap-{i}"))
            except DuplicateIdentifier as e:
                errors.append(e)

    threads = [threading.Thread(target=_worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    ids = [r.id for r in reg.list()]
    assert len(ids) == len(set(ids)) == 50
    assert len(errors) == 150


def test_list_and_lookup_agree_while_writers_run() -> None:
    reg = CapabilityRegistry()
    reg.register(_record("base"))
    stop = threading.Event()
    mismatches: list[str] = []

    def _writer() -> None:
        while not stop.is_set():
            reg.register(_record("flip"))
            reg.unregister("flip")

    def _reader() -> None:
        for _ in range(2000):
            for rec in reg.list():
                if not reg.has(rec.id) and rec.id != "flip":
                    mismatches.append(rec.id)
            assert reg.get("base").id == "base"

    writer = threading.Thread(target=_writer)
    writer.start()
    try:
        _reader()
    finally:
        stop.set()
        writer.join()

    assert mismatches == []
    assert [r.id for r in reg.list()] == ["base"]


def test_index_is_read_only() -> None:
    reg = CapabilityRegistry()
    reg.register(_record("a"))
    with pytest.raises(TypeError):
        reg._snapshot[1]["b"] = _record("b")  # type: ignore[index]
