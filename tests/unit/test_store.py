"""
Unit tests for core/store.py

Tests the element arena, chain queries, link validation and persistence.
"""

import json

import pytest

from hydrochain.core.basin import StillingBasinConfig
from hydrochain.core.elements import Channel, Chute
from hydrochain.core.enums import StillingBasinType
from hydrochain.core.store import ElementStore
from hydrochain.errors import ChainIntegrityError, DuplicateElementError, ElementNotFound


def _linked(*elements):
    """Store with the given elements linked in order (bypassing the manager)."""
    for up, down in zip(elements, elements[1:]):
        up.downstream_id = down.id
        down.upstream_id = up.id
    return ElementStore(list(elements))


class TestArena:
    """Test add/get/require/discard."""

    def test_add_and_get(self, store):
        channel = store.add(Channel(id="c1"))

        assert store.get("c1") is channel
        assert "c1" in store
        assert len(store) == 1
        assert store.ids() == ["c1"]

    def test_get_missing_returns_none(self, store):
        assert store.get("nope") is None
        assert store.get(None) is None

    def test_duplicate_raises(self, store):
        store.add(Channel(id="c1"))
        with pytest.raises(DuplicateElementError):
            store.add(Chute(id="c1"))

    def test_require_missing_raises(self, store):
        with pytest.raises(ElementNotFound) as exc_info:
            store.require("ghost")

        assert exc_info.value.element_id == "ghost"
        assert isinstance(exc_info.value, KeyError)

    def test_discard(self, store):
        store.add(Channel(id="c1"))
        store.discard("c1")
        assert "c1" not in store

    def test_iteration_keeps_insertion_order(self, store):
        for element_id in ("b", "a", "c"):
            store.add(Channel(id=element_id))
        assert [e.id for e in store] == ["b", "a", "c"]


class TestChainQueries:
    """Test heads/tails/chains/upstream_ids."""

    def test_heads_and_tails(self):
        store = _linked(Channel(id="a"), Channel(id="b"), Channel(id="c"))
        store.add(Chute(id="lone"))

        assert [e.id for e in store.heads()] == ["a", "lone"]
        assert [e.id for e in store.tails()] == ["c", "lone"]

    def test_chain_from(self):
        store = _linked(Channel(id="a"), Channel(id="b"), Channel(id="c"))
        assert [e.id for e in store.chain_from("a")] == ["a", "b", "c"]
        assert [e.id for e in store.chain_from("b")] == ["b", "c"]

    def test_chains(self):
        store = _linked(Channel(id="a"), Channel(id="b"))
        store.add(Channel(id="x"))
        assert [[e.id for e in chain] for chain in store.chains()] == [["a", "b"], ["x"]]

    def test_upstream_ids_nearest_first(self):
        store = _linked(Channel(id="a"), Channel(id="b"), Channel(id="c"))
        assert store.upstream_ids("c") == ["b", "a"]
        assert store.upstream_ids("a") == []

    def test_chain_from_detects_cycle(self):
        a, b = Channel(id="a"), Channel(id="b")
        a.downstream_id, b.upstream_id = "b", "a"
        b.downstream_id, a.upstream_id = "a", "b"
        store = ElementStore([a, b])

        with pytest.raises(ChainIntegrityError):
            store.chain_from("a")


class TestValidateLinks:
    """Test link integrity checks."""

    def test_consistent_chain(self):
        store = _linked(Channel(id="a"), Channel(id="b"), Chute(id="c"))
        assert store.validate_links() == []

    def test_dangling(self, store):
        channel = Channel(id="a")
        channel.downstream_id = "ghost"
        store.add(channel)

        problems = store.validate_links()
        assert any("dangling downstream_id ghost" in p for p in problems)

    def test_asymmetric(self):
        store = _linked(Channel(id="a"), Channel(id="b"))
        store.get("b").upstream_id = None

        problems = store.validate_links()
        assert any("does not link back" in p for p in problems)

    def test_cycle(self):
        a, b = Channel(id="a"), Channel(id="b")
        a.downstream_id, b.upstream_id = "b", "a"
        b.downstream_id, a.upstream_id = "a", "b"
        store = ElementStore([a, b])

        problems = store.validate_links()
        assert any("part of a cycle" in p for p in problems)


class TestPersistence:
    """Test to_dict/from_dict and file round trip."""

    def _project(self):
        channel = Channel(id="c1", length=50.0, slope=0.01)
        chute = Chute(
            id="r1",
            inlet_length=1.0,
            length=20.0,
            drop=10.0,
            stilling_basin=StillingBasinConfig(StillingBasinType.TYPE_III, 18.0, 2.5, 0.3),
        )
        chute.place(channel.end_station, channel.end_elevation)
        return _linked(channel, chute)

    def test_round_trip(self):
        store = self._project()
        data = store.to_dict()

        assert data["format_version"] == "1.0"
        assert "saved_at" in data

        restored = ElementStore.from_dict(data)
        assert restored.ids() == ["c1", "r1"]
        chute = restored.get("r1")
        assert chute.upstream_id == "c1"
        assert chute.start_station == pytest.approx(50.0)
        assert chute.end_elevation == pytest.approx(-10.5)
        assert chute.stilling_basin.type == StillingBasinType.TYPE_III

    def test_from_dict_rejects_broken_links(self):
        data = self._project().to_dict()
        data["elements"][1]["upstream_id"] = None

        with pytest.raises(ChainIntegrityError) as exc_info:
            ElementStore.from_dict(data)
        assert exc_info.value.details["problems"]

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "project.json"
        self._project().save_to_file(str(path))

        assert json.loads(path.read_text())["elements"][0]["id"] == "c1"

        restored = ElementStore.load_from_file(str(path))
        assert [e.id for e in restored] == ["c1", "r1"]
        assert restored.validate_links() == []
