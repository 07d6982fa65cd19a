import pytest

from parley import ConfigStore


class TestGet:
    def test_local_value_wins(self):
        parent = ConfigStore().set("k", "parent")
        child = ConfigStore(parent).set("k", "child")
        assert child.get("k") == "child"

    def test_last_parent_wins(self):
        first = ConfigStore().set("k", "first")
        second = ConfigStore().set("k", "second")
        child = ConfigStore(first, second)
        assert child.get("k") == second.get("k") == "second"

    def test_earlier_parent_used_when_later_lacks_key(self):
        first = ConfigStore().set("k", "first")
        second = ConfigStore().set("other", "x")
        assert ConfigStore(first, second).get("k") == "first"

    def test_fallback_when_nobody_defines_key(self):
        child = ConfigStore(ConfigStore(), ConfigStore())
        assert child.get("missing") is None
        assert child.get("missing", "default") == "default"

    def test_parents_attached_later_participate(self):
        child = ConfigStore()
        assert child.get("k") is None
        child.attach(ConfigStore().set("k", "late"))
        assert child.get("k") == "late"

    def test_attach_flattens_lists(self):
        a = ConfigStore().set("a", "1")
        b = ConfigStore().set("b", "2")
        child = ConfigStore([a, b])
        assert child.parents == [a, b]
        assert child.get("b") == "2"

    def test_attach_rejects_foreign_objects(self):
        with pytest.raises(TypeError):
            ConfigStore({"k": "v"})

    def test_values_are_strings(self):
        store = ConfigStore().set("retries", 3)
        assert store.get("retries") == "3"


class TestTombstones:
    def test_local_tombstone_masks_parent(self):
        parent = ConfigStore().set("k", "v")
        child = ConfigStore(parent).set("k", None)

        assert child.get("k") is None
        assert child.has("k") is False
        assert parent.has("k") is True
        assert parent.get("k") == "v"

    def test_tombstone_ignores_fallback(self):
        child = ConfigStore().delete("k")
        assert child.get("k", "fallback") is None

    def test_clear_removes_tombstones_too(self):
        parent = ConfigStore().set("k", "v")
        child = ConfigStore(parent).delete("k")
        child.clear()
        assert child.get("k") == "v"
        assert parent.get("k") == "v"

    def test_delete_is_set_none(self):
        store = ConfigStore().set("k", "v").delete("k")
        assert "k" not in store


class TestHas:
    def test_any_parent_satisfies_has(self):
        first = ConfigStore().set("k", "v")
        second = ConfigStore()
        assert ConfigStore(first, second).has("k")

    def test_has_true_while_get_resolves_through_tombstoning_parent(self):
        # has() is OR-combined, get() is last-wins: they can disagree
        first = ConfigStore().set("k", "v")
        second = ConfigStore().delete("k")
        child = ConfigStore(first, second)
        assert child.has("k") is True
        assert child.get("k") is None


class TestSnapshot:
    def test_later_parents_override_and_local_on_top(self):
        first = ConfigStore().set("a", "1").set("b", "1")
        second = ConfigStore().set("b", "2").set("c", "2")
        child = ConfigStore(first, second).set("c", "local")
        assert child.snapshot() == {"a": "1", "b": "2", "c": "local"}

    def test_tombstoned_keys_are_dropped(self):
        parent = ConfigStore().set("a", "1").set("b", "2")
        child = ConfigStore(parent).delete("a")
        assert child.snapshot() == {"b": "2"}
        assert parent.snapshot() == {"a": "1", "b": "2"}
