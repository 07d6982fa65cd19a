from typing import Dict, List, Optional, Any, Iterable, Union


class ConfigStore:
    """Hierarchical key/value store with tombstone-based local deletion.

    Lookup order for ``get``:

    1. A key present locally wins, including a tombstone (stored as ``None``),
       which reads as absent and never falls through to parents.
    2. Otherwise every parent ("broker") is asked in list order, each one
       receiving the previous parent's answer as its fallback.

    Because each parent overrides the answer of the one before it, the
    **last** parent that defines a key wins, not the first::

        a = ConfigStore().set("k", "a")
        b = ConfigStore().set("k", "b")
        ConfigStore(a, b).get("k")  # -> "b"

    ``has`` is OR-combined over parents and therefore does not tell which
    parent ``get`` will resolve through.

    ``snapshot`` honours local tombstones: a key deleted here is absent from
    the merged dict even when a parent defines it, matching ``get``. Callers
    expecting parent values to show through a tombstone in serialized form
    must read the parent's snapshot instead.
    """

    def __init__(self, *parents: Union["ConfigStore", Iterable["ConfigStore"]]):
        self._data: Dict[str, Optional[str]] = {}
        self._brokers: List["ConfigStore"] = []
        self.attach(*parents)

    @property
    def parents(self) -> List["ConfigStore"]:
        return list(self._brokers)

    def get(self, key: str, fallback: Optional[str] = None) -> Optional[str]:
        if key in self._data:
            return self._data[key]

        for broker in self._brokers:
            fallback = broker.get(key, fallback)

        return fallback

    def has(self, key: str) -> bool:
        if key in self._data:
            return self._data[key] is not None
        return any(broker.has(key) for broker in self._brokers)

    def set(self, key: str, value: Optional[Any]) -> "ConfigStore":
        """Write locally; ``None`` records a tombstone"""
        self._data[key] = None if value is None else str(value)
        return self

    def delete(self, key: str) -> "ConfigStore":
        return self.set(key, None)

    def clear(self) -> "ConfigStore":
        """Remove local entries only, tombstones included"""
        self._data.clear()
        return self

    def attach(self, *stores: Union["ConfigStore", Iterable["ConfigStore"]]) -> "ConfigStore":
        """Append parent stores; order matters, see ``get``"""
        for item in stores:
            group = item if isinstance(item, (list, tuple)) else [item]
            for store in group:
                if not isinstance(store, ConfigStore):
                    raise TypeError(f"Expected ConfigStore, got {type(store).__name__}")
                if store is self:
                    raise ValueError("A ConfigStore cannot be its own parent")
                self._brokers.append(store)
        return self

    def snapshot(self) -> Dict[str, str]:
        merged: Dict[str, str] = {}
        for broker in self._brokers:
            merged.update(broker.snapshot())

        for key, value in self._data.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value

        return merged

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __repr__(self) -> str:
        return f"ConfigStore(local={len(self._data)}, parents={len(self._brokers)})"
