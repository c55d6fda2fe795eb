"""In-memory object store keyed by (namespace, name)."""

from __future__ import annotations

from typing import Generic, Protocol, TypeVar


class NamespacedObject(Protocol):
    @property
    def namespace(self) -> str: ...

    @property
    def name(self) -> str: ...


T = TypeVar("T", bound=NamespacedObject)


class ObjectStore(Generic[T]):
    """Read-through cache filled by an Informer.

    ``get`` never raises: an absent object is returned as None.
    """

    def __init__(self) -> None:
        self._items: dict[tuple[str, str], T] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._items

    def get(self, namespace: str, name: str) -> T | None:
        return self._items.get((namespace, name))

    def list(self, namespace: str | None = None) -> list[T]:
        if namespace is None:
            return list(self._items.values())
        return [obj for (ns, _), obj in self._items.items() if ns == namespace]

    def upsert(self, obj: T) -> T | None:
        """Insert or replace *obj*; return the previous version, if any."""
        key = (obj.namespace, obj.name)
        old = self._items.get(key)
        self._items[key] = obj
        return old

    def remove(self, namespace: str, name: str) -> T | None:
        return self._items.pop((namespace, name), None)

    def replace(self, objects: list[T]) -> dict[tuple[str, str], T]:
        """Swap the whole content for *objects*; return the previous content."""
        old = self._items
        self._items = {(obj.namespace, obj.name): obj for obj in objects}
        return old
