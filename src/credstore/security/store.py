"""Secure store interface consumed by the key manager, plus an in-memory fake.

A SecureStore is the platform repository for secrets and keys. Entries are
addressed by ItemAttributes (item class, tag, key kind). Implementations report
a StoreStatus instead of raising; the key manager maps those statuses to its
own error taxonomy.
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from credstore.core.models import ItemAttributes, StoreStatus


class SecureStore(ABC):
    """Abstract secure store. Implementations provide platform-specific storage."""

    @abstractmethod
    def insert(self, attributes: ItemAttributes, value: Any) -> StoreStatus:
        """Add a new entry. Returns DUPLICATE if one already exists."""

    @abstractmethod
    def query(self, attributes: ItemAttributes) -> Optional[Any]:
        """Return the stored value, or None if there is no entry."""

    @abstractmethod
    def update(self, attributes: ItemAttributes, value: Any) -> StoreStatus:
        """Replace the value of an existing entry. Returns NOT_FOUND if absent."""

    @abstractmethod
    def erase(self, attributes: ItemAttributes) -> StoreStatus:
        """Remove an entry. Returns NOT_FOUND if there was nothing to remove."""


class MemorySecureStore(SecureStore):
    """Dict-backed store holding values for the lifetime of the process.

    Used as the substitute platform store in tests and in the demo CLI. Values
    are kept as given, so key handles stay handles.
    """

    def __init__(self):
        self._items: Dict[ItemAttributes, Any] = {}
        self._lock = threading.Lock()

    def insert(self, attributes: ItemAttributes, value: Any) -> StoreStatus:
        if not attributes.is_valid() or value is None:
            return StoreStatus.REJECTED
        with self._lock:
            if attributes in self._items:
                return StoreStatus.DUPLICATE
            self._items[attributes] = value
        return StoreStatus.SUCCESS

    def query(self, attributes: ItemAttributes) -> Optional[Any]:
        with self._lock:
            return self._items.get(attributes)

    def update(self, attributes: ItemAttributes, value: Any) -> StoreStatus:
        if not attributes.is_valid() or value is None:
            return StoreStatus.REJECTED
        with self._lock:
            if attributes not in self._items:
                return StoreStatus.NOT_FOUND
            self._items[attributes] = value
        return StoreStatus.SUCCESS

    def erase(self, attributes: ItemAttributes) -> StoreStatus:
        with self._lock:
            if self._items.pop(attributes, None) is None:
                return StoreStatus.NOT_FOUND
        return StoreStatus.SUCCESS

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, attributes: ItemAttributes) -> bool:
        with self._lock:
            return attributes in self._items
