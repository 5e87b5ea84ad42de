"""An unordered container of object references with reusable slots."""

from __future__ import annotations

from collections.abc import Iterator

__all__ = ["Collection"]

CAPACITY_STEP = 8


class Collection:
    """Objects held in fixed slots that grow eight at a time.

    A removed element leaves an empty slot behind, and the next added
    element fills the first empty slot.  Elements are matched by identity.
    """

    def __init__(self) -> None:
        self._slots: list = [None] * CAPACITY_STEP

    @property
    def capacity(self) -> int:
        """Number of slots, used or free."""
        return len(self._slots)

    def add(self, element) -> None:
        """Store ``element`` in the first free slot, growing if none is free."""
        if element is None:
            raise ValueError("None cannot be stored in a collection")
        for index, slot in enumerate(self._slots):
            if slot is None:
                self._slots[index] = element
                return
        first_new = len(self._slots)
        self._slots.extend([None] * CAPACITY_STEP)
        self._slots[first_new] = element

    def remove(self, element) -> None:
        """Free the slot that holds ``element``; raises ValueError if absent."""
        for index, slot in enumerate(self._slots):
            if slot is not None and slot is element:
                self._slots[index] = None
                return
        raise ValueError(
            f"element {element!r} not present in collection (capacity {self.capacity})"
        )

    def count(self) -> int:
        """Return the number of stored elements."""
        return sum(1 for slot in self._slots if slot is not None)

    def copy(self) -> "Collection":
        """Return a new collection with the same slots holding the same objects."""
        clone = type(self)()
        clone._slots = list(self._slots)
        return clone

    def __iter__(self) -> Iterator:
        return (slot for slot in self._slots if slot is not None)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, element) -> bool:
        return any(slot is element for slot in self._slots if slot is not None)

    def __repr__(self) -> str:
        return f"Collection(count={self.count()}, capacity={self.capacity})"