"""
ItemCollection - Versioned, copy-on-write list of Items.
"""

from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from .item import Item


class ItemCollection:
    """
    Ordered collection of Items.

    The collection holds an immutable tuple that is swapped wholesale on
    every mutation, and ``version`` increases with each swap. Readers that
    grabbed ``items`` earlier keep a consistent snapshot.

    ``initial_handles`` are references to images stored before this
    collection was created. They come first in ``handles()``, count toward
    ``total`` and cannot be changed here. While any exist and no item has
    been picked, the first of them is the main image; otherwise exactly one
    item has ``is_main`` whenever the collection is non-empty.
    """

    def __init__(self, items: Iterable[Item] = (), initial_handles: Iterable[str] = ()):
        self.initial_handles: Tuple[str, ...] = tuple(initial_handles)
        self._items: Tuple[Item, ...] = ()
        self.version = 0
        self._commit(tuple(items))

    @property
    def items(self) -> Tuple[Item, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    @property
    def total(self) -> int:
        """Stored images plus items, as counted against capacity."""
        return len(self.initial_handles) + len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

    def __contains__(self, item_id: str) -> bool:
        return self.get(item_id) is not None

    def get(self, item_id: str) -> Optional[Item]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    @property
    def main_item(self) -> Optional[Item]:
        for item in self._items:
            if item.is_main:
                return item
        return None

    @property
    def main_handle(self) -> Optional[str]:
        """Handle of the main image, whether it is an item or a stored image."""
        main = self.main_item
        if main is not None:
            return main.handle
        if self.initial_handles:
            return self.initial_handles[0]
        return None

    def handles(self) -> List[str]:
        """Stored handles, then live item handles in collection order."""
        return list(self.initial_handles) + [item.handle for item in self._items if item.handle is not None]

    def append(self, new_items: Iterable[Item]) -> None:
        """Add items at the end, keeping their order."""
        self._commit(self._items + tuple(new_items))

    def remove(self, item_id: str) -> Optional[Item]:
        """Drop an item. Returns the removed item, or None if it was absent."""
        removed = self.get(item_id)
        if removed is None:
            return None
        self._commit(tuple(item for item in self._items if item.id != item_id))
        return removed

    def update(self, item_id: str, change: Callable[[Item], Item]) -> Optional[Item]:
        """
        Replace one item with ``change(item)``.

        Returns the new item, or None if ``item_id`` is no longer present.
        """
        current = self.get(item_id)
        if current is None:
            return None
        updated = change(current)
        self._commit(tuple(updated if item.id == item_id else item for item in self._items))
        return updated

    def set_main(self, item_id: str) -> Item:
        """
        Make ``item_id`` the main item and clear the flag everywhere else.

        Raises:
            KeyError: If the item is not in the collection
        """
        if self.get(item_id) is None:
            raise KeyError(item_id)
        self._commit(tuple(
            item if item.is_main == (item.id == item_id) else item.evolve(is_main=item.id == item_id)
            for item in self._items
        ))
        return self.get(item_id)

    def move(self, item_id: str, index: int) -> Item:
        """
        Move ``item_id`` to position ``index`` among the items.

        ``index`` is clamped to the valid range. The main flag travels with
        the item.

        Raises:
            KeyError: If the item is not in the collection
        """
        moving = self.get(item_id)
        if moving is None:
            raise KeyError(item_id)
        rest = [item for item in self._items if item.id != item_id]
        index = max(0, min(index, len(rest)))
        rest.insert(index, moving)
        self._commit(tuple(rest))
        return self.get(item_id)

    def _commit(self, items: Tuple[Item, ...]) -> None:
        self._items = self._ensure_single_main(items)
        self.version += 1

    def _ensure_single_main(self, items: Tuple[Item, ...]) -> Tuple[Item, ...]:
        if not items:
            return items

        default = -1 if self.initial_handles else 0
        main_index = next((i for i, item in enumerate(items) if item.is_main), default)
        return tuple(
            item if item.is_main == (i == main_index) else item.evolve(is_main=i == main_index)
            for i, item in enumerate(items)
        )
