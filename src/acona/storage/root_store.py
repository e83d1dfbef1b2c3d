"""acona composite (root) store.

Aggregates named child stores into one virtual namespace. The first segment
of every path selects the child store; the remainder is forwarded to it, and
paths of returned objects are re-prefixed with the child's name so they stay
addressable through the composite.

The composite never recurses into a child's tree: it relies on each child's
own ``list_tree`` being correct for its subtree. Composites can be children
of other composites.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import BinaryIO

from acona.storage.errors import CantMoveError, ObjectNotFoundError
from acona.storage.models import PrefixedObject, RootDirectoryObject, StoreObject
from acona.storage.object_store import Store
from acona.storage.paths import split_route
from acona.storage.tracing import traced_store_operation

logger = logging.getLogger(__name__)


class RootStore(Store):
    """Store routing every call to one of its named child stores.

    Child names are expected to be unique. When they are not, the first
    child with a matching name wins and later ones are unreachable.
    """

    def __init__(self, name: str, root: str = "", stores: Iterable[Store] = ()) -> None:
        """Initialize a composite store.

        Args:
            name: Store name, used as routing key by an enclosing composite.
            root: Root identity.
            stores: Child stores, in listing order. Copied; the routing table
                is read-only after construction.
        """
        self._name = name
        self._root = root
        self._stores: tuple[Store, ...] = tuple(stores)

        logger.debug(
            "RootStore %s initialized with stores=%s",
            name,
            [store.name for store in self._stores],
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def root(self) -> str:
        return self._root

    @property
    def backend_name(self) -> str:
        return "root"

    @property
    def stores(self) -> tuple[Store, ...]:
        """Return the child stores in routing order."""
        return self._stores

    def resolve(self, path: str) -> tuple[Store, str]:
        """Find the child store owning a path.

        Returns:
            The child store and the path to forward to it ("" addresses the
            child's own root).

        Raises:
            ObjectNotFoundError: If no child is named after the first segment.
        """
        store_name, child_path = split_route(path)
        for store in self._stores:
            if store.name == store_name:
                return store, child_path
        raise ObjectNotFoundError(path=path)

    @staticmethod
    def _is_root(path: str) -> bool:
        return not path.strip().strip("/")

    @traced_store_operation("put_object")
    def put_object(self, stream: BinaryIO, path: str, client_checksum: str = "") -> None:
        store, child_path = self.resolve(path)
        store.put_object(stream, child_path, client_checksum)

    @traced_store_operation("get_object")
    def get_object(self, path: str) -> BinaryIO:
        store, child_path = self.resolve(path)
        return store.get_object(child_path)

    @traced_store_operation("examine")
    def examine(self, path: str) -> StoreObject:
        """Examine an object, re-prefixing its path with the child's name.

        The composite's own root is described as a synthetic directory.
        """
        if self._is_root(path):
            return RootDirectoryObject(self._name)
        store, child_path = self.resolve(path)
        return PrefixedObject(store.name, store.examine(child_path))

    def _list_root(self) -> list[StoreObject]:
        """Describe every child store as one directory entry."""
        return [PrefixedObject(store.name, store.examine("")) for store in self._stores]

    @traced_store_operation("list_tree")
    def list_tree(self, path: str) -> list[StoreObject]:
        """List a directory; the root lists the child stores themselves."""
        if self._is_root(path):
            return self._list_root()
        store, child_path = self.resolve(path)
        return [PrefixedObject(store.name, obj) for obj in store.list_tree(child_path)]

    @traced_store_operation("remove")
    def remove(self, path: str) -> None:
        """Remove through the owning child.

        A bare child name forwards ``""``, which removes the child's whole
        root; the composite root listing then fails until it is recreated.
        """
        store, child_path = self.resolve(path)
        store.remove(child_path)

    @traced_store_operation("rename")
    def rename(self, source_path: str, target_path: str) -> None:
        """Rename within a single child store.

        Raises:
            CantMoveError: If source and target belong to different children.
        """
        source_store, source_child = self.resolve(source_path)
        target_store, target_child = self.resolve(target_path)
        if source_store.name != target_store.name:
            raise CantMoveError(path=source_path)
        source_store.rename(source_child, target_child)
