"""acona Store interface definition.

Provides the Store abstract base class that all storage backends implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO

from acona.storage.models import StoreObject


class Store(ABC):
    """Abstract base class for storage backends.

    A store is a named, rooted handle to a backend. Its ``name`` is the
    routing key inside any composite store that contains it. All paths are
    virtual, ``/``-separated and relative to the store's root.

    Implementations:
    - LocalStore: local filesystem leaf store
    - RootStore: composite routing to named child stores
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the store name (routing key inside a composite)."""
        ...

    @property
    @abstractmethod
    def root(self) -> str:
        """Return the root identity of the store."""
        ...

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability (e.g. "local")."""
        ...

    @abstractmethod
    def put_object(self, stream: BinaryIO, path: str, client_checksum: str = "") -> None:
        """Store the full content of a stream at a path.

        Args:
            stream: Readable binary stream, consumed to the end.
            path: Virtual path of the object.
            client_checksum: Optional ``kind:hex`` checksum of the content.
                When the kind is recognized and the backend verifies
                checksums, the write is only committed if it matches.

        Raises:
            ChecksumMismatchError: If verification fails. Nothing is committed.
            ObjectNotFoundError: If the parent directory does not exist.
            StorageBackendError: If the backend cannot complete the write.
        """
        ...

    @abstractmethod
    def get_object(self, path: str) -> BinaryIO:
        """Open an object for reading.

        The caller owns the returned stream and must close it.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StorageBackendError: If the backend cannot open it.
        """
        ...

    @abstractmethod
    def examine(self, path: str) -> StoreObject:
        """Return object metadata without reading content.

        Raises:
            ObjectNotFoundError: If the object does not exist.
        """
        ...

    @abstractmethod
    def list_tree(self, path: str) -> list[StoreObject]:
        """List the direct children of a directory.

        Raises:
            ObjectNotFoundError: If the directory does not exist.
            IsFileError: If the path addresses a file.
        """
        ...

    @abstractmethod
    def remove(self, path: str) -> None:
        """Remove an object, or a directory and everything below it.

        Removing a path that does not exist succeeds.
        """
        ...

    @abstractmethod
    def rename(self, source_path: str, target_path: str) -> None:
        """Atomically move an object within this store.

        Raises:
            ObjectNotFoundError: If the source does not exist.
            CantMoveError: If the move cannot be done as a single rename.
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, root={self.root!r})"
