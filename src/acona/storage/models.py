"""acona object metadata models.

A ``StoreObject`` is a read-only snapshot of one stored item's metadata,
taken when the store was queried. Its ``path`` is always addressable through
the store (or store hierarchy) that returned it.
"""

from __future__ import annotations

import mimetypes
import os
import stat
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from acona.storage.paths import join_virtual


class StoreObject(ABC):
    """Metadata descriptor for one stored item."""

    @property
    @abstractmethod
    def checksum(self) -> str:
        """Content checksum as ``kind:value``; empty when unknown."""
        ...

    @property
    @abstractmethod
    def id(self) -> str:
        """Backend-stable identifier."""
        ...

    @property
    @abstractmethod
    def is_dir(self) -> bool: ...

    @property
    @abstractmethod
    def mod_time(self) -> int:
        """Modification time in seconds since the epoch."""
        ...

    @property
    @abstractmethod
    def mime_type(self) -> str: ...

    @property
    @abstractmethod
    def path(self) -> str:
        """Path of the object as seen through the store that returned it."""
        ...

    @property
    @abstractmethod
    def size(self) -> int:
        """Size in bytes; 0 for directories."""
        ...

    @property
    @abstractmethod
    def optional(self) -> Any:
        """Backend-defined payload, opaque to generic code."""
        ...

    def to_dict(self) -> dict[str, str | int | bool]:
        """Convert metadata to a dictionary for JSON serialization."""
        return {
            "checksum": self.checksum,
            "id": self.id,
            "is_dir": self.is_dir,
            "mod_time": self.mod_time,
            "mime_type": self.mime_type,
            "path": self.path,
            "size": self.size,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self.path!r}, is_dir={self.is_dir}, size={self.size})"


def guess_mime_type(path: str) -> str:
    """Guess a MIME type from the path extension; empty when unknown."""
    mime_type, _ = mimetypes.guess_type(path, strict=False)
    return mime_type or ""


@dataclass(frozen=True, repr=False)
class LocalObject(StoreObject):
    """Metadata of a file or directory in a local filesystem store.

    Attributes:
        stat_result: Result of ``os.stat`` on the physical path.
        virtual_path: Path the caller used to address the object.
    """

    stat_result: os.stat_result
    virtual_path: str

    @property
    def checksum(self) -> str:
        return ""

    @property
    def id(self) -> str:
        return self.virtual_path

    @property
    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.stat_result.st_mode)

    @property
    def mod_time(self) -> int:
        return int(self.stat_result.st_mtime)

    @property
    def mime_type(self) -> str:
        if self.is_dir:
            return ""
        return guess_mime_type(self.virtual_path)

    @property
    def path(self) -> str:
        return self.virtual_path

    @property
    def size(self) -> int:
        if self.is_dir:
            return 0
        return int(self.stat_result.st_size)

    @property
    def optional(self) -> Any:
        return None


@dataclass(frozen=True, repr=False)
class PrefixedObject(StoreObject):
    """Wraps an object returned by a child store, re-rooting its path.

    Every accessor except ``path`` is delegated to the wrapped object; the
    path gains ``prefix`` (the child store's name) as its first segment.
    """

    prefix: str
    wrapped: StoreObject

    @property
    def checksum(self) -> str:
        return self.wrapped.checksum

    @property
    def id(self) -> str:
        return self.wrapped.id

    @property
    def is_dir(self) -> bool:
        return self.wrapped.is_dir

    @property
    def mod_time(self) -> int:
        return self.wrapped.mod_time

    @property
    def mime_type(self) -> str:
        return self.wrapped.mime_type

    @property
    def path(self) -> str:
        return join_virtual(self.prefix, self.wrapped.path)

    @property
    def size(self) -> int:
        return self.wrapped.size

    @property
    def optional(self) -> Any:
        return self.wrapped.optional


@dataclass(frozen=True, repr=False)
class RootDirectoryObject(StoreObject):
    """Synthetic directory entry for the root of a composite store."""

    store_name: str
    modified: int = 0

    @property
    def checksum(self) -> str:
        return ""

    @property
    def id(self) -> str:
        return self.store_name

    @property
    def is_dir(self) -> bool:
        return True

    @property
    def mod_time(self) -> int:
        return self.modified

    @property
    def mime_type(self) -> str:
        return ""

    @property
    def path(self) -> str:
        return ""

    @property
    def size(self) -> int:
        return 0

    @property
    def optional(self) -> Any:
        return None
