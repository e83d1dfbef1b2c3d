"""acona object storage error types.

Every store raises errors from this closed vocabulary only. Backends translate
raw OS failures at the point of occurrence; callers branch on the exception
class or on its ``kind`` attribute regardless of backend.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Closed set of error kinds surfaced by the Store contract."""

    OBJECT_NOT_FOUND = "object_not_found"
    DIR_NOT_FOUND = "dir_not_found"
    IS_FILE = "is_file"
    CANT_COPY = "cant_copy"
    CANT_MOVE = "cant_move"
    CANT_DIR_MOVE = "cant_dir_move"
    DIR_EXISTS = "dir_exists"
    CANT_SET_MOD_TIME = "cant_set_mod_time"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    LIST_ABORTED = "list_aborted"
    LIST_ONLY_ROOT = "list_only_root"
    CANT_PURGE = "cant_purge"
    LEVEL_NOT_SUPPORTED = "level_not_supported"
    NOT_DELETING = "not_deleting"
    CANT_MOVE_OVERLAPPING = "cant_move_overlapping"
    PATH_TRAVERSAL = "path_traversal"
    BACKEND = "backend"


class StoreError(Exception):
    """Base exception for store operations.

    Subclasses pin ``kind`` and a default message. The underlying cause, if
    any, is chained with ``raise ... from``.

    Attributes:
        kind: Error kind from the closed vocabulary.
        message: Human-readable error message.
        path: Virtual path associated with the operation (if applicable).
    """

    kind: ErrorKind = ErrorKind.BACKEND
    default_message: str = "storage error"

    def __init__(self, message: str | None = None, *, path: str | None = None) -> None:
        self.message = message or self.default_message
        self.path = path
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} path={self.path}"
        return self.message


class ObjectNotFoundError(StoreError):
    """The addressed object does not exist, or no store owns the path."""

    kind = ErrorKind.OBJECT_NOT_FOUND
    default_message = "object not found"


class DirectoryNotFoundError(StoreError):
    kind = ErrorKind.DIR_NOT_FOUND
    default_message = "directory not found"


class IsFileError(StoreError):
    """A directory operation was attempted on a file."""

    kind = ErrorKind.IS_FILE
    default_message = "is a file not a directory"


class CantCopyError(StoreError):
    kind = ErrorKind.CANT_COPY
    default_message = "can't copy object - incompatible remotes"


class CantMoveError(StoreError):
    """A rename crosses stores or filesystems and cannot be done atomically."""

    kind = ErrorKind.CANT_MOVE
    default_message = "can't move object - incompatible remotes"


class CantDirMoveError(StoreError):
    kind = ErrorKind.CANT_DIR_MOVE
    default_message = "can't move directory - incompatible remotes"


class DirectoryExistsError(StoreError):
    kind = ErrorKind.DIR_EXISTS
    default_message = "can't copy directory - destination already exists"


class CantSetModTimeError(StoreError):
    kind = ErrorKind.CANT_SET_MOD_TIME
    default_message = "can't set modified time"


class ChecksumMismatchError(StoreError):
    """Stored content does not hash to the checksum supplied by the client.

    Attributes:
        expected: Hex value supplied by the client.
        actual: Hex value computed over the staged content.
    """

    kind = ErrorKind.CHECKSUM_MISMATCH
    default_message = "checksum mismatch"

    def __init__(
        self,
        message: str | None = None,
        *,
        path: str | None = None,
        expected: str = "",
        actual: str = "",
    ) -> None:
        super().__init__(message, path=path)
        self.expected = expected
        self.actual = actual


class ListAbortedError(StoreError):
    kind = ErrorKind.LIST_ABORTED
    default_message = "list aborted"


class ListOnlyRootError(StoreError):
    kind = ErrorKind.LIST_ONLY_ROOT
    default_message = "can only list from root"


class CantPurgeError(StoreError):
    kind = ErrorKind.CANT_PURGE
    default_message = "can't purge directory"


class LevelNotSupportedError(StoreError):
    kind = ErrorKind.LEVEL_NOT_SUPPORTED
    default_message = "level value not supported"


class NotDeletingError(StoreError):
    kind = ErrorKind.NOT_DELETING
    default_message = "not deleting files as there were IO errors"


class CantMoveOverlappingError(StoreError):
    kind = ErrorKind.CANT_MOVE_OVERLAPPING
    default_message = "can't move files on overlapping remotes"


class PathTraversalError(StoreError):
    """A virtual path tried to escape the store's root directory.

    Raised for NUL bytes in paths and for paths whose resolved physical
    location (symlinks followed) lies outside the root directory.
    """

    kind = ErrorKind.PATH_TRAVERSAL
    default_message = "invalid path: path traversal detected"


class StorageBackendError(StoreError):
    """The backend could not complete an operation (I/O error, permissions, ...)."""

    kind = ErrorKind.BACKEND
    default_message = "storage backend error"
