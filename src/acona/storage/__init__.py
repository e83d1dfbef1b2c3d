"""acona object storage.

A uniform Store contract with two implementations:
- LocalStore: leaf store on a local filesystem (confined paths, atomic writes)
- RootStore: composite store routing by the first path segment to named
  child stores

Environment Variables:
    ACONA_CONFIG: YAML store tree used by build_store_from_env()
    ACONA_LOCAL_ROOT_DIR: Default root directory for local stores
    ACONA_TEMP_DIR: Default staging directory for local stores
    ACONA_CHECK_INPUT_HASH: "1" to verify client checksums by default
"""

from acona.storage.config import (
    StoreConfigError,
    build_store,
    build_store_from_env,
    load_store_config,
)
from acona.storage.errors import (
    CantCopyError,
    CantDirMoveError,
    CantMoveError,
    CantMoveOverlappingError,
    CantPurgeError,
    CantSetModTimeError,
    ChecksumMismatchError,
    DirectoryExistsError,
    DirectoryNotFoundError,
    ErrorKind,
    IsFileError,
    LevelNotSupportedError,
    ListAbortedError,
    ListOnlyRootError,
    NotDeletingError,
    ObjectNotFoundError,
    PathTraversalError,
    StorageBackendError,
    StoreError,
)
from acona.storage.hashing import HashKind, hash_stream
from acona.storage.local_store import LocalStore, LocalStoreConfig
from acona.storage.models import LocalObject, PrefixedObject, RootDirectoryObject, StoreObject
from acona.storage.object_store import Store
from acona.storage.root_store import RootStore

__all__ = [
    "Store",
    "StoreObject",
    "LocalObject",
    "PrefixedObject",
    "RootDirectoryObject",
    "LocalStore",
    "LocalStoreConfig",
    "RootStore",
    "HashKind",
    "hash_stream",
    "StoreConfigError",
    "build_store",
    "build_store_from_env",
    "load_store_config",
    "ErrorKind",
    "StoreError",
    "ObjectNotFoundError",
    "DirectoryNotFoundError",
    "IsFileError",
    "CantCopyError",
    "CantMoveError",
    "CantDirMoveError",
    "DirectoryExistsError",
    "CantSetModTimeError",
    "ChecksumMismatchError",
    "ListAbortedError",
    "ListOnlyRootError",
    "CantPurgeError",
    "LevelNotSupportedError",
    "NotDeletingError",
    "CantMoveOverlappingError",
    "PathTraversalError",
    "StorageBackendError",
]
