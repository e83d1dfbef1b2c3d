"""acona local filesystem store.

Maps virtual paths onto a root directory with:
- Path confinement: no virtual path resolves outside the root directory
- Staged writes: content lands in a temp-directory staging file first
- Atomic commit: a single rename makes a fully written object visible
- Optional verification of client-supplied checksums before commit

Environment Variables:
    ACONA_LOCAL_ROOT_DIR: Default root directory
        (default: tempfile.gettempdir() / acona_objects)
    ACONA_TEMP_DIR: Default staging directory (default: tempfile.gettempdir())
    ACONA_CHECK_INPUT_HASH: "1" to verify client checksums by default
"""

from __future__ import annotations

import errno
import logging
import os
import posixpath
import shutil
import stat
import tempfile
from pathlib import Path
from typing import BinaryIO

from pydantic import BaseModel, ConfigDict, Field

from acona.storage.errors import (
    ChecksumMismatchError,
    CantMoveError,
    IsFileError,
    ObjectNotFoundError,
    PathTraversalError,
    StorageBackendError,
)
from acona.storage.hashing import (
    HashKind,
    hash_kind_from_string,
    hash_stream,
    hash_value_from_string,
)
from acona.storage.models import LocalObject, StoreObject
from acona.storage.object_store import Store
from acona.storage.paths import clean_path, secure_join
from acona.storage.tracing import traced_store_operation

logger = logging.getLogger(__name__)

ACONA_LOCAL_ROOT_DIR_ENV = "ACONA_LOCAL_ROOT_DIR"
ACONA_TEMP_DIR_ENV = "ACONA_TEMP_DIR"
ACONA_CHECK_INPUT_HASH_ENV = "ACONA_CHECK_INPUT_HASH"

_STAGING_PREFIX = ".acona-"
_STAGING_SUFFIX = ".tmp"


class LocalStoreConfig(BaseModel):
    """Configuration of a local filesystem store.

    Attributes:
        root_dir: Directory under which the store's root lives.
        temp_dir: Directory for staging files. Empty means the process-wide
            temp directory. Commits are only atomic when it shares a
            filesystem with ``root_dir``.
        check_input_hash: Verify client checksums before committing writes.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    root_dir: str = Field(min_length=1)
    temp_dir: str = ""
    check_input_hash: bool = False

    @classmethod
    def from_env(cls) -> LocalStoreConfig:
        """Build a configuration from ``ACONA_*`` environment variables."""
        root_dir = os.environ.get(ACONA_LOCAL_ROOT_DIR_ENV) or str(
            Path(tempfile.gettempdir()) / "acona_objects"
        )
        check = os.environ.get(ACONA_CHECK_INPUT_HASH_ENV, "").strip().lower()
        return cls(
            root_dir=root_dir,
            temp_dir=os.environ.get(ACONA_TEMP_DIR_ENV, ""),
            check_input_hash=check in ("1", "true", "yes"),
        )


def _translate_os_error(e: OSError, path: str, message: str) -> Exception:
    """Map a raw OS error from a lookup onto the store error vocabulary."""
    if isinstance(e, (FileNotFoundError, NotADirectoryError)):
        return ObjectNotFoundError(path=path)
    return StorageBackendError(f"{message}: {e.strerror or e}", path=path)


class LocalStore(Store):
    """Store backed by a directory on the local filesystem.

    The store's effective root directory is ``config.root_dir`` joined with
    the store's ``root``. Instances hold no mutable state beyond their fixed
    configuration and are safe to share between threads.
    """

    def __init__(
        self,
        name: str,
        root: str = "",
        config: LocalStoreConfig | None = None,
    ) -> None:
        """Initialize a local store.

        Args:
            name: Store name, used as routing key by composite stores.
            root: Root identity; a sub-directory of ``config.root_dir``.
            config: Store configuration. If None, built from the environment.
        """
        if config is None:
            config = LocalStoreConfig.from_env()

        self._name = name
        self._root = root
        base_dir = Path(config.root_dir).expanduser().resolve()
        self._root_dir = Path(secure_join(base_dir, root))
        self._temp_dir = Path(config.temp_dir or tempfile.gettempdir()).expanduser()
        self._check_input_hash = config.check_input_hash

        logger.debug(
            "LocalStore %s initialized with root_dir=%s temp_dir=%s check_input_hash=%s",
            name,
            self._root_dir,
            self._temp_dir,
            self._check_input_hash,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def root(self) -> str:
        return self._root

    @property
    def backend_name(self) -> str:
        return "local"

    @property
    def root_dir(self) -> Path:
        """Return the physical root directory."""
        return self._root_dir

    @property
    def temp_dir(self) -> Path:
        """Return the staging directory."""
        return self._temp_dir

    @property
    def check_input_hash(self) -> bool:
        return self._check_input_hash

    def _local_path(self, path: str, *, follow_final: bool = False) -> Path:
        """Confine a virtual path under the root directory.

        Symlinks in the parent directories are always followed for the
        containment check. The final component is only followed with
        ``follow_final``; without it, operations act on a symlink itself, so
        a listed link stays addressable even when it points outside the root.
        """
        local_path = Path(secure_join(self._root_dir, path))
        if local_path == self._root_dir:
            return local_path
        if follow_final:
            checked = local_path.resolve()
        else:
            checked = local_path.parent.resolve() / local_path.name
        if not checked.is_relative_to(self._root_dir.resolve()):
            raise PathTraversalError("path resolves outside store root directory", path=path)
        return local_path

    def _save_to_staging_file(self, stream: BinaryIO, path: str) -> Path:
        """Copy a stream into a fresh staging file and return its path."""
        try:
            fd, staging_name = tempfile.mkstemp(
                prefix=_STAGING_PREFIX, suffix=_STAGING_SUFFIX, dir=self._temp_dir
            )
        except OSError as e:
            raise StorageBackendError(
                f"can't create staging file: {e.strerror or e}", path=path
            ) from e

        staging = Path(staging_name)
        try:
            with os.fdopen(fd, "wb") as f:
                shutil.copyfileobj(stream, f)
        except OSError as e:
            self._discard_staging_file(staging)
            raise StorageBackendError(
                f"can't save to staging file: {e.strerror or e}", path=path
            ) from e
        except BaseException:
            self._discard_staging_file(staging)
            raise
        return staging

    def _discard_staging_file(self, staging: Path) -> None:
        try:
            staging.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove staging file %s: %s", staging, e)

    def _verify_checksum(self, staging: Path, path: str, client_checksum: str) -> None:
        """Compare the staged content against a client checksum.

        Unrecognized or missing checksum kinds skip verification.
        """
        kind = hash_kind_from_string(client_checksum)
        if kind == HashKind.NONE:
            return

        expected = hash_value_from_string(client_checksum)
        try:
            with staging.open("rb") as f:
                actual = hash_stream(f, (kind,))[kind]
        except OSError as e:
            raise StorageBackendError(f"can't compute hash: {e.strerror or e}", path=path) from e

        if actual != expected:
            logger.warning(
                "Checksum mismatch: store=%s path=%s kind=%s expected=%s actual=%s",
                self._name,
                path,
                kind,
                expected,
                actual,
            )
            raise ChecksumMismatchError(path=path, expected=expected, actual=actual)

    @traced_store_operation("put_object")
    def put_object(self, stream: BinaryIO, path: str, client_checksum: str = "") -> None:
        """Store an object via a staging file and an atomic rename."""
        local_path = self._local_path(path)
        staging = self._save_to_staging_file(stream, path)

        try:
            if self._check_input_hash:
                self._verify_checksum(staging, path, client_checksum)

            try:
                os.replace(staging, local_path)
            except FileNotFoundError as e:
                raise ObjectNotFoundError(path=path) from e
            except OSError as e:
                raise StorageBackendError(
                    f"can't rename staging file to target: {e.strerror or e}", path=path
                ) from e
        except BaseException:
            self._discard_staging_file(staging)
            raise

        logger.debug("Stored object: store=%s path=%s", self._name, path)

    @traced_store_operation("get_object")
    def get_object(self, path: str) -> BinaryIO:
        """Open an object for reading; the caller closes the stream."""
        local_path = self._local_path(path, follow_final=True)
        try:
            return local_path.open("rb")
        except OSError as e:
            raise _translate_os_error(e, path, "can't open local file") from e

    @traced_store_operation("examine")
    def examine(self, path: str) -> StoreObject:
        """Describe an object under its virtual path.

        A symlink is described itself and not followed, as in ``list_tree``.
        """
        local_path = self._local_path(path)
        try:
            stat_result = local_path.lstat()
        except OSError as e:
            raise _translate_os_error(e, path, "can't examine") from e
        return LocalObject(stat_result, clean_path(path))

    @traced_store_operation("list_tree")
    def list_tree(self, path: str) -> list[StoreObject]:
        """List the direct children of a directory, sorted by name."""
        local_path = self._local_path(path, follow_final=True)
        try:
            stat_result = local_path.stat()
        except OSError as e:
            raise _translate_os_error(e, path, "can't stat") from e

        if not stat.S_ISDIR(stat_result.st_mode):
            raise IsFileError(path=path)

        parent = clean_path(path)
        objects: list[StoreObject] = []
        try:
            with os.scandir(local_path) as entries:
                for entry in sorted(entries, key=lambda e: e.name):
                    try:
                        entry_stat = entry.stat(follow_symlinks=False)
                    except FileNotFoundError:
                        logger.debug("Entry vanished while listing: %s", entry.path)
                        continue
                    objects.append(LocalObject(entry_stat, posixpath.join(parent, entry.name)))
        except OSError as e:
            raise _translate_os_error(e, path, "can't read dir") from e

        return objects

    @traced_store_operation("remove")
    def remove(self, path: str) -> None:
        """Remove a file or a directory tree; absent paths are not an error."""
        local_path = self._local_path(path)
        try:
            if local_path.is_dir() and not local_path.is_symlink():
                shutil.rmtree(local_path)
            else:
                local_path.unlink(missing_ok=True)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageBackendError(f"can't remove: {e.strerror or e}", path=path) from e

        logger.debug("Removed: store=%s path=%s", self._name, path)

    @traced_store_operation("rename")
    def rename(self, source_path: str, target_path: str) -> None:
        """Rename within the root directory as a single filesystem rename."""
        source = self._local_path(source_path)
        target = self._local_path(target_path)
        try:
            os.replace(source, target)
        except FileNotFoundError as e:
            raise ObjectNotFoundError(path=source_path) from e
        except OSError as e:
            if e.errno == errno.EXDEV:
                raise CantMoveError(path=source_path) from e
            raise StorageBackendError(f"can't move: {e.strerror or e}", path=source_path) from e

        logger.debug(
            "Renamed: store=%s source=%s target=%s", self._name, source_path, target_path
        )
