"""Store tree configuration for acona.

Builds a store hierarchy from a YAML document:

    name: root
    stores:
      - name: photos
        backend: local
        root_dir: /srv/photos
        check_input_hash: true
      - name: archive
        backend: root
        stores: [...]

Validation is fail-closed: unknown backends, unknown keys and duplicate
sibling names are configuration errors.

Environment Variables:
    ACONA_CONFIG: Path to the YAML store configuration. When unset, a single
        local store named "local" is configured from ACONA_LOCAL_ROOT_DIR,
        ACONA_TEMP_DIR and ACONA_CHECK_INPUT_HASH.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from acona.storage.local_store import LocalStore, LocalStoreConfig
from acona.storage.object_store import Store
from acona.storage.root_store import RootStore

logger = logging.getLogger(__name__)

ACONA_CONFIG_ENV = "ACONA_CONFIG"

_STORE_NAME_PATTERN = r"^[^/\s][^/]*$"


class StoreConfigError(Exception):
    """Raised when a store configuration cannot be loaded or is invalid."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)


class LocalStoreSpec(BaseModel):
    """Configuration of one local filesystem store."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    backend: Literal["local"]
    name: str = Field(..., min_length=1, pattern=_STORE_NAME_PATTERN)
    root: str = ""
    root_dir: str = Field(..., min_length=1)
    temp_dir: str = ""
    check_input_hash: bool = False

    def to_local_config(self) -> LocalStoreConfig:
        return LocalStoreConfig(
            root_dir=self.root_dir,
            temp_dir=self.temp_dir,
            check_input_hash=self.check_input_hash,
        )


class RootStoreSpec(BaseModel):
    """Configuration of a composite store and its children.

    Enforces unique child names; the composite itself would silently route
    to the first of several same-named children.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backend: Literal["root"] = "root"
    name: str = Field(default="root", min_length=1, pattern=_STORE_NAME_PATTERN)
    root: str = ""
    stores: tuple[
        Annotated[LocalStoreSpec | RootStoreSpec, Field(discriminator="backend")], ...
    ] = Field(default=())

    @model_validator(mode="after")
    def validate_unique_store_names(self) -> RootStoreSpec:
        names = [s.name for s in self.stores]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Store names must be unique within '{self.name}': {duplicates}")
        return self


RootStoreSpec.model_rebuild()


def parse_store_config(data: Any, path: str | None = None) -> RootStoreSpec:
    """Validate a parsed configuration document.

    Raises:
        StoreConfigError: If the document is not a valid store tree.
    """
    if not isinstance(data, dict):
        raise StoreConfigError(
            f"Store config must be a mapping, got {type(data).__name__}", path=path
        )
    try:
        return RootStoreSpec.model_validate(data)
    except ValidationError as e:
        raise StoreConfigError(f"Invalid store config: {e}", path=path) from e


def load_store_config(config_path: str | Path) -> RootStoreSpec:
    """Load and validate a YAML store configuration file.

    Raises:
        StoreConfigError: If the file is missing, unreadable, not valid YAML
            or not a valid store tree.
    """
    config_path = Path(config_path)
    path_str = str(config_path)

    if not config_path.is_file():
        raise StoreConfigError(f"Store config file not found: {path_str}", path=path_str)

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise StoreConfigError(f"Failed to read store config: {e}", path=path_str) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise StoreConfigError(f"Invalid YAML in store config: {e}", path=path_str) from e

    if data is None:
        raise StoreConfigError("Store config file is empty", path=path_str)

    return parse_store_config(data, path=path_str)


def build_store(spec: LocalStoreSpec | RootStoreSpec) -> Store:
    """Instantiate the store tree described by a validated spec."""
    if isinstance(spec, LocalStoreSpec):
        return LocalStore(spec.name, spec.root, spec.to_local_config())

    children = [build_store(child) for child in spec.stores]
    logger.debug("Built root store %s with %d children", spec.name, len(children))
    return RootStore(spec.name, spec.root, children)


def build_store_from_env() -> Store:
    """Build the store tree configured by the environment.

    Uses the YAML file named by ``ACONA_CONFIG`` when set; otherwise a root
    store with a single local store named "local".
    """
    config_path = os.environ.get(ACONA_CONFIG_ENV, "").strip()
    if config_path:
        return build_store(load_store_config(config_path))
    return RootStore("root", "", [LocalStore("local", "", LocalStoreConfig.from_env())])
