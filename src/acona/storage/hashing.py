"""Streaming content hashes and client checksum strings.

Clients send checksums as ``"<kind>:<hex-value>"``, e.g.
``"sha256:9f86d0..."``. A missing or unknown kind means "do not verify".
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from enum import StrEnum
from typing import BinaryIO

DEFAULT_CHUNK_SIZE = 1024 * 1024


class HashKind(StrEnum):
    """Hash algorithms understood in client checksum strings."""

    NONE = ""
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"


SUPPORTED_HASH_KINDS: tuple[HashKind, ...] = (HashKind.MD5, HashKind.SHA1, HashKind.SHA256)


def hash_kind_from_string(checksum: str) -> HashKind:
    """Return the hash kind of a ``kind:value`` checksum string.

    Returns ``HashKind.NONE`` when there is no ``:`` separator or the kind
    is not recognized. Matching is case-insensitive.
    """
    kind, sep, _ = (checksum or "").partition(":")
    if not sep:
        return HashKind.NONE
    try:
        return HashKind(kind.strip().lower())
    except ValueError:
        return HashKind.NONE


def hash_value_from_string(checksum: str) -> str:
    """Return the lower-cased hex value of a ``kind:value`` checksum string."""
    _, sep, value = (checksum or "").partition(":")
    if not sep:
        return ""
    return value.strip().lower()


def hash_stream(
    stream: BinaryIO,
    kinds: Iterable[HashKind] = SUPPORTED_HASH_KINDS,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> dict[HashKind, str]:
    """Read a binary stream to the end and hash it.

    Args:
        stream: Readable binary stream, consumed from its current position.
        kinds: Hash kinds to compute. ``HashKind.NONE`` is ignored.
        chunk_size: Read size in bytes.

    Returns:
        Mapping of hash kind to lower-case hex digest.
    """
    hashers = {kind: hashlib.new(kind.value) for kind in kinds if kind != HashKind.NONE}
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        for hasher in hashers.values():
            hasher.update(chunk)
    return {kind: hasher.hexdigest() for kind, hasher in hashers.items()}
