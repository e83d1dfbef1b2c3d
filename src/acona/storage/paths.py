"""Virtual path handling for acona stores.

Virtual paths are ``/``-separated and relative to a store's root. Nothing a
caller passes in can address a location above that root: ``..`` segments are
resolved as if the path were rooted at ``/``, so they stop at the root.
"""

from __future__ import annotations

import os
import posixpath

from acona.storage.errors import PathTraversalError


def clean_path(path: str) -> str:
    """Normalize a virtual path into its canonical relative form.

    ``.`` and empty segments are dropped and ``..`` segments cannot climb
    above the root. The root itself is returned as ``""``. Backslashes are
    separators only where the OS uses them; on POSIX they are ordinary
    filename characters.

    Raises:
        PathTraversalError: If the path contains a NUL byte.
    """
    if "\x00" in path:
        raise PathTraversalError("invalid path: NUL byte", path=path.replace("\x00", "\\x00"))
    if os.sep == "\\":
        path = path.replace("\\", "/")
    cleaned = posixpath.normpath("/" + path)
    return cleaned.lstrip("/")


def secure_join(root: str | os.PathLike[str], path: str) -> str:
    """Join a virtual path onto a physical root directory.

    The result is always ``root`` itself or a descendant of it, whatever
    ``path`` contains.
    """
    relative = clean_path(path)
    root = os.fspath(root)
    if not relative:
        return root
    return os.path.join(root, *relative.split("/"))


def join_virtual(prefix: str, path: str) -> str:
    """Join two virtual paths, returning a clean relative path."""
    return clean_path(posixpath.join(clean_path(prefix), clean_path(path)))


def split_route(path: str) -> tuple[str, str]:
    """Split a composite path into its first segment and the remainder.

    Surrounding whitespace and slashes are trimmed first; the remainder is
    ``""`` when the path has a single segment.

    >>> split_route("/photos/2021/img.jpg ")
    ('photos', '2021/img.jpg')
    """
    head, _, rest = path.strip().strip("/").partition("/")
    return head, rest
