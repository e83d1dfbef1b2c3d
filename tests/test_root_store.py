"""Tests for the acona composite (root) store.

Covers:
- Routing: composite calls behave like direct calls on the child store
- Root listing: one directory entry per child store
- Re-prefixed paths are addressable through the composite
- Cross-store renames are rejected
- Nested composites
"""

from __future__ import annotations

import io
from collections.abc import Callable

import pytest

from acona.storage.errors import (
    CantMoveError,
    ChecksumMismatchError,
    IsFileError,
    ObjectNotFoundError,
)
from acona.storage.local_store import LocalStore, LocalStoreConfig
from acona.storage.models import PrefixedObject, RootDirectoryObject
from acona.storage.root_store import RootStore


def _read(store: LocalStore | RootStore, path: str) -> bytes:
    with store.get_object(path) as f:
        return f.read()


class TestRouting:
    """Tests for forwarding calls to child stores."""

    def test_put_routes_to_named_child(
        self, root_store: RootStore, photos: LocalStore, docs: LocalStore
    ) -> None:
        """The first path segment selects the child; the rest is forwarded."""
        (photos.root_dir / "2021").mkdir()

        root_store.put_object(io.BytesIO(b"jpeg"), "photos/2021/img.jpg")

        assert (photos.root_dir / "2021" / "img.jpg").read_bytes() == b"jpeg"
        assert list(docs.root_dir.iterdir()) == []

    def test_get_matches_direct_child_call(
        self, root_store: RootStore, docs: LocalStore
    ) -> None:
        docs.put_object(io.BytesIO(b"report"), "report.txt")

        assert _read(root_store, "docs/report.txt") == _read(docs, "report.txt")

    @pytest.mark.parametrize(
        "path",
        ["photos/a.txt", "/photos/a.txt", " photos/a.txt ", "photos//a.txt", "/photos/a.txt/"],
    )
    def test_routing_tolerates_surrounding_whitespace_and_slashes(
        self, root_store: RootStore, photos: LocalStore, path: str
    ) -> None:
        photos.put_object(io.BytesIO(b"a"), "a.txt")

        assert root_store.examine(path).path == "photos/a.txt"

    def test_forwards_full_remainder(self, root_store: RootStore, photos: LocalStore) -> None:
        """Deep paths reach the child intact, not just their second segment."""
        (photos.root_dir / "a" / "b" / "c").mkdir(parents=True)

        root_store.put_object(io.BytesIO(b"deep"), "photos/a/b/c/d.txt")

        assert (photos.root_dir / "a" / "b" / "c" / "d.txt").read_bytes() == b"deep"

    def test_unknown_child_raises_not_found(self, root_store: RootStore) -> None:
        with pytest.raises(ObjectNotFoundError) as exc_info:
            root_store.get_object("videos/clip.mp4")

        assert exc_info.value.path == "videos/clip.mp4"

    def test_child_errors_propagate_unchanged(
        self, make_local_store: Callable[..., LocalStore]
    ) -> None:
        """Errors raised by a child reach the caller with their own kind."""
        checked = make_local_store("checked", check_input_hash=True)
        store = RootStore("root", "", [checked])

        with pytest.raises(ChecksumMismatchError):
            store.put_object(io.BytesIO(b"data"), "checked/x", "md5:" + "0" * 32)

    def test_remove_routes_to_child(self, root_store: RootStore, docs: LocalStore) -> None:
        docs.put_object(io.BytesIO(b"x"), "x.txt")

        root_store.remove("docs/x.txt")

        assert not (docs.root_dir / "x.txt").exists()

    def test_remove_bare_child_name_deletes_child_root(
        self, root_store: RootStore, docs: LocalStore
    ) -> None:
        """A bare child name removes that child's whole root directory."""
        docs.put_object(io.BytesIO(b"x"), "x.txt")

        root_store.remove("docs")

        assert not docs.root_dir.exists()
        with pytest.raises(ObjectNotFoundError):
            root_store.list_tree("")

        docs.root_dir.mkdir()
        assert [o.path for o in root_store.list_tree("")] == ["photos", "docs"]

    def test_resolve_returns_child_and_remainder(
        self, root_store: RootStore, docs: LocalStore
    ) -> None:
        store, child_path = root_store.resolve("/docs/2020/q1.pdf")

        assert store is docs
        assert child_path == "2020/q1.pdf"

    def test_duplicate_names_first_child_wins(
        self, make_local_store: Callable[..., LocalStore]
    ) -> None:
        first = make_local_store("first")
        second = make_local_store("second")
        shadowed = LocalStore("first", "", LocalStoreConfig(root_dir=str(second.root_dir)))
        store = RootStore("root", "", [first, shadowed])

        store.put_object(io.BytesIO(b"x"), "first/x.txt")

        assert (first.root_dir / "x.txt").exists()
        assert not (second.root_dir / "x.txt").exists()


class TestExamine:
    """Tests for metadata through the composite."""

    def test_examine_prefixes_child_path(
        self, root_store: RootStore, photos: LocalStore
    ) -> None:
        photos.put_object(io.BytesIO(b"12345"), "pic.png")

        obj = root_store.examine("photos/pic.png")
        direct = photos.examine("pic.png")

        assert isinstance(obj, PrefixedObject)
        assert obj.path == "photos/pic.png"
        assert obj.size == direct.size == 5
        assert obj.mime_type == direct.mime_type == "image/png"
        assert obj.id == direct.id
        assert obj.mod_time == direct.mod_time

    def test_examine_child_root(self, root_store: RootStore) -> None:
        """A bare child name addresses the child store's root directory."""
        obj = root_store.examine("docs")

        assert obj.is_dir is True
        assert obj.path == "docs"

    @pytest.mark.parametrize("path", ["", "/", "  ", " / "])
    def test_examine_composite_root(self, root_store: RootStore, path: str) -> None:
        obj = root_store.examine(path)

        assert isinstance(obj, RootDirectoryObject)
        assert obj.is_dir is True
        assert obj.path == ""
        assert obj.id == "root"


class TestListTree:
    """Tests for listing through the composite."""

    @pytest.mark.parametrize("path", ["", "/", " "])
    def test_root_lists_child_stores(self, root_store: RootStore, path: str) -> None:
        """Each child appears once, as a directory named after it, in order."""
        objects = root_store.list_tree(path)

        assert [o.path for o in objects] == ["photos", "docs"]
        assert all(o.is_dir for o in objects)

    def test_child_listing_is_prefixed(self, root_store: RootStore, photos: LocalStore) -> None:
        (photos.root_dir / "2021").mkdir()
        photos.put_object(io.BytesIO(b"a"), "2021/a.jpg")
        photos.put_object(io.BytesIO(b"b"), "2021/b.jpg")

        objects = root_store.list_tree("photos/2021")

        assert [o.path for o in objects] == ["photos/2021/a.jpg", "photos/2021/b.jpg"]

    def test_child_root_listing(self, root_store: RootStore, docs: LocalStore) -> None:
        docs.put_object(io.BytesIO(b"a"), "a.txt")

        assert [o.path for o in root_store.list_tree("docs")] == ["docs/a.txt"]

    def test_listed_paths_roundtrip(self, root_store: RootStore, photos: LocalStore) -> None:
        """Paths from a composite listing work as input to the composite."""
        (photos.root_dir / "album").mkdir()
        photos.put_object(io.BytesIO(b"one"), "album/1.jpg")
        photos.put_object(io.BytesIO(b"two"), "album/2.jpg")

        for obj in root_store.list_tree("photos/album"):
            assert root_store.examine(obj.path).size == obj.size
            assert _read(root_store, obj.path) in (b"one", b"two")

        for entry in root_store.list_tree(""):
            assert root_store.examine(entry.path).is_dir

    def test_list_file_raises_is_file(self, root_store: RootStore, docs: LocalStore) -> None:
        docs.put_object(io.BytesIO(b"a"), "a.txt")

        with pytest.raises(IsFileError):
            root_store.list_tree("docs/a.txt")

    def test_list_unknown_child_raises_not_found(self, root_store: RootStore) -> None:
        with pytest.raises(ObjectNotFoundError):
            root_store.list_tree("videos")

    def test_empty_composite_lists_nothing(self) -> None:
        assert RootStore("root").list_tree("") == []


class TestRename:
    """Tests for rename through the composite."""

    def test_rename_within_child(self, root_store: RootStore, docs: LocalStore) -> None:
        docs.put_object(io.BytesIO(b"draft"), "draft.txt")

        root_store.rename("docs/draft.txt", "docs/final.txt")

        assert _read(docs, "final.txt") == b"draft"
        assert not (docs.root_dir / "draft.txt").exists()

    def test_rename_across_children_rejected(
        self, root_store: RootStore, photos: LocalStore, docs: LocalStore
    ) -> None:
        """Moving between stores fails and changes neither store."""
        photos.put_object(io.BytesIO(b"img"), "img.jpg")

        with pytest.raises(CantMoveError) as exc_info:
            root_store.rename("photos/img.jpg", "docs/img.jpg")

        assert exc_info.value.path == "photos/img.jpg"
        assert (photos.root_dir / "img.jpg").read_bytes() == b"img"
        assert not (docs.root_dir / "img.jpg").exists()

    def test_rename_to_unknown_child_raises_not_found(
        self, root_store: RootStore, photos: LocalStore
    ) -> None:
        photos.put_object(io.BytesIO(b"img"), "img.jpg")

        with pytest.raises(ObjectNotFoundError):
            root_store.rename("photos/img.jpg", "videos/img.jpg")


class TestNesting:
    """Tests for composites containing composites."""

    @pytest.fixture
    def nested(self, make_local_store: Callable[..., LocalStore]) -> RootStore:
        inner = RootStore("archive", "", [make_local_store("y2020"), make_local_store("y2021")])
        return RootStore("root", "", [make_local_store("live"), inner])

    def test_nested_put_and_get(self, nested: RootStore) -> None:
        nested.put_object(io.BytesIO(b"old"), "archive/y2020/old.txt")

        assert _read(nested, "archive/y2020/old.txt") == b"old"
        assert nested.examine("archive/y2020/old.txt").path == "archive/y2020/old.txt"

    def test_nested_listing(self, nested: RootStore) -> None:
        nested.put_object(io.BytesIO(b"old"), "archive/y2021/a.txt")

        assert [o.path for o in nested.list_tree("")] == ["live", "archive"]
        assert [o.path for o in nested.list_tree("archive")] == ["archive/y2020", "archive/y2021"]
        assert [o.path for o in nested.list_tree("archive/y2021")] == ["archive/y2021/a.txt"]

    def test_nested_composite_root_is_directory(self, nested: RootStore) -> None:
        obj = nested.examine("archive")

        assert obj.is_dir is True
        assert obj.path == "archive"
