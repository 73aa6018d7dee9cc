from __future__ import annotations

import pytest

from ftcontent.content_store import LocalContentStore
from ftcontent.errors import ContentStoreError
from ftcontent.models import ContentDescriptor
from ftcontent.utils import sha256_hex


def _files(store: LocalContentStore) -> list[str]:
    return sorted(path.name for path in store.root.iterdir())


def test_persist_writes_indexes_and_releases(store):
    descriptor = ContentDescriptor("thumnail_abc.jpg", 5, "image/jpeg", data=b"hello")

    path = store.persist(descriptor)

    assert path.read_bytes() == b"hello"
    assert path == store.path_for("thumnail_abc.jpg")
    assert descriptor.released
    row = store.lookup("thumnail_abc.jpg")
    assert row["mime_type"] == "image/jpeg"
    assert row["size"] == 5
    assert row["checksum"] == sha256_hex(b"hello")
    assert store.exists("thumnail_abc.jpg")


def test_persist_overwrites_existing_identifier(store):
    store.persist(ContentDescriptor("a.jpg", 3, "image/jpeg", data=b"one"))
    store.persist(ContentDescriptor("a.jpg", 3, "image/jpeg", data=b"two"))

    assert store.path_for("a.jpg").read_bytes() == b"two"
    assert store.db[store.TABLE].count == 1


def test_size_mismatch_leaves_nothing_behind(store):
    descriptor = ContentDescriptor("a.jpg", 10, "image/jpeg", data=b"short")

    with pytest.raises(ContentStoreError):
        store.persist(descriptor)

    assert descriptor.released
    assert _files(store) == []
    assert store.lookup("a.jpg") is None


def test_persist_without_data_fails(store):
    with pytest.raises(ContentStoreError):
        store.persist(ContentDescriptor("a.jpg", 0, "image/jpeg"))


def test_partial_write_is_removed(store):
    with pytest.raises(RuntimeError):
        with store.open_writer("b.png") as stream:
            stream.write(b"partial")
            raise RuntimeError("disk went away")

    assert _files(store) == []


def test_writer_publishes_on_success(store):
    with store.open_writer("c.png") as stream:
        stream.write(b"complete")

    assert _files(store) == ["c.png"]


@pytest.mark.parametrize("identifier", ["../escape.jpg", "nested/dir.jpg"])
def test_identifiers_must_stay_in_root(store, identifier):
    with pytest.raises(ContentStoreError):
        store.path_for(identifier)
