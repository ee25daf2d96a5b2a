"""Tests for path resolution, name handling and ancestry checks."""

import pytest

from treedrive.ancestry import is_descendant
from treedrive.errors import BrokenChain, InvalidName
from treedrive.models import Node
from treedrive.paths import PathResolver, replace_leaf, split_upload_name, validate_name

OWNER = 1


def _add(store, name, parent=None, is_folder=True):
    parent_id = parent.id if parent is not None else None
    logical = f"{parent.logical_path}/{name}" if parent is not None else f"/{name}"
    return store.insert(
        Node(
            owner_id=OWNER,
            name=name,
            is_folder=is_folder,
            parent_id=parent_id,
            logical_path=logical,
            physical_path=f"/unused{logical}",
        )
    )


@pytest.mark.parametrize(
    ("supplied", "expected"),
    [
        ("c.txt", ["c.txt"]),
        ("a/b/c.txt", ["a", "b", "c.txt"]),
        ("a\\b\\c.txt", ["a", "b", "c.txt"]),
        ("/a//b/c.txt", ["a", "b", "c.txt"]),
    ],
)
def test_split_upload_name(supplied, expected):
    assert split_upload_name(supplied) == expected


@pytest.mark.parametrize("supplied", ["", "/", "a/../b.txt", "./b.txt"])
def test_split_upload_name_rejects_bad_names(supplied):
    with pytest.raises(InvalidName):
        split_upload_name(supplied)


@pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b", "nul\x00"])
def test_validate_name_rejects(name):
    with pytest.raises(InvalidName):
        validate_name(name)


def test_validate_name_accepts_plain_names():
    assert validate_name("report 2024.txt") == "report 2024.txt"
    assert validate_name(".hidden") == ".hidden"


def test_replace_leaf():
    assert replace_leaf("/old", "new") == "/new"
    assert replace_leaf("/docs/old/old", "new") == "/docs/old/new"


def test_resolver_walks_ancestors(store, owner_root):
    docs = _add(store, "docs")
    reports = _add(store, "reports", docs)
    q1 = _add(store, "q1.txt", reports, is_folder=False)

    resolver = PathResolver(store.find_by_id, owner_root)

    assert resolver.logical_path(docs) == "/docs"
    assert resolver.logical_path(q1) == "/docs/reports/q1.txt"
    assert resolver.physical_path(q1) == str(owner_root(OWNER) / "docs" / "reports" / "q1.txt")


def test_child_paths_at_root_and_below(store, owner_root):
    resolver = PathResolver(store.find_by_id, owner_root)
    docs = _add(store, "docs")

    assert resolver.child_paths(OWNER, None, "a.txt") == ("/a.txt", str(owner_root(OWNER) / "a.txt"))
    logical, physical = resolver.child_paths(OWNER, docs, "a.txt")
    assert logical == "/docs/a.txt"
    assert physical.endswith("docs/a.txt")


def test_resolver_missing_ancestor_is_broken_chain(store, owner_root):
    orphan = store.insert(
        Node(owner_id=OWNER, name="orphan", parent_id=999, logical_path="/x/orphan", physical_path="/x/orphan")
    )
    resolver = PathResolver(store.find_by_id, owner_root)

    with pytest.raises(BrokenChain):
        resolver.logical_path(orphan)


def test_resolver_loop_is_broken_chain(store, session, owner_root):
    a = _add(store, "a")
    b = _add(store, "b", a)
    a.parent_id = b.id
    session.add(a)
    session.commit()

    resolver = PathResolver(store.find_by_id, owner_root)
    with pytest.raises(BrokenChain):
        resolver.logical_path(b)
    with pytest.raises(BrokenChain):
        is_descendant(store.find_by_id, b.id, 12345, OWNER)


def test_is_descendant(store):
    a = _add(store, "a")
    b = _add(store, "b", a)
    c = _add(store, "c", b)
    other = _add(store, "other")

    assert is_descendant(store.find_by_id, c.id, a.id, OWNER)
    assert is_descendant(store.find_by_id, b.id, a.id, OWNER)
    assert not is_descendant(store.find_by_id, a.id, c.id, OWNER)
    assert not is_descendant(store.find_by_id, other.id, a.id, OWNER)
    # a node is not its own descendant
    assert not is_descendant(store.find_by_id, a.id, a.id, OWNER)


def test_is_descendant_is_owner_scoped(store):
    a = _add(store, "a")
    b = _add(store, "b", a)

    assert not is_descendant(store.find_by_id, b.id, a.id, OWNER + 1)
