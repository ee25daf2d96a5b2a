# Filename: treedrive/paths.py
"""Logical and physical path computation over the node tree.

Logical paths look like ``/docs/reports/q1.txt``. Physical paths are the same
names joined under the owner's root directory. Nothing here touches the
filesystem.
"""
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .errors import BrokenChain, InvalidName
from .models import Node

SEPARATOR = "/"
_FORBIDDEN = ("/", "\\", "\x00")

NodeLookup = Callable[[int, int], Optional[Node]]
OwnerRoot = Callable[[int], Path]


def validate_name(name: str) -> str:
    if not name or name in (".", ".."):
        raise InvalidName(f"invalid name: {name!r}")
    if any(ch in name for ch in _FORBIDDEN):
        raise InvalidName(f"name must not contain a path separator: {name!r}")
    return name


def split_upload_name(supplied_name: str) -> List[str]:
    """Split an uploaded filename into folder segments plus the file name.

    Both slash styles are accepted; empty segments are dropped.
    """
    normalized = (supplied_name or "").replace("\\", SEPARATOR)
    segments = [segment for segment in normalized.split(SEPARATOR) if segment]
    if not segments:
        raise InvalidName("file name must not be empty")
    for segment in segments:
        validate_name(segment)
    return segments


def replace_leaf(logical_path: str, new_name: str) -> str:
    head = logical_path.rsplit(SEPARATOR, 1)[0]
    return f"{head}{SEPARATOR}{new_name}"


class PathResolver:
    def __init__(self, lookup: NodeLookup, owner_root: OwnerRoot) -> None:
        self.lookup = lookup
        self.owner_root = owner_root

    def ancestry_names(self, node: Node) -> List[str]:
        """Names from the root down to ``node`` inclusive."""
        names = [node.name]
        seen = {node.id}
        parent_id = node.parent_id
        while parent_id is not None:
            if parent_id in seen:
                raise BrokenChain(f"parent chain of node {node.id} loops at {parent_id}")
            parent = self.lookup(parent_id, node.owner_id)
            if parent is None:
                raise BrokenChain(f"ancestor {parent_id} of node {node.id} does not exist")
            seen.add(parent_id)
            names.append(parent.name)
            parent_id = parent.parent_id
        names.reverse()
        return names

    def logical_path(self, node: Node) -> str:
        return SEPARATOR + SEPARATOR.join(self.ancestry_names(node))

    def physical_path(self, node: Node) -> str:
        return str(self.owner_root(node.owner_id).joinpath(*self.ancestry_names(node)))

    def child_paths(self, owner_id: int, parent: Optional[Node], name: str) -> Tuple[str, str]:
        """Paths a node called ``name`` would have under ``parent`` (None = root)."""
        if parent is None:
            return SEPARATOR + name, str(self.owner_root(owner_id) / name)
        return parent.logical_path + SEPARATOR + name, str(Path(parent.physical_path) / name)
