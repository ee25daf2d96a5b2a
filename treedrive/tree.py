# Filename: treedrive/tree.py
"""Structural operations on an owner's tree.

Each operation changes the filesystem first and the metadata second. If the
filesystem step fails nothing is written to the store; a crash between the two
steps leaves at worst an orphaned file or directory, never a row pointing at
missing bytes.
"""
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Iterator, List, Optional
import logging
import mimetypes
import threading

from .ancestry import is_descendant
from .errors import CyclicMove, InvalidTarget, NameCollision, NotFound
from .folders import FolderMaterializer
from .models import DEFAULT_MIME_TYPE, Node
from .paths import PathResolver, replace_leaf, split_upload_name, validate_name
from .storage import (
    PREVIEW_MAX_BYTES,
    make_dirs,
    move_path,
    read_capped,
    remove_dir,
    remove_file,
    rename_path,
    write_stream,
)
from .store import NodeStore

logger = logging.getLogger(__name__)


class OwnerLocks:
    """One reentrant lock per owner, shared by every mutator in the process.

    Locks are never evicted, so the registry grows by one small RLock per owner
    that has mutated anything since startup.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.RLock] = {}

    @contextmanager
    def hold(self, owner_id: int) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(owner_id)
            if lock is None:
                lock = self._locks[owner_id] = threading.RLock()
        with lock:
            yield


class TreeMutator:
    def __init__(
        self,
        store: NodeStore,
        owner_root: Callable[[int], Path],
        locks: Optional[OwnerLocks] = None,
        max_upload_bytes: Optional[int] = None,
        preview_max_bytes: int = PREVIEW_MAX_BYTES,
    ) -> None:
        self.store = store
        self.owner_root = owner_root
        self.locks = locks if locks is not None else OwnerLocks()
        self.max_upload_bytes = max_upload_bytes
        self.preview_max_bytes = preview_max_bytes
        self.resolver = PathResolver(store.find_by_id, owner_root)
        self.folders = FolderMaterializer(store, self.resolver)

    # --- queries ---

    def get(self, node_id: int, owner_id: int) -> Node:
        node = self.store.find_by_id(node_id, owner_id)
        if node is None:
            raise NotFound(f"node {node_id} not found")
        return node

    def list_folder(self, owner_id: int, parent_id: Optional[int] = None) -> List[Node]:
        if parent_id is not None:
            parent = self.get(parent_id, owner_id)
            if not parent.is_folder:
                raise InvalidTarget(f"node {parent_id} is not a folder")
        return self.store.list_children(owner_id, parent_id)

    def preview(self, node_id: int, owner_id: int) -> bytes:
        node = self.get(node_id, owner_id)
        if node.is_folder:
            raise InvalidTarget("folders cannot be previewed")
        return read_capped(node.physical_path, self.preview_max_bytes)

    # --- mutations ---

    def create_folder(self, owner_id: int, name: str, parent_id: Optional[int] = None) -> Node:
        validate_name(name)
        with self.locks.hold(owner_id):
            parent = self._folder_or_root(owner_id, parent_id)
            if self.store.find_by_parent_and_name(owner_id, parent_id, name) is not None:
                raise NameCollision(f"'{name}' already exists in this folder")
            return self.folders.create(owner_id, parent, name)

    def upload(
        self,
        owner_id: int,
        supplied_name: str,
        stream: BinaryIO,
        parent_id: Optional[int] = None,
        mime_type: Optional[str] = None,
    ) -> Node:
        """Store ``stream`` under ``supplied_name``, which may carry folder segments.

        Missing folders on the way are created. An existing file at the final
        location is overwritten and keeps its id.
        """
        segments = split_upload_name(supplied_name)
        file_name = segments[-1]
        with self.locks.hold(owner_id):
            terminal_id = self.folders.ensure_folder_chain(owner_id, parent_id, segments[:-1])
            parent = self.get(terminal_id, owner_id) if terminal_id is not None else None

            existing = self.store.find_by_parent_and_name(owner_id, terminal_id, file_name)
            if existing is not None and existing.is_folder:
                raise NameCollision(f"{existing.logical_path} is a folder")

            logical_path, physical_path = self.resolver.child_paths(owner_id, parent, file_name)
            make_dirs(Path(physical_path).parent)
            size = write_stream(stream, physical_path, self.max_upload_bytes)
            mime = mime_type or mimetypes.guess_type(file_name)[0] or DEFAULT_MIME_TYPE

            if existing is not None:
                existing.size = size
                existing.mime_type = mime
                existing.logical_path = logical_path
                existing.physical_path = physical_path
                node = self.store.update(existing)
                logger.info("Overwrote %s (owner=%s, id=%s, %d bytes)", logical_path, owner_id, node.id, size)
                return node

            node = self.store.insert(
                Node(
                    owner_id=owner_id,
                    name=file_name,
                    is_folder=False,
                    parent_id=terminal_id,
                    logical_path=logical_path,
                    physical_path=physical_path,
                    size=size,
                    mime_type=mime,
                )
            )
            logger.info("Uploaded %s (owner=%s, id=%s, %d bytes)", logical_path, owner_id, node.id, size)
            return node

    def rename(self, node_id: int, owner_id: int, new_name: str) -> Node:
        validate_name(new_name)
        with self.locks.hold(owner_id):
            node = self.get(node_id, owner_id)
            if node.name == new_name:
                return node
            if self.store.find_by_parent_and_name(owner_id, node.parent_id, new_name) is not None:
                raise NameCollision(f"'{new_name}' already exists in this folder")

            old_physical = Path(self.resolver.physical_path(node))
            new_physical = old_physical.with_name(new_name)
            rename_path(old_physical, new_physical)

            old_logical = node.logical_path
            node.name = new_name
            node.physical_path = str(new_physical)
            node.logical_path = replace_leaf(old_logical, new_name)
            node = self.store.update(node)
            if node.is_folder:
                self._rebase_descendants(node)
            logger.info("Renamed %s -> %s (owner=%s, id=%s)", old_logical, node.logical_path, owner_id, node.id)
            return node

    def move(self, node_id: int, owner_id: int, target_folder_id: Optional[int]) -> Node:
        with self.locks.hold(owner_id):
            node = self.get(node_id, owner_id)
            target = None
            if target_folder_id is not None:
                target = self.store.find_by_id(target_folder_id, owner_id)
                if target is None or not target.is_folder:
                    raise InvalidTarget(f"target folder {target_folder_id} not found")
                if node.is_folder and (
                    target.id == node.id
                    or is_descendant(self.store.find_by_id, target.id, node.id, owner_id)
                ):
                    raise CyclicMove("cannot move a folder into itself or one of its subfolders")

            if node.parent_id == target_folder_id:
                return node
            if self.store.find_by_parent_and_name(owner_id, target_folder_id, node.name) is not None:
                raise NameCollision(f"'{node.name}' already exists in the target folder")

            source = self.resolver.physical_path(node)
            old_logical = node.logical_path
            logical_path, physical_path = self.resolver.child_paths(owner_id, target, node.name)
            make_dirs(Path(physical_path).parent)
            move_path(source, physical_path)

            node.parent_id = target_folder_id
            node.logical_path = logical_path
            node.physical_path = physical_path
            node = self.store.update(node)
            if node.is_folder:
                self._rebase_descendants(node)
            logger.info("Moved %s -> %s (owner=%s, id=%s)", old_logical, node.logical_path, owner_id, node.id)
            return node

    def delete(self, node_id: int, owner_id: int) -> None:
        with self.locks.hold(owner_id):
            node = self.store.find_by_id(node_id, owner_id)
            if node is None:
                logger.debug("Delete of missing node %s (owner=%s) ignored", node_id, owner_id)
                return
            logical_path = node.logical_path
            self._delete_subtree(node)
            logger.info("Deleted %s (owner=%s, id=%s)", logical_path, owner_id, node_id)

    # --- helpers ---

    def _folder_or_root(self, owner_id: int, folder_id: Optional[int]) -> Optional[Node]:
        if folder_id is None:
            return None
        folder = self.store.find_by_id(folder_id, owner_id)
        if folder is None or not folder.is_folder:
            raise InvalidTarget(f"folder {folder_id} not found")
        return folder

    def _delete_subtree(self, node: Node) -> None:
        # children before parent, on disk and in the store
        if node.is_folder:
            for child in self.store.list_children(node.owner_id, node.id):
                self._delete_subtree(child)
            remove_dir(node.physical_path)
        else:
            remove_file(node.physical_path)
        self.store.delete(node)

    def _rebase_descendants(self, root: Node) -> None:
        """Recompute cached paths below ``root`` after its own paths changed.

        The bytes already moved with the directory; only rows are rewritten.
        """
        children: Dict[Optional[int], List[Node]] = {}
        for node in self.store.list_owned(root.owner_id):
            children.setdefault(node.parent_id, []).append(node)

        changed: List[Node] = []
        stack = [root]
        while stack:
            parent = stack.pop()
            for child in children.get(parent.id, []):
                child.logical_path = f"{parent.logical_path}/{child.name}"
                child.physical_path = str(Path(parent.physical_path) / child.name)
                changed.append(child)
                stack.append(child)
        self.store.update_all(changed)
