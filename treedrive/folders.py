# Filename: treedrive/folders.py
import logging
from typing import Optional, Sequence

from .errors import InvalidTarget, NameCollision
from .models import FOLDER_MIME_TYPE, Node
from .paths import PathResolver
from .storage import make_dirs
from .store import NodeStore

logger = logging.getLogger(__name__)


class FolderMaterializer:
    """Creates folder nodes, directory first and row second."""

    def __init__(self, store: NodeStore, resolver: PathResolver) -> None:
        self.store = store
        self.resolver = resolver

    def create(self, owner_id: int, parent: Optional[Node], name: str) -> Node:
        logical_path, physical_path = self.resolver.child_paths(owner_id, parent, name)
        make_dirs(physical_path)
        folder = Node(
            owner_id=owner_id,
            name=name,
            is_folder=True,
            parent_id=parent.id if parent is not None else None,
            logical_path=logical_path,
            physical_path=physical_path,
            size=0,
            mime_type=FOLDER_MIME_TYPE,
        )
        folder = self.store.insert(folder)
        logger.info("Created folder %s (owner=%s, id=%s)", folder.logical_path, owner_id, folder.id)
        return folder

    def ensure_chain(self, owner_id: int, parent: Optional[Node], segments: Sequence[str]) -> Optional[Node]:
        """Walk ``segments`` below ``parent``, creating folders that are missing.

        Returns the last folder, or ``parent`` unchanged when there are no segments.
        """
        current = parent
        for segment in segments:
            parent_id = current.id if current is not None else None
            existing = self.store.find_by_parent_and_name(owner_id, parent_id, segment)
            if existing is None:
                current = self.create(owner_id, current, segment)
            elif existing.is_folder:
                current = existing
            else:
                raise NameCollision(f"{existing.logical_path} is a file, not a folder")
        return current

    def ensure_folder_chain(self, owner_id: int, start_parent_id: Optional[int], segments: Sequence[str]) -> Optional[int]:
        """Id-based entry point used by uploads. Returns the terminal folder id, None for the root."""
        start = None
        if start_parent_id is not None:
            start = self.store.find_by_id(start_parent_id, owner_id)
            if start is None or not start.is_folder:
                raise InvalidTarget(f"folder {start_parent_id} not found")
        terminal = self.ensure_chain(owner_id, start, segments)
        return terminal.id if terminal is not None else None
