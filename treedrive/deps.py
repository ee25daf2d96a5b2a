# Filename: treedrive/deps.py
from fastapi import Depends
from sqlmodel import Session

from .config import settings
from .db import get_session
from .storage import owner_root_resolver
from .store import NodeStore
from .tree import OwnerLocks, TreeMutator

# process-wide: every request's mutator must see the same per-owner locks
owner_locks = OwnerLocks()
owner_root = owner_root_resolver(settings.files_root)


def get_tree(session: Session = Depends(get_session)) -> TreeMutator:
    """Build a request-scoped TreeMutator (dependency)."""
    return TreeMutator(
        NodeStore(session),
        owner_root,
        locks=owner_locks,
        max_upload_bytes=settings.max_upload_bytes,
        preview_max_bytes=settings.preview_max_bytes,
    )
