# Filename: treedrive/ancestry.py
from .errors import BrokenChain
from .paths import NodeLookup


def is_descendant(lookup: NodeLookup, candidate_id: int, of_id: int, owner_id: int) -> bool:
    """True if ``of_id`` is a proper ancestor of ``candidate_id``.

    Walks parent pointers upward from the candidate; stops at the root.
    """
    seen = {candidate_id}
    current = lookup(candidate_id, owner_id)
    while current is not None and current.parent_id is not None:
        if current.parent_id == of_id:
            return True
        if current.parent_id in seen:
            raise BrokenChain(f"parent chain of node {candidate_id} loops at {current.parent_id}")
        seen.add(current.parent_id)
        current = lookup(current.parent_id, owner_id)
    return False
