# Filename: treedrive/store.py
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .errors import NameCollision
from .models import Node


class NodeStore:
    """Owner-scoped persistence for nodes.

    Every write commits immediately. Sibling name uniqueness is checked here
    as well as by the table constraint, since the constraint does not cover
    root-level nodes (NULL parent).
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_id(self, node_id: int, owner_id: int) -> Optional[Node]:
        statement = select(Node).where(Node.id == node_id, Node.owner_id == owner_id)
        return self.session.exec(statement).first()

    def find_by_parent_and_name(self, owner_id: int, parent_id: Optional[int], name: str) -> Optional[Node]:
        statement = select(Node).where(Node.owner_id == owner_id, Node.name == name)
        if parent_id is None:
            statement = statement.where(Node.parent_id == None)  # noqa: E711
        else:
            statement = statement.where(Node.parent_id == parent_id)
        return self.session.exec(statement).first()

    def list_children(self, owner_id: int, parent_id: Optional[int]) -> List[Node]:
        statement = select(Node).where(Node.owner_id == owner_id)
        if parent_id is None:
            statement = statement.where(Node.parent_id == None)  # noqa: E711
        else:
            statement = statement.where(Node.parent_id == parent_id)
        # folders first, newest first
        statement = statement.order_by(Node.is_folder.desc(), Node.created_at.desc(), Node.id.desc())
        return list(self.session.exec(statement).all())

    def list_owned(self, owner_id: int) -> List[Node]:
        statement = select(Node).where(Node.owner_id == owner_id)
        return list(self.session.exec(statement).all())

    def insert(self, node: Node) -> Node:
        self._check_unique(node)
        self.session.add(node)
        self._commit(node.name)
        self.session.refresh(node)
        return node

    def update(self, node: Node) -> Node:
        self._check_unique(node)
        node.modified_at = datetime.utcnow()
        self.session.add(node)
        self._commit(node.name)
        self.session.refresh(node)
        return node

    def update_all(self, nodes: Iterable[Node]) -> None:
        """Persist path rewrites for a batch of nodes in a single commit."""
        now = datetime.utcnow()
        touched = None
        for node in nodes:
            node.modified_at = now
            self.session.add(node)
            touched = node
        if touched is not None:
            self._commit(touched.name)

    def delete(self, node: Node) -> None:
        self.session.delete(node)
        self.session.commit()

    def _check_unique(self, node: Node) -> None:
        # the node may carry unflushed edits; keep them out of this query
        with self.session.no_autoflush:
            existing = self.find_by_parent_and_name(node.owner_id, node.parent_id, node.name)
        if existing is not None and existing.id != node.id:
            raise NameCollision(f"'{node.name}' already exists in this folder")

    def _commit(self, name: str) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise NameCollision(f"'{name}' already exists in this folder", cause=exc) from exc
