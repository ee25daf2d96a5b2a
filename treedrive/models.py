# Filename: treedrive/models.py
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

FOLDER_MIME_TYPE = "inode/directory"
DEFAULT_MIME_TYPE = "application/octet-stream"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    email: Optional[str] = Field(default=None, index=True)
    hashed_password: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Node(SQLModel, table=True):
    """A file or folder in an owner's tree.

    ``logical_path`` and ``physical_path`` are caches of the ancestor chain and
    are rewritten whenever a rename or move changes that chain.
    """

    # NULL parents are not covered by the constraint; NodeStore checks those.
    __table_args__ = (UniqueConstraint("owner_id", "parent_id", "name", name="uq_node_owner_parent_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True)
    name: str
    is_folder: bool = Field(default=False)
    parent_id: Optional[int] = Field(default=None, foreign_key="node.id", index=True)
    logical_path: str
    physical_path: str
    size: int = 0
    mime_type: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    modified_at: datetime = Field(default_factory=datetime.utcnow)
