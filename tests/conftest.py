"""Shared fixtures: in-memory database, temporary storage root, API client."""

import os
import tempfile

# Settings are read at import time; point them somewhere disposable first.
_TMP_DIR = tempfile.mkdtemp(prefix="treedrive_tests_")
os.environ.setdefault("TREEDRIVE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("TREEDRIVE_DATABASE_URL", f"sqlite:///{os.path.join(_TMP_DIR, 'app.db')}")
os.environ.setdefault("TREEDRIVE_STORAGE_PATH", os.path.join(_TMP_DIR, "data"))

from typing import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi import Depends  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from treedrive.db import get_session  # noqa: E402
from treedrive.deps import get_tree, owner_locks  # noqa: E402
from treedrive.main import app  # noqa: E402
from treedrive.storage import owner_root_resolver  # noqa: E402
from treedrive.store import NodeStore  # noqa: E402
from treedrive.tree import TreeMutator  # noqa: E402


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture()
def store(session) -> NodeStore:
    return NodeStore(session)


@pytest.fixture()
def storage_root(tmp_path):
    root = tmp_path / "files"
    root.mkdir()
    return root


@pytest.fixture()
def owner_root(storage_root):
    return owner_root_resolver(storage_root)


@pytest.fixture()
def tree(store, owner_root) -> TreeMutator:
    return TreeMutator(store, owner_root)


@pytest.fixture()
def client(engine, storage_root):
    """TestClient wired to the in-memory database and the temporary storage root."""

    def override_get_session() -> Generator[Session, None, None]:
        with Session(engine) as session:
            yield session

    def override_get_tree(session: Session = Depends(get_session)) -> TreeMutator:
        return TreeMutator(
            NodeStore(session),
            owner_root_resolver(storage_root),
            locks=owner_locks,
            max_upload_bytes=1024,
        )

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_tree] = override_get_tree

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
