# Filename: treedrive/db.py
import logging

from sqlmodel import SQLModel, create_engine, Session, select

from .config import settings
from .models import User
from .storage import make_dirs, owner_root_resolver

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
engine = create_engine(settings.database_url, echo=False, connect_args=connect_args)


def init_db() -> None:
    """Create tables, the files root and one root directory per known owner.

    Owner roots are normally made at registration; recreating them here lets a
    wiped or freshly mounted storage volume serve existing accounts again.
    """
    SQLModel.metadata.create_all(engine)
    make_dirs(settings.files_root)
    owner_root = owner_root_resolver(settings.files_root)
    with Session(engine) as session:
        owner_ids = session.exec(select(User.id)).all()
    for owner_id in owner_ids:
        make_dirs(owner_root(owner_id))
    logger.info("Database ready, %d owner roots under %s", len(owner_ids), settings.files_root)


def get_session():
    """Yield a DB session (dependency)."""
    with Session(engine) as session:
        yield session
