# Filename: treedrive/storage.py
"""Filesystem primitives used by the tree engine.

Every OSError is re-raised as IOFailure with the original error attached.
"""
from contextlib import suppress
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union
from uuid import uuid4
import os
import shutil

from .errors import IOFailure, NameCollision, TooLarge

CHUNK_SIZE = 1024 * 1024
PREVIEW_MAX_BYTES = 1024 * 1024

PathLike = Union[str, Path]


def owner_root_resolver(base: PathLike) -> Callable[[int], Path]:
    """Map an owner id to its private directory under ``base``."""
    base_dir = Path(base).resolve()

    def resolve(owner_id: int) -> Path:
        return base_dir / str(owner_id)

    return resolve


def make_dirs(path: PathLike) -> None:
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IOFailure(f"could not create directory {path}", cause=exc) from exc


def path_exists(path: PathLike) -> bool:
    return os.path.lexists(path)


def write_stream(stream: BinaryIO, dest: PathLike, max_bytes: Optional[int] = None) -> int:
    """
    Copy ``stream`` to ``dest``, replacing any existing file. Returns bytes written.
    Data goes to a temp file beside ``dest`` first so a failed write never
    clobbers the previous content.
    """
    dest_path = Path(dest)
    tmp_path = dest_path.with_name(f".{dest_path.name}.{uuid4().hex}.part")
    size = 0
    try:
        with open(tmp_path, "wb") as out_file:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if max_bytes is not None and size > max_bytes:
                    raise TooLarge(f"upload exceeds {max_bytes} bytes")
                out_file.write(chunk)
        os.replace(tmp_path, dest_path)
    except OSError as exc:
        _discard(tmp_path)
        raise IOFailure(f"could not write {dest_path}", cause=exc) from exc
    except BaseException:
        # a broken client stream must not leave a stray .part behind
        _discard(tmp_path)
        raise
    return size


def rename_path(src: PathLike, dst: PathLike) -> None:
    """Atomic rename within one directory; never overwrites."""
    if path_exists(dst):
        raise NameCollision(f"{dst} already exists")
    try:
        os.rename(src, dst)
    except OSError as exc:
        raise IOFailure(f"could not rename {src} to {dst}", cause=exc) from exc


def move_path(src: PathLike, dst: PathLike) -> None:
    """Move a file or a whole directory tree; works across devices."""
    if path_exists(dst):
        raise NameCollision(f"{dst} already exists")
    if not path_exists(src):
        raise IOFailure(f"source {src} does not exist")
    try:
        shutil.move(str(src), str(dst))
    except OSError as exc:
        raise IOFailure(f"could not move {src} to {dst}", cause=exc) from exc


def remove_file(path: PathLike) -> None:
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as exc:
        raise IOFailure(f"could not delete {path}", cause=exc) from exc


def remove_dir(path: PathLike) -> None:
    """Remove an empty directory; a missing one is fine."""
    p = Path(path)
    if not p.exists():
        return
    try:
        p.rmdir()
    except OSError as exc:
        raise IOFailure(f"could not delete directory {path}", cause=exc) from exc


def read_capped(path: PathLike, limit: int = PREVIEW_MAX_BYTES) -> bytes:
    try:
        size = os.path.getsize(path)
        if size > limit:
            raise TooLarge(f"file is {size} bytes, preview limit is {limit}")
        with open(path, "rb") as fh:
            data = fh.read(limit + 1)
    except OSError as exc:
        raise IOFailure(f"could not read {path}", cause=exc) from exc
    # the file may have grown since the size check
    if len(data) > limit:
        raise TooLarge(f"file exceeds preview limit of {limit} bytes")
    return data


def _discard(path: Path) -> None:
    with suppress(OSError):
        path.unlink(missing_ok=True)
