# Filename: treedrive/routers/files.py
from fastapi import APIRouter, Depends, UploadFile, File, Form, status, Query, Body, Response
from fastapi.responses import FileResponse
from typing import List, Optional

from ..models import User
from ..schemas import NodeOut, FolderCreate, PreviewOut
from ..auth import get_current_user
from ..deps import get_tree
from ..errors import InvalidTarget, NotFound
from ..storage import path_exists
from ..tree import TreeMutator

router = APIRouter(prefix="/api", tags=["files"])


# Sync handlers: the tree engine blocks on disk and DB, FastAPI runs these in its threadpool.

@router.post("/upload", response_model=NodeOut, status_code=status.HTTP_201_CREATED)
def upload_file(
    upload: UploadFile = File(...),
    parent_id: Optional[int] = Query(default=None),
    relative_path: Optional[str] = Form(default=None),
    current_user: User = Depends(get_current_user),
    tree: TreeMutator = Depends(get_tree),
):
    # relative_path lets a browser send a dragged folder's structure (e.g. webkitRelativePath)
    supplied_name = relative_path or upload.filename or ""
    return tree.upload(current_user.id, supplied_name, upload.file, parent_id=parent_id, mime_type=upload.content_type)


@router.get("/nodes", response_model=List[NodeOut])
def list_nodes(
    parent_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    tree: TreeMutator = Depends(get_tree),
):
    return tree.list_folder(current_user.id, parent_id)


@router.get("/nodes/{node_id}", response_model=NodeOut)
def get_node(node_id: int, current_user: User = Depends(get_current_user), tree: TreeMutator = Depends(get_tree)):
    return tree.get(node_id, current_user.id)


@router.post("/folders", response_model=NodeOut, status_code=status.HTTP_201_CREATED)
def create_folder(data: FolderCreate, current_user: User = Depends(get_current_user), tree: TreeMutator = Depends(get_tree)):
    return tree.create_folder(current_user.id, data.name, parent_id=data.parent_id)


@router.post("/nodes/{node_id}/rename", response_model=NodeOut)
def rename_node(
    node_id: int,
    new_name: str = Body(..., embed=True),
    current_user: User = Depends(get_current_user),
    tree: TreeMutator = Depends(get_tree),
):
    return tree.rename(node_id, current_user.id, new_name)


@router.post("/nodes/{node_id}/move", response_model=NodeOut)
def move_node(
    node_id: int,
    folder_id: Optional[int] = Body(None, embed=True),
    current_user: User = Depends(get_current_user),
    tree: TreeMutator = Depends(get_tree),
):
    return tree.move(node_id, current_user.id, folder_id)


@router.delete("/nodes/{node_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_node(node_id: int, current_user: User = Depends(get_current_user), tree: TreeMutator = Depends(get_tree)):
    tree.delete(node_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/nodes/{node_id}/download")
def download_node(node_id: int, current_user: User = Depends(get_current_user), tree: TreeMutator = Depends(get_tree)):
    node = tree.get(node_id, current_user.id)
    if node.is_folder:
        raise InvalidTarget("folders cannot be downloaded")
    if not path_exists(node.physical_path):
        raise NotFound("file missing on disk")
    return FileResponse(node.physical_path, media_type=node.mime_type or "application/octet-stream", filename=node.name)


@router.get("/nodes/{node_id}/preview", response_model=PreviewOut)
def preview_node(node_id: int, current_user: User = Depends(get_current_user), tree: TreeMutator = Depends(get_tree)):
    data = tree.preview(node_id, current_user.id)
    node = tree.get(node_id, current_user.id)
    return PreviewOut(id=node.id, name=node.name, content=data.decode("utf-8", errors="replace"))
