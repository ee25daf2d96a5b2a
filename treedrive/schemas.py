# Filename: treedrive/schemas.py
from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional
from datetime import datetime


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserCreate(BaseModel):
    username: str
    email: Optional[EmailStr] = None
    password: str


class UserOut(BaseModel):
    id: int
    username: str
    email: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NodeOut(BaseModel):
    id: int
    name: str
    is_folder: bool
    parent_id: Optional[int]
    logical_path: str
    size: int
    mime_type: Optional[str]
    created_at: datetime
    modified_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FolderCreate(BaseModel):
    name: str
    parent_id: Optional[int] = None


class PreviewOut(BaseModel):
    id: int
    name: str
    content: str
