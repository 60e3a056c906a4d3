"""
Folder data models.
"""
from pydantic import BaseModel
from typing import Optional

class Folder(BaseModel):
    id: str
    name: str
    parentFolderId: Optional[str] = None
    systemPrompt: Optional[str] = None
    order: int = 0
    color: Optional[str] = None
    isPinned: bool = False
    createdAt: int
    updatedAt: int

class FolderCreate(BaseModel):
    name: str
    parentFolderId: Optional[str] = None
    systemPrompt: Optional[str] = None
    order: Optional[int] = None
    color: Optional[str] = None

class FolderUpdate(BaseModel):
    name: Optional[str] = None
    parentFolderId: Optional[str] = None
    systemPrompt: Optional[str] = None
    order: Optional[int] = None
    color: Optional[str] = None
    isPinned: Optional[bool] = None
