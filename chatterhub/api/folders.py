"""
Folder API endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import List, Optional

from ..models.folder import Folder, FolderCreate, FolderUpdate
from ..models.system_prompt import InheritedPrompt
from ..services.system_prompt import (
    get_affected_chat_groups, get_inherited_system_prompt, preview_affected_chat_groups,
)
from ..storage.backend import Store
from ..storage.folders import FolderStorage
from .deps import get_store

router = APIRouter(prefix="/api/v1/folders", tags=["folders"])


class FolderMove(BaseModel):
    parentFolderId: Optional[str] = None


class PromptPreview(BaseModel):
    systemPrompt: Optional[str] = None


@router.get("", response_model=List[Folder])
async def list_folders(parent_id: Optional[str] = None, store: Store = Depends(get_store)):
    """List folders, optionally only the children of ``parent_id``."""
    storage = FolderStorage(store)
    if parent_id is not None:
        return await storage.children(parent_id)
    return await storage.list()


@router.post("", response_model=Folder)
async def create_folder(data: FolderCreate, store: Store = Depends(get_store)):
    storage = FolderStorage(store)
    return await storage.get(await storage.create(data))


@router.put("/reorder", response_model=List[Folder])
async def reorder_folders(ordered_ids: List[str], store: Store = Depends(get_store)):
    return await FolderStorage(store).reorder(ordered_ids)


@router.get("/{folder_id}", response_model=Folder)
async def get_folder(folder_id: str, store: Store = Depends(get_store)):
    folder = await FolderStorage(store).get(folder_id)
    if not folder:
        raise HTTPException(status_code=404, detail="Folder not found")
    return folder


@router.put("/{folder_id}", response_model=Optional[Folder])
async def update_folder(folder_id: str, data: FolderUpdate, store: Store = Depends(get_store)):
    """Update a folder. Changing ``parentFolderId`` goes through the cycle check."""
    storage = FolderStorage(store)
    if 'parentFolderId' in data.model_fields_set:
        await storage.move(folder_id, data.parentFolderId)
    return await storage.update(folder_id, data.model_dump(exclude_unset=True, exclude={'parentFolderId'}))


@router.post("/{folder_id}/move", response_model=Optional[Folder])
async def move_folder(folder_id: str, data: FolderMove, store: Store = Depends(get_store)):
    return await FolderStorage(store).move(folder_id, data.parentFolderId)


@router.post("/{folder_id}/toggle-pin")
async def toggle_folder_pin(folder_id: str, store: Store = Depends(get_store)):
    return {"isPinned": await FolderStorage(store).toggle_pin(folder_id)}


@router.delete("/{folder_id}")
async def delete_folder(folder_id: str, delete_contents: bool = True, store: Store = Depends(get_store)):
    """Delete a folder, either with its contents or moving them up a level."""
    deleted = await FolderStorage(store).delete_folder(folder_id, delete_contents=delete_contents)
    return {"deleted": deleted}


@router.get("/{folder_id}/ancestors", response_model=List[Folder])
async def folder_ancestors(folder_id: str, store: Store = Depends(get_store)):
    return await FolderStorage(store).ancestors(folder_id)


@router.get("/{folder_id}/inherited-prompt", response_model=InheritedPrompt)
async def inherited_prompt(folder_id: str, store: Store = Depends(get_store)):
    return await get_inherited_system_prompt(store, folder_id)


@router.get("/{folder_id}/affected-chat-groups", response_model=List[str])
async def affected_chat_groups(folder_id: str, store: Store = Depends(get_store)):
    return await get_affected_chat_groups(store, folder_id)


@router.post("/{folder_id}/preview-prompt", response_model=List[str])
async def preview_prompt_change(folder_id: str, data: PromptPreview, store: Store = Depends(get_store)):
    """Chat groups whose effective prompt would change. Nothing is saved."""
    return await preview_affected_chat_groups(store, folder_id, data.systemPrompt)
