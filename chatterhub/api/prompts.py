"""
Prompt library API endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional

from ..models.prompt import Prompt, PromptCreate, PromptUpdate
from ..storage.backend import Store
from ..storage.prompts import PromptStorage
from .deps import get_store

router = APIRouter(prefix="/api/v1/prompts", tags=["prompts"])


@router.get("", response_model=List[Prompt])
async def list_prompts(starred: Optional[bool] = None, store: Store = Depends(get_store)):
    """List prompts newest first, optionally only starred or only regular ones."""
    storage = PromptStorage(store)
    if starred is True:
        return await storage.starred()
    if starred is False:
        return await storage.regular()
    return await storage.list()


@router.get("/tags", response_model=List[str])
async def list_tags(store: Store = Depends(get_store)):
    return await PromptStorage(store).all_tags()


@router.post("", response_model=Prompt)
async def create_prompt(data: PromptCreate, store: Store = Depends(get_store)):
    storage = PromptStorage(store)
    return await storage.get(await storage.create(data))


@router.get("/{prompt_id}", response_model=Prompt)
async def get_prompt(prompt_id: str, store: Store = Depends(get_store)):
    prompt = await PromptStorage(store).get(prompt_id)
    if not prompt:
        raise HTTPException(status_code=404, detail="Prompt not found")
    return prompt


@router.put("/{prompt_id}", response_model=Optional[Prompt])
async def update_prompt(prompt_id: str, data: PromptUpdate, store: Store = Depends(get_store)):
    return await PromptStorage(store).update(prompt_id, data)


@router.delete("/{prompt_id}")
async def delete_prompt(prompt_id: str, store: Store = Depends(get_store)):
    return {"deleted": await PromptStorage(store).delete(prompt_id)}


@router.post("/{prompt_id}/toggle-star")
async def toggle_prompt_star(prompt_id: str, store: Store = Depends(get_store)):
    return {"isStarred": await PromptStorage(store).toggle_star(prompt_id)}


@router.post("/{prompt_id}/duplicate", response_model=Prompt)
async def duplicate_prompt(prompt_id: str, store: Store = Depends(get_store)):
    storage = PromptStorage(store)
    copy_id = await storage.duplicate(prompt_id)
    if not copy_id:
        raise HTTPException(status_code=404, detail="Prompt not found")
    return await storage.get(copy_id)
