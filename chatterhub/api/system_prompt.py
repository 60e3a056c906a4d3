"""
System prompt resolution API endpoints.
"""
from fastapi import APIRouter, Depends
from typing import Dict

from ..models.system_prompt import EffectivePrompt
from ..services.system_prompt import get_effective_system_prompt, get_effective_system_prompts
from ..storage.backend import Store
from .deps import get_store

router = APIRouter(prefix="/api/v1/system-prompts", tags=["system-prompts"])


@router.get("", response_model=Dict[str, EffectivePrompt])
async def effective_system_prompts(store: Store = Depends(get_store)):
    """Effective prompt of every chat group, keyed by chat group id."""
    return await get_effective_system_prompts(store)


@router.get("/{chat_group_id}", response_model=EffectivePrompt)
async def effective_system_prompt(chat_group_id: str, store: Store = Depends(get_store)):
    """Empty prompt with source ``none`` for an unknown chat group."""
    return await get_effective_system_prompt(store, chat_group_id)
