"""
Reusable prompt storage.
"""
from typing import List, Optional

from ..models.prompt import Prompt
from .base import BaseStorage

class PromptStorage(BaseStorage[Prompt]):
    collection = 'prompts'
    model = Prompt

    async def list(self) -> List[Prompt]:
        """All prompts, newest first."""
        return self._query(order_by='createdAt', reverse=True)

    async def starred(self) -> List[Prompt]:
        return [p for p in await self.list() if p.isStarred]

    async def regular(self) -> List[Prompt]:
        return [p for p in await self.list() if not p.isStarred]

    async def all_tags(self) -> List[str]:
        tags = set()
        for prompt in self._query():
            tags.update(prompt.tags)
        return sorted(tags)

    async def toggle_star(self, prompt_id: str) -> Optional[bool]:
        return await self.toggle(prompt_id, 'isStarred')

    async def duplicate(self, prompt_id: str) -> Optional[str]:
        """
        Copy a prompt under a new id. The copy is titled "Copy of <title>",
        is never starred and gets fresh timestamps. Returns None if the
        source prompt does not exist.
        """
        prompt = await self.get(prompt_id)
        if not prompt:
            return None
        fields = prompt.model_dump()
        fields['title'] = f"Copy of {prompt.title}"
        fields['isStarred'] = False
        return await super().create(fields)
