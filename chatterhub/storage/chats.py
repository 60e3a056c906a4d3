"""
Chat (model pane) storage.
"""
from typing import List, Optional

from chatterhub.config.app_config import DEFAULT_MODEL

from ..models.chat import Chat, ChatUpdate
from .base import BaseStorage
from .messages import MessageStorage

class ChatStorage(BaseStorage[Chat]):
    """Chats belong to a chat group and each run one model."""

    collection = 'chats'
    model = Chat

    async def create(self, chat_group_id: str, model: str = DEFAULT_MODEL, position: int = 0) -> str:
        return await super().create({
            'chatGroupId': chat_group_id,
            'model': model,
            'position': position,
            'isActive': True,
        })

    async def update(self, chat_id: str, data: ChatUpdate) -> Optional[Chat]:
        chat = await super().update(chat_id, data)
        if chat:
            # Imported here to avoid an import cycle with groups
            from .groups import ChatGroupStorage
            await ChatGroupStorage(self.store).touch(chat.chatGroupId)
        return chat

    async def for_group(self, chat_group_id: str) -> List[Chat]:
        return self._query(where={'chatGroupId': chat_group_id}, order_by='position')

    async def reorder(self, chat_group_id: str, chat_ids: List[str]) -> List[Chat]:
        """Assign positions following ``chat_ids``; ids from other groups are ignored."""
        for position, chat_id in enumerate(chat_ids):
            chat = await self.get(chat_id)
            if chat and chat.chatGroupId == chat_group_id:
                await super().update(chat_id, {'position': position})
        return await self.for_group(chat_group_id)

    async def delete_chat(self, chat_id: str) -> bool:
        """Delete a chat with all of its messages."""
        await MessageStorage(self.store).delete_for_chat(chat_id)
        return await self.delete(chat_id)
