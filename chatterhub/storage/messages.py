"""
Message storage.
"""
from typing import Iterable, List, Optional

from ..models.chat import Message, MessageCreate
from .base import BaseStorage
from .images import ImageStorage

class MessageStorage(BaseStorage[Message]):
    """Messages, ordered by createdAt with insertion order breaking ties."""

    collection = 'messages'
    model = Message

    def __init__(self, store):
        super().__init__(store)
        self.images = ImageStorage(store)

    async def create(self, data: MessageCreate) -> str:
        fields = data.model_dump() if isinstance(data, MessageCreate) else dict(data)
        fields['starred'] = False
        return await super().create(fields)

    async def update_content(self, message_id: str, content: str) -> Optional[Message]:
        return await self.update(message_id, {'content': content})

    async def toggle_star(self, message_id: str) -> Optional[bool]:
        return await self.toggle(message_id, 'starred')

    async def star(self, message_id: str) -> None:
        await self.update(message_id, {'starred': True})

    async def unstar(self, message_id: str) -> None:
        await self.update(message_id, {'starred': False})

    async def starred(self) -> List[Message]:
        return self._query(where={'starred': True}, order_by='createdAt')

    async def for_chat(self, chat_id: str) -> List[Message]:
        return self._query(where={'chatId': chat_id}, order_by='createdAt')

    async def for_chat_group(self, chat_group_id: str) -> List[Message]:
        return self._query(where={'chatGroupId': chat_group_id}, order_by='createdAt')

    async def last_in_chat(self, chat_id: str) -> Optional[Message]:
        messages = await self.for_chat(chat_id)
        return messages[-1] if messages else None

    async def count_in_chat(self, chat_id: str) -> int:
        return self.store.count(self.collection, where={'chatId': chat_id})

    async def count_in_chat_group(self, chat_group_id: str) -> int:
        return self.store.count(self.collection, where={'chatGroupId': chat_group_id})

    async def delete_message(self, message_id: str) -> bool:
        """Delete a message together with its image attachments."""
        await self.images.delete_for_message(message_id)
        return await self.delete(message_id)

    async def bulk_delete(self, message_ids: Iterable[str]) -> int:
        deleted = 0
        for message_id in list(message_ids):
            if await self.delete_message(message_id):
                deleted += 1
        return deleted

    async def delete_for_chat(self, chat_id: str) -> int:
        ids = [r['id'] for r in self.store.query(self.collection, where={'chatId': chat_id})]
        return await self.bulk_delete(ids)

    async def delete_for_chat_group(self, chat_group_id: str) -> int:
        ids = [r['id'] for r in self.store.query(self.collection, where={'chatGroupId': chat_group_id})]
        return await self.bulk_delete(ids)

    async def clear_chat(self, chat_id: str) -> int:
        """Remove every message in a chat but keep the chat."""
        return await self.delete_for_chat(chat_id)
