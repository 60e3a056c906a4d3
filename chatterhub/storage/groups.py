"""
Chat group storage implementation.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from chatterhub.config.app_config import (
    DEFAULT_CHAT_TITLE,
    DEFAULT_MODEL,
    INCOGNITO_CHAT_TITLE,
    SMART_TITLE_MAX_LENGTH,
    TEMPORARY_CHAT_TTL_MINUTES,
)
from chatterhub.utils.custom_exceptions import NotFoundError
from chatterhub.utils.logging_utils import logger

from ..models.chat import ChatGroup, ChatGroupCreate, ChatGroupUpdate, ChatGroupWithChats
from .base import BaseStorage, Fields, new_id, now_ms
from .chats import ChatStorage
from .images import ImageStorage
from .messages import MessageStorage


def generate_smart_title(first_message: str, max_length: int = SMART_TITLE_MAX_LENGTH) -> str:
    """Title from the first line of a message, truncated with '...'."""
    first_line = first_message.split('\n')[0]
    if not first_line:
        return first_message[:max_length]
    if len(first_line) <= max_length:
        return first_line
    return first_line[:max_length - 3] + '...'


@dataclass
class DuplicateProgress:
    step: str
    chatGroupName: str
    totalMessages: int = 0
    messagesCopied: int = 0
    totalAttachments: int = 0
    attachmentsCopied: int = 0


class ChatGroupStorage(BaseStorage[ChatGroup]):
    """Chat groups, placed in folders (or at the root when folderId is None)."""

    collection = 'chatGroups'
    model = ChatGroup

    def __init__(self, store):
        super().__init__(store)
        self.chats = ChatStorage(store)
        self.messages = MessageStorage(store)
        self.images = ImageStorage(store)

    def _orders_in(self, folder_id: Optional[str]) -> List[int]:
        return [g.get('order') or 0 for g in self.store.query(self.collection, where={'folderId': folder_id})]

    async def list(self) -> List[ChatGroup]:
        return self._query(order_by='order')

    async def in_folder(self, folder_id: Optional[str]) -> List[ChatGroup]:
        """Chat groups directly inside ``folder_id`` (None for the root)."""
        return self._query(where={'folderId': folder_id}, order_by='order')

    async def with_chats(self, chat_group_id: str) -> Optional[ChatGroupWithChats]:
        group = await self.get(chat_group_id)
        if not group:
            return None
        chats = await self.chats.for_group(chat_group_id)
        return ChatGroupWithChats(**group.model_dump(), chats=chats)

    async def create(self, data: Optional[ChatGroupCreate] = None) -> str:
        """Create a chat group at the top of its folder, with one initial chat."""
        data = data or ChatGroupCreate()
        now = now_ms()
        name = data.name or (INCOGNITO_CHAT_TITLE if data.isTemporary else DEFAULT_CHAT_TITLE)

        group_id = await super().create({
            'name': name,
            'folderId': data.folderId,
            'ownSystemPrompt': data.ownSystemPrompt,
            'layout': data.layout,
            'order': min([0] + self._orders_in(data.folderId)) - 1,
            'isTemporary': data.isTemporary,
            'lastActivityAt': now if data.isTemporary else None,
        })
        await self.chats.create(group_id, data.model or DEFAULT_MODEL, 0)
        logger.debug(f"Created chat group {group_id} in folder {data.folderId}")
        return group_id

    async def update(self, chat_group_id: str, data: Fields) -> Optional[ChatGroup]:
        group = await self.get(chat_group_id)
        if not group:
            return None
        if isinstance(data, ChatGroupUpdate):
            data = data.model_dump(exclude_unset=True)
        else:
            data = dict(data)
        if group.isTemporary:
            data['lastActivityAt'] = now_ms()
        return await super().update(chat_group_id, data)

    async def set_system_prompt(self, chat_group_id: str, prompt: Optional[str]) -> Optional[ChatGroup]:
        return await self.update(chat_group_id, {'ownSystemPrompt': prompt})

    async def rename(self, chat_group_id: str, name: str) -> Optional[ChatGroup]:
        return await self.update(chat_group_id, {'name': name.strip()})

    async def toggle_pin(self, chat_group_id: str) -> Optional[bool]:
        return await self.toggle(chat_group_id, 'isPinned')

    async def move_to_folder(self, chat_group_id: str, folder_id: Optional[str]) -> Optional[ChatGroup]:
        """Move to the bottom of ``folder_id``."""
        max_order = max([0] + self._orders_in(folder_id))
        return await self.update(chat_group_id, {'folderId': folder_id, 'order': max_order + 1})

    async def touch(self, chat_group_id: str) -> Optional[ChatGroup]:
        """Record activity on a chat group."""
        return await super().update(chat_group_id, {'lastActivityAt': now_ms()})

    async def save_draft(self, chat_group_id: str, draft: str) -> None:
        await super().update(chat_group_id, {'draftInput': draft})

    async def clear_draft(self, chat_group_id: str) -> None:
        await super().update(chat_group_id, {'draftInput': ''})

    async def get_draft(self, chat_group_id: str) -> Optional[str]:
        group = await self.get(chat_group_id)
        return group.draftInput if group else None

    async def update_title_if_default(self, chat_group_id: str, first_message: str) -> Optional[ChatGroup]:
        """Replace a placeholder title with one derived from the first message."""
        group = await self.get(chat_group_id)
        if group and group.name in (DEFAULT_CHAT_TITLE, INCOGNITO_CHAT_TITLE):
            return await self.update(chat_group_id, {'name': generate_smart_title(first_message)})
        return None

    async def delete_chat_group(self, chat_group_id: str) -> bool:
        """Delete a chat group with its chats, messages and image attachments."""
        for chat in await self.chats.for_group(chat_group_id):
            await self.messages.delete_for_chat(chat.id)
            await self.chats.delete(chat.id)
        # Messages whose chat was already gone
        await self.messages.delete_for_chat_group(chat_group_id)
        await self.images.delete_for_chat_group(chat_group_id)
        return await self.delete(chat_group_id)

    async def delete_chat_groups(self, chat_group_ids: List[str]) -> int:
        deleted = 0
        for chat_group_id in chat_group_ids:
            if await self.delete_chat_group(chat_group_id):
                deleted += 1
        return deleted

    async def duplicate(
        self,
        chat_group_id: str,
        on_progress: Optional[Callable[[DuplicateProgress], None]] = None,
    ) -> str:
        """
        Copy a chat group with its chats, messages and attachments.

        Every copied record gets a new id and references are remapped to the
        copies. The copy is placed at the top of the same folder with the
        title suffixed " (Copy)" and an empty draft.
        """
        original = await self.get(chat_group_id)
        if not original:
            raise NotFoundError('Chat group', chat_group_id)

        original_chats = await self.chats.for_group(chat_group_id)
        messages = await self.messages.for_chat_group(chat_group_id)
        attachments = await self.images.for_chat_group(chat_group_id)

        progress = DuplicateProgress(
            step='starting',
            chatGroupName=original.name,
            totalMessages=len(messages),
            totalAttachments=len(attachments),
        )

        def report(step: str) -> None:
            progress.step = step
            if on_progress:
                on_progress(progress)

        report('starting')

        now = now_ms()
        copy_id = new_id()
        report('chatGroup')
        self._write(original.model_copy(update={
            'id': copy_id,
            'name': f"{original.name} (Copy)",
            'order': min([0] + self._orders_in(original.folderId)) - 1,
            'draftInput': '',
            'updatedAt': now,
        }))

        report('chats')
        chat_ids: Dict[str, str] = {}
        chat_copies = []
        for chat in original_chats:
            chat_ids[chat.id] = new_id()
            chat_copies.append(chat.model_copy(update={
                'id': chat_ids[chat.id],
                'chatGroupId': copy_id,
                'updatedAt': now,
            }))
        self.chats._write_many(chat_copies)

        report('messages')
        message_ids: Dict[str, str] = {}
        message_copies = []
        for message in messages:
            new_chat_id = chat_ids.get(message.chatId)
            if not new_chat_id:
                continue
            message_ids[message.id] = new_id()
            message_copies.append(message.model_copy(update={
                'id': message_ids[message.id],
                'chatId': new_chat_id,
                'chatGroupId': copy_id,
            }))
            progress.messagesCopied += 1
            report('messages')
        self.messages._write_many(message_copies)

        if attachments:
            report('attachments')
            attachment_copies = []
            for attachment in attachments:
                new_message_id = message_ids.get(attachment.messageId)
                if new_message_id:
                    attachment_copies.append(attachment.model_copy(update={
                        'id': new_id(),
                        'messageId': new_message_id,
                        'chatGroupId': copy_id,
                    }))
                progress.attachmentsCopied += 1
                report('attachments')
            self.images._write_many(attachment_copies)

        report('completed')
        logger.info(f"Duplicated chat group {chat_group_id} as {copy_id}")
        return copy_id

    async def cleanup_temporary(self, older_than_minutes: int = TEMPORARY_CHAT_TTL_MINUTES) -> int:
        """Delete temporary chat groups idle for longer than ``older_than_minutes``."""
        cutoff = now_ms() - older_than_minutes * 60 * 1000
        removed = 0
        for group in self._query(where={'isTemporary': True}):
            if group.lastActivityAt and group.lastActivityAt < cutoff:
                await self.delete_chat_group(group.id)
                removed += 1
        if removed:
            logger.info(f"Removed {removed} expired temporary chat groups")
        return removed
