"""
Assembles the role/content sequence handed to model invocation.
"""
from typing import List, Optional

from ..models.chat import ConversationMessage
from ..storage.backend import Store
from .system_prompt import get_effective_system_prompt


async def build_conversation(
    store: Store,
    chat_group_id: str,
    system_prompt: Optional[str] = None,
    chat_id: Optional[str] = None,
) -> List[ConversationMessage]:
    """
    Leading system entry (``system_prompt`` if given, else the chat group's
    effective prompt; omitted when empty) followed by the messages in
    ``createdAt`` order. With ``chat_id`` only that chat's messages are used.
    """
    if system_prompt is None:
        system_prompt = (await get_effective_system_prompt(store, chat_group_id)).prompt

    conversation: List[ConversationMessage] = []
    if system_prompt:
        conversation.append(ConversationMessage(role='system', content=system_prompt))

    where = {'chatId': chat_id} if chat_id else {'chatGroupId': chat_group_id}
    for message in store.query('messages', where=where, order_by='createdAt'):
        conversation.append(ConversationMessage(role=message['role'], content=message['content']))
    return conversation


def as_dicts(conversation: List[ConversationMessage]) -> List[dict]:
    return [m.model_dump() for m in conversation]
