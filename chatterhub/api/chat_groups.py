"""
Chat group, chat and message API endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import List, Optional

from ..models.chat import (
    Chat, ChatGroup, ChatGroupCreate, ChatGroupUpdate, ChatGroupWithChats, ChatUpdate,
    ConversationMessage, Message, MessageCreate, Role,
)
from ..models.image import ImageAttachment, ImageData
from ..models.system_prompt import FolderPathEntry, SystemPromptInfo
from ..services.conversation import build_conversation
from ..services.system_prompt import get_folder_path, get_system_prompt_info
from ..storage.backend import Store
from ..storage.groups import ChatGroupStorage
from ..utils.custom_exceptions import NotFoundError
from .deps import get_store

router = APIRouter(prefix="/api/v1", tags=["chat-groups"])


class ChatGroupMove(BaseModel):
    folderId: Optional[str] = None


class ChatCreate(BaseModel):
    model: Optional[str] = None


class DraftBody(BaseModel):
    draftInput: str = ''


class MessageBody(BaseModel):
    role: Role
    content: str
    model: Optional[str] = None
    images: List[ImageData] = []


class ContentBody(BaseModel):
    content: str


class BulkDelete(BaseModel):
    ids: List[str]


async def _require_group(storage: ChatGroupStorage, chat_group_id: str) -> ChatGroup:
    group = await storage.get(chat_group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Chat group not found")
    return group


# Chat groups

@router.get("/chat-groups", response_model=List[ChatGroup])
async def list_chat_groups(folder_id: Optional[str] = None, root: bool = False, store: Store = Depends(get_store)):
    """List chat groups; ``folder_id`` or ``root=true`` narrows to one folder."""
    storage = ChatGroupStorage(store)
    if folder_id is not None or root:
        return await storage.in_folder(folder_id)
    return await storage.list()


@router.post("/chat-groups", response_model=ChatGroupWithChats)
async def create_chat_group(data: ChatGroupCreate, store: Store = Depends(get_store)):
    storage = ChatGroupStorage(store)
    return await storage.with_chats(await storage.create(data))


@router.post("/chat-groups/bulk-delete")
async def bulk_delete_chat_groups(data: BulkDelete, store: Store = Depends(get_store)):
    return {"deleted": await ChatGroupStorage(store).delete_chat_groups(data.ids)}


@router.post("/chat-groups/cleanup-temporary")
async def cleanup_temporary_chat_groups(older_than_minutes: Optional[int] = None, store: Store = Depends(get_store)):
    storage = ChatGroupStorage(store)
    if older_than_minutes is None:
        return {"deleted": await storage.cleanup_temporary()}
    return {"deleted": await storage.cleanup_temporary(older_than_minutes)}


@router.get("/chat-groups/{chat_group_id}", response_model=ChatGroupWithChats)
async def get_chat_group(chat_group_id: str, store: Store = Depends(get_store)):
    group = await ChatGroupStorage(store).with_chats(chat_group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Chat group not found")
    return group


@router.put("/chat-groups/{chat_group_id}", response_model=Optional[ChatGroup])
async def update_chat_group(chat_group_id: str, data: ChatGroupUpdate, store: Store = Depends(get_store)):
    return await ChatGroupStorage(store).update(chat_group_id, data)


@router.delete("/chat-groups/{chat_group_id}")
async def delete_chat_group(chat_group_id: str, store: Store = Depends(get_store)):
    """Delete a chat group with its chats, messages and attachments."""
    return {"deleted": await ChatGroupStorage(store).delete_chat_group(chat_group_id)}


@router.post("/chat-groups/{chat_group_id}/move", response_model=Optional[ChatGroup])
async def move_chat_group(chat_group_id: str, data: ChatGroupMove, store: Store = Depends(get_store)):
    return await ChatGroupStorage(store).move_to_folder(chat_group_id, data.folderId)


@router.post("/chat-groups/{chat_group_id}/toggle-pin")
async def toggle_chat_group_pin(chat_group_id: str, store: Store = Depends(get_store)):
    return {"isPinned": await ChatGroupStorage(store).toggle_pin(chat_group_id)}


@router.post("/chat-groups/{chat_group_id}/duplicate", response_model=ChatGroupWithChats)
async def duplicate_chat_group(chat_group_id: str, store: Store = Depends(get_store)):
    storage = ChatGroupStorage(store)
    try:
        new_id = await storage.duplicate(chat_group_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return await storage.with_chats(new_id)


@router.get("/chat-groups/{chat_group_id}/draft")
async def get_draft(chat_group_id: str, store: Store = Depends(get_store)):
    storage = ChatGroupStorage(store)
    await _require_group(storage, chat_group_id)
    return {"draftInput": await storage.get_draft(chat_group_id) or ''}


@router.put("/chat-groups/{chat_group_id}/draft")
async def save_draft(chat_group_id: str, data: DraftBody, store: Store = Depends(get_store)):
    await ChatGroupStorage(store).save_draft(chat_group_id, data.draftInput)
    return {"saved": True}


@router.get("/chat-groups/{chat_group_id}/system-prompt", response_model=SystemPromptInfo)
async def chat_group_system_prompt(chat_group_id: str, store: Store = Depends(get_store)):
    """Effective system prompt with its source and inheritance path."""
    await _require_group(ChatGroupStorage(store), chat_group_id)
    return await get_system_prompt_info(store, chat_group_id)


@router.get("/chat-groups/{chat_group_id}/folder-path", response_model=List[FolderPathEntry])
async def chat_group_folder_path(chat_group_id: str, store: Store = Depends(get_store)):
    await _require_group(ChatGroupStorage(store), chat_group_id)
    return await get_folder_path(store, chat_group_id)


@router.get("/chat-groups/{chat_group_id}/conversation", response_model=List[ConversationMessage])
async def chat_group_conversation(chat_group_id: str, chat_id: Optional[str] = None, store: Store = Depends(get_store)):
    """The role/content sequence a model would be sent for this chat group."""
    await _require_group(ChatGroupStorage(store), chat_group_id)
    return await build_conversation(store, chat_group_id, chat_id=chat_id)


# Chats

@router.post("/chat-groups/{chat_group_id}/chats", response_model=Chat)
async def add_chat(chat_group_id: str, data: ChatCreate, store: Store = Depends(get_store)):
    """Add a model pane at the end of the chat group."""
    storage = ChatGroupStorage(store)
    await _require_group(storage, chat_group_id)
    existing = await storage.chats.for_group(chat_group_id)
    position = max([c.position for c in existing], default=-1) + 1
    if data.model:
        chat_id = await storage.chats.create(chat_group_id, data.model, position)
    else:
        chat_id = await storage.chats.create(chat_group_id, position=position)
    return await storage.chats.get(chat_id)


@router.put("/chat-groups/{chat_group_id}/chats/reorder", response_model=List[Chat])
async def reorder_chats(chat_group_id: str, ordered_ids: List[str], store: Store = Depends(get_store)):
    return await ChatGroupStorage(store).chats.reorder(chat_group_id, ordered_ids)


@router.put("/chats/{chat_id}", response_model=Optional[Chat])
async def update_chat(chat_id: str, data: ChatUpdate, store: Store = Depends(get_store)):
    return await ChatGroupStorage(store).chats.update(chat_id, data)


@router.delete("/chats/{chat_id}")
async def delete_chat(chat_id: str, store: Store = Depends(get_store)):
    return {"deleted": await ChatGroupStorage(store).chats.delete_chat(chat_id)}


# Messages

@router.get("/chats/{chat_id}/messages", response_model=List[Message])
async def list_messages(chat_id: str, store: Store = Depends(get_store)):
    return await ChatGroupStorage(store).messages.for_chat(chat_id)


@router.post("/chats/{chat_id}/messages", response_model=Message)
async def add_message(chat_id: str, data: MessageBody, store: Store = Depends(get_store)):
    """
    Append a message to a chat, with optional image attachments.

    The first user message replaces a placeholder chat group title.
    """
    storage = ChatGroupStorage(store)
    chat = await storage.chats.get(chat_id)
    if not chat:
        raise HTTPException(status_code=404, detail="Chat not found")

    message_id = await storage.messages.create(MessageCreate(
        chatId=chat_id,
        chatGroupId=chat.chatGroupId,
        role=data.role,
        content=data.content,
        model=data.model,
    ))
    if data.images:
        await storage.images.save(message_id, chat.chatGroupId, data.images)
    if data.role == 'user':
        await storage.update_title_if_default(chat.chatGroupId, data.content)
    await storage.touch(chat.chatGroupId)
    return await storage.messages.get(message_id)


@router.delete("/chats/{chat_id}/messages")
async def clear_chat(chat_id: str, store: Store = Depends(get_store)):
    return {"deleted": await ChatGroupStorage(store).messages.clear_chat(chat_id)}


@router.get("/messages/starred", response_model=List[Message])
async def starred_messages(store: Store = Depends(get_store)):
    return await ChatGroupStorage(store).messages.starred()


@router.put("/messages/{message_id}", response_model=Optional[Message])
async def update_message(message_id: str, data: ContentBody, store: Store = Depends(get_store)):
    return await ChatGroupStorage(store).messages.update_content(message_id, data.content)


@router.post("/messages/{message_id}/toggle-star")
async def toggle_message_star(message_id: str, store: Store = Depends(get_store)):
    return {"starred": await ChatGroupStorage(store).messages.toggle_star(message_id)}


@router.delete("/messages/{message_id}")
async def delete_message(message_id: str, store: Store = Depends(get_store)):
    return {"deleted": await ChatGroupStorage(store).messages.delete_message(message_id)}


@router.get("/messages/{message_id}/images", response_model=List[ImageAttachment])
async def message_images(message_id: str, store: Store = Depends(get_store)):
    return await ChatGroupStorage(store).images.for_message(message_id)
