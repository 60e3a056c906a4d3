"""
Chat group, chat and message data models.
"""
from pydantic import BaseModel
from typing import List, Literal, Optional

Layout = Literal['vertical', 'horizontal', '2x2', '2x3', '3x3', 'freeform']
Role = Literal['user', 'assistant', 'system']

class ChatGroup(BaseModel):
    id: str
    name: str
    folderId: Optional[str] = None
    ownSystemPrompt: Optional[str] = None
    layout: Layout = 'horizontal'
    order: int = 0
    isTemporary: bool = False
    isPinned: bool = False
    draftInput: Optional[str] = None
    lastActivityAt: Optional[int] = None
    createdAt: int
    updatedAt: int

class ChatGroupCreate(BaseModel):
    name: Optional[str] = None
    folderId: Optional[str] = None
    ownSystemPrompt: Optional[str] = None
    layout: Layout = 'horizontal'
    isTemporary: bool = False
    model: Optional[str] = None

class ChatGroupUpdate(BaseModel):
    name: Optional[str] = None
    folderId: Optional[str] = None
    ownSystemPrompt: Optional[str] = None
    layout: Optional[Layout] = None
    order: Optional[int] = None
    isPinned: Optional[bool] = None

class Chat(BaseModel):
    """One model pane inside a chat group."""
    id: str
    chatGroupId: str
    model: str
    position: int = 0
    isActive: bool = True
    createdAt: int
    updatedAt: int

class ChatUpdate(BaseModel):
    model: Optional[str] = None
    position: Optional[int] = None
    isActive: Optional[bool] = None

class Message(BaseModel):
    id: str
    chatId: str
    chatGroupId: str
    role: Role
    content: str
    model: Optional[str] = None
    starred: bool = False
    createdAt: int

class MessageCreate(BaseModel):
    chatId: str
    chatGroupId: str
    role: Role
    content: str
    model: Optional[str] = None

class ConversationMessage(BaseModel):
    """The {role, content} pair handed to model invocation."""
    role: Role
    content: str

class ChatGroupWithChats(ChatGroup):
    chats: List[Chat] = []
