"""
Data models for ChatterHub.
"""
from .folder import Folder, FolderCreate, FolderUpdate
from .chat import (
    Chat, ChatUpdate, ChatGroup, ChatGroupCreate, ChatGroupUpdate, ChatGroupWithChats,
    ConversationMessage, Message, MessageCreate,
)
from .prompt import Prompt, PromptCreate, PromptUpdate
from .custom_model import CustomModel, CustomModelCreate, CustomModelUpdate
from .mcp_server import MCPServer, MCPServerCreate, MCPServerUpdate, MCPTool
from .image import ImageAttachment, ImageData
from .model_parameters import ModelParameters, ModelParametersBackup, ModelParametersUpdate
from .system_prompt import EffectivePrompt, FolderPathEntry, InheritedPrompt, SystemPromptInfo
