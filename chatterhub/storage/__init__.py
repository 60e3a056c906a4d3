"""
Storage layer for ChatterHub: the persistent store, live queries and
per-entity operations.
"""
from .backend import COLLECTIONS, Collection, Store
from .live import LiveQueryEngine, Subscription, collection_query
from .base import BaseStorage
from .folders import FolderStorage
from .groups import ChatGroupStorage
from .chats import ChatStorage
from .messages import MessageStorage
from .prompts import PromptStorage
from .custom_models import CustomModelStorage
from .mcp_servers import MCPServerStorage
from .images import ImageStorage
from .model_parameters import ModelParametersStorage
