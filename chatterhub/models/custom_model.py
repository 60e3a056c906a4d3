"""
Custom model definition data models.
"""
from pydantic import BaseModel
from typing import Any, Dict, List, Literal, Optional

Provider = Literal['openrouter', 'custom']
ApiType = Literal['openai-chat-completions', 'openai-responses', 'anthropic', 'gemini']

class CustomModel(BaseModel):
    id: str
    name: str
    modelId: str
    provider: Provider = 'custom'
    apiType: ApiType = 'openai-chat-completions'
    baseUrl: str
    iconUrl: Optional[str] = None
    contextWindow: int = 0
    inputPricing: Optional[float] = None
    outputPricing: Optional[float] = None
    supportsPlugins: Optional[bool] = None
    supportsVision: Optional[bool] = None
    supportsSystemRole: Optional[bool] = None
    supportsStreaming: Optional[bool] = None
    supportedParameters: List[str] = []
    customHeaders: Dict[str, str] = {}
    customBodyParams: Dict[str, Any] = {}
    isActive: bool = True
    createdAt: int
    updatedAt: int

class CustomModelCreate(BaseModel):
    name: str
    modelId: str
    provider: Provider = 'custom'
    apiType: ApiType = 'openai-chat-completions'
    baseUrl: str
    iconUrl: Optional[str] = None
    contextWindow: int = 0
    inputPricing: Optional[float] = None
    outputPricing: Optional[float] = None
    supportsPlugins: Optional[bool] = None
    supportsVision: Optional[bool] = None
    supportsSystemRole: Optional[bool] = None
    supportsStreaming: Optional[bool] = None
    supportedParameters: List[str] = []
    customHeaders: Dict[str, str] = {}
    customBodyParams: Dict[str, Any] = {}
    isActive: bool = True

class CustomModelUpdate(BaseModel):
    name: Optional[str] = None
    modelId: Optional[str] = None
    provider: Optional[Provider] = None
    apiType: Optional[ApiType] = None
    baseUrl: Optional[str] = None
    iconUrl: Optional[str] = None
    contextWindow: Optional[int] = None
    inputPricing: Optional[float] = None
    outputPricing: Optional[float] = None
    supportsPlugins: Optional[bool] = None
    supportsVision: Optional[bool] = None
    supportsSystemRole: Optional[bool] = None
    supportsStreaming: Optional[bool] = None
    supportedParameters: Optional[List[str]] = None
    customHeaders: Optional[Dict[str, str]] = None
    customBodyParams: Optional[Dict[str, Any]] = None
    isActive: Optional[bool] = None
