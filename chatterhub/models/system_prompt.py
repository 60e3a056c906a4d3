"""
Result models for system-prompt resolution.
"""
from pydantic import BaseModel
from typing import List, Literal, Optional

PromptSource = Literal['chat', 'folder', 'none']

class EffectivePrompt(BaseModel):
    prompt: str = ""
    source: PromptSource = 'none'
    sourceId: Optional[str] = None

class InheritedPrompt(BaseModel):
    prompt: str = ""
    sourceFolderId: Optional[str] = None

class FolderPathEntry(BaseModel):
    id: str
    name: str

class SystemPromptInfo(EffectivePrompt):
    inherited: bool = False
    path: List[str] = []
