"""
Per-model sampling parameter data models.
"""
from pydantic import BaseModel, Field
from typing import Literal, Optional

ReasoningEffort = Literal['low', 'medium', 'high']

class ModelParameters(BaseModel):
    id: str
    modelId: str
    temperature: Optional[float] = None
    presencePenalty: Optional[float] = None
    frequencyPenalty: Optional[float] = None
    topP: Optional[float] = None
    maxTokens: Optional[int] = None
    reasoningEffort: Optional[ReasoningEffort] = None
    createdAt: int
    updatedAt: int

class ModelParametersUpdate(BaseModel):
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    presencePenalty: Optional[float] = Field(default=None, ge=-2, le=2)
    frequencyPenalty: Optional[float] = Field(default=None, ge=-2, le=2)
    topP: Optional[float] = Field(default=None, ge=0, le=1)
    maxTokens: Optional[int] = Field(default=None, gt=0)
    reasoningEffort: Optional[ReasoningEffort] = None

class ModelParametersBackup(ModelParametersUpdate):
    """One entry of a parameter backup: the values plus the model they belong to."""
    modelId: str
