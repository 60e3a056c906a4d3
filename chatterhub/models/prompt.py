"""
Reusable prompt data models.
"""
from pydantic import BaseModel, field_validator
from typing import List, Optional

def _dedupe_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    seen = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen

class Prompt(BaseModel):
    id: str
    title: str
    description: str = ""
    content: str
    tags: List[str] = []
    isStarred: bool = False
    createdAt: int
    updatedAt: int

    @field_validator('tags')
    @classmethod
    def normalize_tags(cls, tags):
        return _dedupe_tags(tags)

class PromptCreate(BaseModel):
    title: str
    description: str = ""
    content: str
    tags: List[str] = []
    isStarred: bool = False

    @field_validator('tags')
    @classmethod
    def normalize_tags(cls, tags):
        return _dedupe_tags(tags)

class PromptUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    isStarred: Optional[bool] = None

    @field_validator('tags')
    @classmethod
    def normalize_tags(cls, tags):
        return _dedupe_tags(tags)
