"""
Image attachment data models.
"""
import base64
from pydantic import BaseModel, field_serializer, field_validator
from typing import Optional

class ImageAttachment(BaseModel):
    id: str
    messageId: str
    chatGroupId: str
    filename: str
    mimeType: str
    data: bytes
    width: Optional[int] = None
    height: Optional[int] = None
    size: int
    createdAt: int

    @field_validator('data', mode='before')
    @classmethod
    def decode_data(cls, value):
        # Persisted records carry the payload as base64 text
        if isinstance(value, str):
            return base64.b64decode(value)
        return value

    @field_serializer('data')
    def encode_data(self, value: bytes) -> str:
        return base64.b64encode(value).decode('ascii')

class ImageData(BaseModel):
    """An image as supplied by the caller, before it is attached."""
    filename: str
    mimeType: str
    data: bytes
    width: Optional[int] = None
    height: Optional[int] = None

    @field_validator('data', mode='before')
    @classmethod
    def decode_data(cls, value):
        if isinstance(value, str):
            return base64.b64decode(value)
        return value
