"""
Image attachment storage.
"""
import base64
from typing import List

from ..models.image import ImageAttachment, ImageData
from .base import BaseStorage

class ImageStorage(BaseStorage[ImageAttachment]):
    """Binary image payloads attached to messages."""

    collection = 'imageAttachments'
    model = ImageAttachment

    async def save(self, message_id: str, chat_group_id: str, images: List[ImageData]) -> List[str]:
        """Attach images to a message, returning the new attachment ids."""
        attachment_ids = []
        for image in images:
            attachment_id = await self.create({
                'messageId': message_id,
                'chatGroupId': chat_group_id,
                'filename': image.filename,
                'mimeType': image.mimeType,
                'data': image.data,
                'width': image.width,
                'height': image.height,
                'size': len(image.data),
            })
            attachment_ids.append(attachment_id)
        return attachment_ids

    async def for_message(self, message_id: str) -> List[ImageAttachment]:
        return self._query(where={'messageId': message_id})

    async def for_chat_group(self, chat_group_id: str) -> List[ImageAttachment]:
        return self._query(where={'chatGroupId': chat_group_id})

    async def delete_for_message(self, message_id: str) -> int:
        ids = [r['id'] for r in self.store.query(self.collection, where={'messageId': message_id})]
        return self.store.bulk_delete(self.collection, ids)

    async def delete_for_chat_group(self, chat_group_id: str) -> int:
        ids = [r['id'] for r in self.store.query(self.collection, where={'chatGroupId': chat_group_id})]
        return self.store.bulk_delete(self.collection, ids)


def to_data_url(attachment: ImageAttachment) -> str:
    """Format an attachment as a ``data:`` URL for model requests."""
    encoded = base64.b64encode(attachment.data).decode('ascii')
    return f"data:{attachment.mimeType};base64,{encoded}"
