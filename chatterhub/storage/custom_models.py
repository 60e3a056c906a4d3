"""
Custom model definition storage.
"""
from typing import List, Optional

from ..models.custom_model import CustomModel
from .base import BaseStorage

class CustomModelStorage(BaseStorage[CustomModel]):
    collection = 'customModels'
    model = CustomModel

    async def toggle_status(self, model_id: str) -> Optional[bool]:
        return await self.toggle(model_id, 'isActive')

    async def active(self) -> List[CustomModel]:
        return self._query(where={'isActive': True})
