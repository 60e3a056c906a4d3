"""
Per-model sampling parameter storage.
"""
from typing import Any, Dict, List, Optional

from chatterhub.utils.logging_utils import logger

from ..models.model_parameters import ModelParameters, ModelParametersBackup, ModelParametersUpdate
from .base import BaseStorage

class ModelParametersStorage(BaseStorage[ModelParameters]):
    """At most one parameter record per model id."""

    collection = 'modelParameters'
    model = ModelParameters

    async def get_for_model(self, model_id: str) -> Optional[ModelParameters]:
        records = self._query(where={'modelId': model_id})
        return records[0] if records else None

    async def save_for_model(self, model_id: str, params: ModelParametersUpdate) -> ModelParameters:
        """Replace the saved parameters for a model; unset values revert to defaults."""
        values = {name: getattr(params, name) for name in ModelParametersUpdate.model_fields}
        existing = await self.get_for_model(model_id)
        if existing:
            return await self.update(existing.id, values)
        new_id = await self.create({'modelId': model_id, **values})
        return await self.get(new_id)

    async def reset_for_model(self, model_id: str) -> bool:
        ids = [r['id'] for r in self.store.query(self.collection, where={'modelId': model_id})]
        return self.store.bulk_delete(self.collection, ids) > 0

    async def bulk_save(self, updates: Dict[str, ModelParametersUpdate]) -> List[ModelParameters]:
        return [await self.save_for_model(model_id, params) for model_id, params in updates.items()]

    async def export_parameters(self) -> List[ModelParameters]:
        """Every saved parameter record, for backup."""
        return self._query(order_by='modelId')

    async def import_parameters(self, parameters: List[ModelParametersBackup]) -> List[ModelParameters]:
        """Restore a backup; each entry replaces the saved values for its model."""
        saved = [
            await self.save_for_model(entry.modelId, entry)
            for entry in parameters
        ]
        logger.info(f"Imported parameters for {len(saved)} models")
        return saved

    async def clear_all(self) -> int:
        return self.store.clear(self.collection)


def request_parameters(params: Optional[ModelParameters]) -> Dict[str, Any]:
    """The non-default parameters, keyed as the model request expects them."""
    if params is None:
        return {}
    return {
        name: value
        for name, value in params.model_dump(include=set(ModelParametersUpdate.model_fields)).items()
        if value is not None
    }
