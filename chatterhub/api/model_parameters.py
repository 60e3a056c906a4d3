"""
Per-model sampling parameter API endpoints.
"""
from fastapi import APIRouter, Depends
from typing import Any, Dict, List, Optional

from ..models.model_parameters import ModelParameters, ModelParametersBackup, ModelParametersUpdate
from ..storage.backend import Store
from ..storage.model_parameters import ModelParametersStorage, request_parameters
from .deps import get_store

router = APIRouter(prefix="/api/v1/model-parameters", tags=["model-parameters"])


@router.get("", response_model=List[ModelParameters])
async def list_model_parameters(store: Store = Depends(get_store)):
    return await ModelParametersStorage(store).list()


@router.put("", response_model=List[ModelParameters])
async def bulk_save_model_parameters(updates: Dict[str, ModelParametersUpdate], store: Store = Depends(get_store)):
    return await ModelParametersStorage(store).bulk_save(updates)


@router.get("/export", response_model=List[ModelParameters])
async def export_model_parameters(store: Store = Depends(get_store)):
    return await ModelParametersStorage(store).export_parameters()


@router.post("/import", response_model=List[ModelParameters])
async def import_model_parameters(parameters: List[ModelParametersBackup], store: Store = Depends(get_store)):
    return await ModelParametersStorage(store).import_parameters(parameters)


@router.delete("")
async def clear_model_parameters(store: Store = Depends(get_store)):
    return {"deleted": await ModelParametersStorage(store).clear_all()}


@router.get("/{model_id}", response_model=Optional[ModelParameters])
async def get_model_parameters(model_id: str, store: Store = Depends(get_store)):
    """Saved parameters for a model, or null when it uses the defaults."""
    return await ModelParametersStorage(store).get_for_model(model_id)


@router.get("/{model_id}/request")
async def get_request_parameters(model_id: str, store: Store = Depends(get_store)) -> Dict[str, Any]:
    return request_parameters(await ModelParametersStorage(store).get_for_model(model_id))


@router.put("/{model_id}", response_model=ModelParameters)
async def save_model_parameters(model_id: str, data: ModelParametersUpdate, store: Store = Depends(get_store)):
    return await ModelParametersStorage(store).save_for_model(model_id, data)


@router.delete("/{model_id}")
async def reset_model_parameters(model_id: str, store: Store = Depends(get_store)):
    return {"deleted": await ModelParametersStorage(store).reset_for_model(model_id)}
