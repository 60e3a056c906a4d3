"""
Custom model definition API endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional

from ..models.custom_model import CustomModel, CustomModelCreate, CustomModelUpdate
from ..storage.backend import Store
from ..storage.custom_models import CustomModelStorage
from .deps import get_store

router = APIRouter(prefix="/api/v1/custom-models", tags=["custom-models"])


@router.get("", response_model=List[CustomModel])
async def list_custom_models(active: bool = False, store: Store = Depends(get_store)):
    storage = CustomModelStorage(store)
    return await storage.active() if active else await storage.list()


@router.post("", response_model=CustomModel)
async def create_custom_model(data: CustomModelCreate, store: Store = Depends(get_store)):
    storage = CustomModelStorage(store)
    return await storage.get(await storage.create(data))


@router.get("/{model_id}", response_model=CustomModel)
async def get_custom_model(model_id: str, store: Store = Depends(get_store)):
    model = await CustomModelStorage(store).get(model_id)
    if not model:
        raise HTTPException(status_code=404, detail="Custom model not found")
    return model


@router.put("/{model_id}", response_model=Optional[CustomModel])
async def update_custom_model(model_id: str, data: CustomModelUpdate, store: Store = Depends(get_store)):
    return await CustomModelStorage(store).update(model_id, data)


@router.delete("/{model_id}")
async def delete_custom_model(model_id: str, store: Store = Depends(get_store)):
    return {"deleted": await CustomModelStorage(store).delete(model_id)}


@router.post("/{model_id}/toggle-status")
async def toggle_custom_model(model_id: str, store: Store = Depends(get_store)):
    return {"isActive": await CustomModelStorage(store).toggle_status(model_id)}
