"""
Base class for entity storages built on the shared Store.
"""
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union
import time
import uuid

from pydantic import BaseModel

from .backend import Store

T = TypeVar('T', bound=BaseModel)

Fields = Union[BaseModel, Dict[str, Any]]

# Never taken from caller-supplied fields
_IDENTITY_FIELDS = ('id', 'createdAt', 'updatedAt')


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


def as_fields(data: Fields, exclude_unset: bool = False) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=exclude_unset)
    return dict(data)


class BaseStorage(Generic[T]):
    """
    Create/read/update/delete/toggle for one entity kind.

    All operations take effect immediately on the Store; they are coroutines
    so callers always await completion. Not-found is never an error here:
    reads return None, update/toggle return None, delete returns False.
    """

    collection: str
    model: Type[T]

    def __init__(self, store: Store):
        self.store = store

    @property
    def _has_updated_at(self) -> bool:
        return 'updatedAt' in self.model.model_fields

    def _to_model(self, record: Optional[Dict[str, Any]]) -> Optional[T]:
        return self.model(**record) if record else None

    def _query(self, *args, **kwargs) -> List[T]:
        return [self.model(**r) for r in self.store.query(self.collection, *args, **kwargs)]

    def _write(self, entity: T) -> None:
        self.store.put(self.collection, entity.model_dump())

    def _write_many(self, entities: List[T]) -> None:
        self.store.put_many(self.collection, [e.model_dump() for e in entities])

    def _build(self, fields: Dict[str, Any]) -> T:
        for key in _IDENTITY_FIELDS:
            fields.pop(key, None)
        now = now_ms()
        stamps = {'id': new_id(), 'createdAt': now}
        if self._has_updated_at:
            stamps['updatedAt'] = now
        return self.model(**fields, **stamps)

    async def get(self, entity_id: Optional[str]) -> Optional[T]:
        return self._to_model(self.store.get(self.collection, entity_id))

    async def list(self) -> List[T]:
        return self._query()

    async def create(self, data: Fields) -> str:
        entity = self._build(as_fields(data))
        self._write(entity)
        return entity.id

    async def update(self, entity_id: str, data: Fields) -> Optional[T]:
        entity = await self.get(entity_id)
        if not entity:
            return None

        update_dict = as_fields(data, exclude_unset=True)
        for key in _IDENTITY_FIELDS:
            update_dict.pop(key, None)

        merged = {**entity.model_dump(), **update_dict}
        if self._has_updated_at:
            merged['updatedAt'] = now_ms()
        updated = self.model(**merged)
        self._write(updated)
        return updated

    async def delete(self, entity_id: str) -> bool:
        return self.store.delete(self.collection, entity_id)

    async def toggle(self, entity_id: str, flag: str) -> Optional[bool]:
        """Flip a boolean field. Returns the new value, or None if absent."""
        entity = await self.get(entity_id)
        if not entity:
            return None
        new_value = not getattr(entity, flag)
        await self.update(entity_id, {flag: new_value})
        return new_value
