"""
Persistent store: one JSON file per named collection.

Records are plain dicts keyed by their ``id`` field. Each collection keeps an
in-memory copy of its file plus equality indexes on the fields declared in
``COLLECTIONS``; every write goes through to disk with an atomic replace.
"""
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union
from contextlib import contextmanager
import copy
import fcntl
import json

from chatterhub.config.app_config import COLLECTION_FILE_VERSION
from chatterhub.utils.custom_exceptions import UnknownCollectionError, UnknownIndexError
from chatterhub.utils.logging_utils import logger
from chatterhub.utils.paths import get_db_dir

# collection name -> indexed fields
COLLECTIONS: Dict[str, Tuple[str, ...]] = {
    'folders': ('parentFolderId', 'name'),
    'chatGroups': ('folderId', 'isTemporary', 'isPinned'),
    'chats': ('chatGroupId',),
    'messages': ('chatId', 'chatGroupId', 'role', 'starred'),
    'prompts': ('isStarred',),
    'customModels': ('isActive', 'provider'),
    'mcpServers': ('isActive', 'isBuiltin', 'serverLabel'),
    'imageAttachments': ('messageId', 'chatGroupId'),
    'modelParameters': ('modelId',),
}

Record = Dict[str, Any]
Listener = Callable[[str, Optional[str]], None]


def _index_key(value: Any) -> Any:
    try:
        hash(value)
        return value
    except TypeError:
        return json.dumps(value, sort_keys=True)


class Collection:
    """A single named collection backed by ``<db_dir>/<name>.json``."""

    def __init__(self, name: str, path: Path, indexes: Iterable[str] = ()):
        self.name = name
        self.path = path
        self.indexes = tuple(indexes)
        self._records: Optional[Dict[str, Record]] = None
        self._positions: Dict[str, int] = {}
        self._next_position = 0
        self._index: Dict[str, Dict[Any, Dict[str, None]]] = {}

    @contextmanager
    def _file_lock(self, filepath: Path, mode: str = 'r'):
        """Context manager for file locking to handle concurrent access."""
        filepath.parent.mkdir(parents=True, exist_ok=True)

        # Create file if it doesn't exist for write modes
        if mode in ('w', 'a') and not filepath.exists():
            filepath.touch()

        with open(filepath, mode) as f:
            try:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                yield f
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def _read_file(self) -> List[Record]:
        if not self.path.exists():
            return []
        try:
            with self._file_lock(self.path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Error reading collection {self.name} from {self.path}: {e}")
            return []
        if not isinstance(data, dict) or not isinstance(data.get('records'), list):
            logger.warning(f"Ignoring malformed collection file {self.path}")
            return []
        return [r for r in data['records'] if isinstance(r, dict) and r.get('id')]

    def _write_file(self) -> None:
        """Write the collection with locking and atomic replace."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            'version': COLLECTION_FILE_VERSION,
            'records': [self._records[rid] for rid in self._ordered_ids()],
        }

        # Write to temp file first, then rename for atomicity
        temp_path = self.path.with_suffix('.tmp')
        try:
            with self._file_lock(temp_path, 'w') as f:
                json.dump(payload, f, indent=2)
            temp_path.rename(self.path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def _load(self) -> Dict[str, Record]:
        if self._records is None:
            self._records = {}
            self._index = {field: {} for field in self.indexes}
            for record in self._read_file():
                self._insert(record)
            logger.debug(f"Loaded {len(self._records)} records from {self.name}")
        return self._records

    def _ordered_ids(self) -> List[str]:
        return sorted(self._records, key=self._positions.__getitem__)

    def _insert(self, record: Record) -> None:
        record_id = record['id']
        if record_id not in self._positions:
            self._positions[record_id] = self._next_position
            self._next_position += 1
        self._records[record_id] = record
        for field in self.indexes:
            bucket = self._index[field].setdefault(_index_key(record.get(field)), {})
            bucket[record_id] = None

    def _unindex(self, record: Record) -> None:
        for field in self.indexes:
            key = _index_key(record.get(field))
            bucket = self._index[field].get(key)
            if bucket is not None:
                bucket.pop(record['id'], None)
                if not bucket:
                    del self._index[field][key]

    def get(self, record_id: str) -> Optional[Record]:
        record = self._load().get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def all(self) -> List[Record]:
        records = self._load()
        return [copy.deepcopy(records[rid]) for rid in self._ordered_ids()]

    def match(self, where: Dict[str, Any]) -> List[Record]:
        """Equality match on indexed fields, in insertion order."""
        records = self._load()
        candidates: Optional[set] = None
        for field, value in where.items():
            if field not in self.indexes:
                raise UnknownIndexError(self.name, field)
            ids = set(self._index[field].get(_index_key(value), {}))
            candidates = ids if candidates is None else candidates & ids
        if candidates is None:
            return self.all()
        ordered = sorted(candidates, key=self._positions.__getitem__)
        return [copy.deepcopy(records[rid]) for rid in ordered]

    def put(self, record: Record) -> None:
        records = self._load()
        existing = records.get(record['id'])
        if existing is not None:
            self._unindex(existing)
        self._insert(copy.deepcopy(record))
        self._write_file()

    def put_many(self, records: List[Record]) -> None:
        """Insert or replace several records with a single file write."""
        current = self._load()
        for record in records:
            existing = current.get(record['id'])
            if existing is not None:
                self._unindex(existing)
            self._insert(copy.deepcopy(record))
        self._write_file()

    def delete(self, record_id: str) -> bool:
        records = self._load()
        existing = records.pop(record_id, None)
        if existing is None:
            return False
        self._unindex(existing)
        self._positions.pop(record_id, None)
        self._write_file()
        return True

    def clear(self) -> int:
        records = self._load()
        count = len(records)
        records.clear()
        self._positions.clear()
        self._index = {field: {} for field in self.indexes}
        self._write_file()
        return count

    def __len__(self) -> int:
        return len(self._load())


class Store:
    """
    Handle on a set of collections under one home directory.

    Pass a Store explicitly to storages and services; independent Store
    instances over different directories never share state.
    """

    def __init__(self, home: Path, collections: Optional[Dict[str, Tuple[str, ...]]] = None):
        self.home = Path(home)
        self.db_dir = get_db_dir(self.home)
        self.db_dir.mkdir(parents=True, exist_ok=True)
        self._collections: Dict[str, Collection] = {
            name: Collection(name, self.db_dir / f"{name}.json", fields)
            for name, fields in (collections or COLLECTIONS).items()
        }
        self._listeners: List[Listener] = []

    @property
    def collection_names(self) -> List[str]:
        return list(self._collections)

    def collection(self, name: str) -> Collection:
        try:
            return self._collections[name]
        except KeyError:
            raise UnknownCollectionError(name)

    # Listeners

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, collection: str, record_id: Optional[str]) -> None:
        for listener in list(self._listeners):
            try:
                listener(collection, record_id)
            except Exception as e:
                logger.error(f"Store listener failed for {collection}/{record_id}: {e}")

    # Reads

    def get(self, collection: str, record_id: Optional[str]) -> Optional[Record]:
        if not record_id:
            return None
        return self.collection(collection).get(record_id)

    def query(
        self,
        collection: str,
        predicate: Optional[Callable[[Record], bool]] = None,
        *,
        where: Optional[Dict[str, Any]] = None,
        order_by: Optional[Union[str, Callable[[Record], Any]]] = None,
        reverse: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        """
        Return records of ``collection`` in insertion order.

        ``where`` matches indexed fields by equality; ``predicate`` filters
        anything else. ``order_by`` is a field name or key function; the sort
        is stable, so equal keys keep insertion order. Records missing the
        ordering field sort last.
        """
        coll = self.collection(collection)
        records = coll.match(where) if where else coll.all()
        if predicate is not None:
            records = [r for r in records if predicate(r)]
        if order_by is not None:
            if callable(order_by):
                records.sort(key=order_by, reverse=reverse)
            else:
                present = [r for r in records if r.get(order_by) is not None]
                missing = [r for r in records if r.get(order_by) is None]
                present.sort(key=lambda r: r[order_by], reverse=reverse)
                records = present + missing
        elif reverse:
            records.reverse()
        if limit is not None:
            records = records[:limit]
        return records

    def range(
        self,
        collection: str,
        field: str,
        lower: Any = None,
        upper: Any = None,
    ) -> List[Record]:
        """Records whose ``field`` lies in ``[lower, upper]``, ordered by it."""
        def in_range(record: Record) -> bool:
            value = record.get(field)
            if value is None:
                return False
            if lower is not None and value < lower:
                return False
            if upper is not None and value > upper:
                return False
            return True

        return self.query(collection, in_range, order_by=field)

    def count(self, collection: str, where: Optional[Dict[str, Any]] = None) -> int:
        coll = self.collection(collection)
        if not where:
            return len(coll)
        return len(coll.match(where))

    # Writes

    def put(self, collection: str, record: Record) -> None:
        if not record.get('id'):
            raise ValueError(f"Record for {collection} has no id")
        self.collection(collection).put(record)
        logger.debug(f"put {collection}/{record['id']}")
        self._notify(collection, record['id'])

    def put_many(self, collection: str, records: Iterable[Record]) -> int:
        """Write a batch of records to one collection; the file is rewritten once."""
        records = list(records)
        if not records:
            return 0
        if any(not record.get('id') for record in records):
            raise ValueError(f"Record for {collection} has no id")
        self.collection(collection).put_many(records)
        logger.debug(f"put {len(records)} records into {collection}")
        for record in records:
            self._notify(collection, record['id'])
        return len(records)

    def delete(self, collection: str, record_id: Optional[str]) -> bool:
        if not record_id:
            return False
        deleted = self.collection(collection).delete(record_id)
        if deleted:
            logger.debug(f"delete {collection}/{record_id}")
            self._notify(collection, record_id)
        return deleted

    def bulk_delete(self, collection: str, record_ids: Iterable[str]) -> int:
        return sum(1 for record_id in list(record_ids) if self.delete(collection, record_id))

    def clear(self, collection: str) -> int:
        count = self.collection(collection).clear()
        if count:
            self._notify(collection, None)
        return count
