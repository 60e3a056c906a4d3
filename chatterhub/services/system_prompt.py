"""
System prompt resolution over the folder hierarchy.

A chat group's effective prompt is its own override when non-empty,
otherwise the prompt of the nearest folder (its own folder first, then each
parent in turn) whose ``systemPrompt`` is non-empty, otherwise empty. Empty
and absent prompts both mean "nothing defined here".

Every function reads the Store afresh, so results always reflect the latest
write. Walks keep a visited set and give up on a revisited folder instead of
looping; a reference to a missing folder ends the walk.
"""
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from chatterhub.utils.logging_utils import logger

from ..models.system_prompt import EffectivePrompt, FolderPathEntry, InheritedPrompt, SystemPromptInfo
from ..storage.backend import Record, Store


class _CycleDetected(Exception):
    pass


def _walk_folders(store: Store, start_folder_id: Optional[str], seen: Iterable[str] = ()) -> Iterator[Record]:
    """Yield folders from ``start_folder_id`` up to the root. Folders in ``seen`` count as visited."""
    visited = set(seen)
    current = start_folder_id
    while current:
        if current in visited:
            logger.warning(f"Folder cycle detected at {current}")
            raise _CycleDetected(current)
        visited.add(current)
        folder = store.get('folders', current)
        if not folder:
            return
        yield folder
        current = folder.get('parentFolderId')


def _first_folder_prompt(
    store: Store,
    start_folder_id: Optional[str],
    seen: Iterable[str] = (),
) -> Tuple[str, Optional[str]]:
    try:
        for folder in _walk_folders(store, start_folder_id, seen):
            if folder.get('systemPrompt'):
                return folder['systemPrompt'], folder['id']
    except _CycleDetected:
        pass
    return "", None


def _resolve(store: Store, chat_group: Optional[Record]) -> EffectivePrompt:
    if not chat_group:
        return EffectivePrompt()
    if chat_group.get('ownSystemPrompt'):
        return EffectivePrompt(prompt=chat_group['ownSystemPrompt'], source='chat', sourceId=chat_group['id'])
    prompt, folder_id = _first_folder_prompt(store, chat_group.get('folderId'))
    if folder_id:
        return EffectivePrompt(prompt=prompt, source='folder', sourceId=folder_id)
    return EffectivePrompt()


async def get_effective_system_prompt(store: Store, chat_group_id: Optional[str]) -> EffectivePrompt:
    """The prompt a chat group actually uses and where it comes from."""
    return _resolve(store, store.get('chatGroups', chat_group_id))


async def get_inherited_system_prompt(store: Store, folder_id: Optional[str]) -> InheritedPrompt:
    """
    The prompt a folder would inherit from its ancestors, excluding its own.

    Used while editing a folder to show what applies when its own prompt
    is left empty.
    """
    folder = store.get('folders', folder_id)
    if not folder:
        return InheritedPrompt()
    # Reaching the folder itself again means a cycle
    prompt, source = _first_folder_prompt(store, folder.get('parentFolderId'), seen=[folder_id])
    return InheritedPrompt(prompt=prompt, sourceFolderId=source)


async def get_affected_chat_groups(store: Store, folder_id: str) -> List[str]:
    """Ids of chat groups whose effective prompt currently comes from ``folder_id``."""
    return [
        group['id']
        for group in store.query('chatGroups')
        if _resolve(store, group).sourceId == folder_id
    ]


class _FolderOverlay:
    """Read-only view of a Store with one folder's prompt replaced."""

    def __init__(self, store: Store, folder_id: str, prompt: Optional[str]):
        self._store = store
        self._folder_id = folder_id
        self._prompt = prompt

    def get(self, collection: str, record_id: Optional[str]) -> Optional[Record]:
        record = self._store.get(collection, record_id)
        if record and collection == 'folders' and record_id == self._folder_id:
            record['systemPrompt'] = self._prompt
        return record


async def preview_affected_chat_groups(store: Store, folder_id: str, new_prompt: Optional[str]) -> List[str]:
    """
    Ids of chat groups whose effective prompt would change if ``folder_id``'s
    prompt were set to ``new_prompt``. Nothing is written.
    """
    overlay = _FolderOverlay(store, folder_id, new_prompt)
    changed = []
    for group in store.query('chatGroups'):
        before = _resolve(store, group)
        after = _resolve(overlay, group)
        if before != after:
            changed.append(group['id'])
    return changed


async def get_folder_path(store: Store, chat_group_id: str) -> List[FolderPathEntry]:
    """Folders from the root down to the chat group's folder, for breadcrumbs."""
    group = store.get('chatGroups', chat_group_id)
    if not group:
        return []
    path: List[FolderPathEntry] = []
    try:
        for folder in _walk_folders(store, group.get('folderId')):
            path.insert(0, FolderPathEntry(id=folder['id'], name=folder['name']))
    except _CycleDetected:
        pass
    return path


async def get_system_prompt_path(store: Store, chat_group_id: str) -> List[str]:
    """
    Display names leading to the prompt's source: the chat group's own name
    for an override, the root-down folder names ending at the source folder
    for an inherited prompt, nothing when there is no prompt.
    """
    effective = await get_effective_system_prompt(store, chat_group_id)
    if effective.source == 'chat':
        group = store.get('chatGroups', effective.sourceId)
        return [group['name']] if group else []
    if effective.source == 'folder':
        names: List[str] = []
        try:
            for folder in _walk_folders(store, effective.sourceId):
                names.insert(0, folder['name'])
        except _CycleDetected:
            pass
        return names
    return []


async def has_system_prompt(store: Store, chat_group_id: str) -> bool:
    effective = await get_effective_system_prompt(store, chat_group_id)
    return len(effective.prompt) > 0


async def get_system_prompt_info(store: Store, chat_group_id: Optional[str]) -> SystemPromptInfo:
    """Effective prompt plus inheritance flag and source path, as the UI shows it."""
    if not chat_group_id or not store.get('chatGroups', chat_group_id):
        return SystemPromptInfo()
    effective = await get_effective_system_prompt(store, chat_group_id)
    return SystemPromptInfo(
        **effective.model_dump(),
        inherited=effective.source == 'folder',
        path=await get_system_prompt_path(store, chat_group_id),
    )


async def get_effective_system_prompts(store: Store) -> Dict[str, EffectivePrompt]:
    """Effective prompt of every chat group, keyed by chat group id."""
    return {group['id']: _resolve(store, group) for group in store.query('chatGroups')}
