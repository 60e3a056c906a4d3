"""
Whole-store maintenance operations.
"""
from typing import Callable, Dict, Optional

from chatterhub.utils.logging_utils import logger

from .backend import Store

CHAT_DATA_COLLECTIONS = ('messages', 'chats', 'chatGroups', 'folders', 'imageAttachments', 'modelParameters')


async def delete_all_chat_data(store: Store, on_progress: Optional[Callable[[str], None]] = None) -> Dict[str, int]:
    """Remove every folder, chat group, chat, message, attachment and parameter set."""
    def report(message: str) -> None:
        if on_progress:
            on_progress(message)

    report("Starting deletion process...")
    removed = {}
    for name in CHAT_DATA_COLLECTIONS:
        report(f"Deleting {name}...")
        removed[name] = store.clear(name)
    report("Complete!")
    logger.info(f"Deleted all chat data: {removed}")
    return removed


async def database_size(store: Store) -> Dict[str, int]:
    """Record counts per chat-data collection plus a total."""
    sizes = {
        'folders': store.count('folders'),
        'chatGroups': store.count('chatGroups'),
        'chats': store.count('chats'),
        'messages': store.count('messages'),
        'imageAttachments': store.count('imageAttachments'),
        'modelParameters': store.count('modelParameters'),
    }
    sizes['total'] = sum(sizes.values())
    return sizes
