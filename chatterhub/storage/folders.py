"""
Folder storage implementation.
"""
from typing import Callable, List, Optional

from chatterhub.utils.custom_exceptions import FolderCycleError
from chatterhub.utils.logging_utils import logger

from ..models.folder import Folder, FolderCreate
from .base import BaseStorage
from .groups import ChatGroupStorage

class FolderStorage(BaseStorage[Folder]):
    """Folders form a forest through parentFolderId."""

    collection = 'folders'
    model = Folder

    def _sibling_orders(self, parent_id: Optional[str]) -> List[int]:
        folders = self.store.query(self.collection, where={'parentFolderId': parent_id})
        groups = self.store.query('chatGroups', where={'folderId': parent_id})
        return [item.get('order') or 0 for item in folders + groups]

    def _next_order(self, parent_id: Optional[str]) -> int:
        return max([0] + self._sibling_orders(parent_id)) + 1

    async def create(self, data: FolderCreate) -> str:
        order = data.order if data.order is not None else self._next_order(data.parentFolderId)
        return await super().create({
            'name': data.name.strip(),
            'parentFolderId': data.parentFolderId,
            'systemPrompt': data.systemPrompt,
            'color': data.color,
            'order': order,
        })

    async def list(self) -> List[Folder]:
        return self._query(order_by='order')

    async def children(self, parent_id: Optional[str]) -> List[Folder]:
        """Folders directly under ``parent_id`` (None for root folders)."""
        return self._query(where={'parentFolderId': parent_id}, order_by='order')

    async def rename(self, folder_id: str, name: str) -> Optional[Folder]:
        return await self.update(folder_id, {'name': name.strip()})

    async def set_system_prompt(self, folder_id: str, prompt: Optional[str]) -> Optional[Folder]:
        return await self.update(folder_id, {'systemPrompt': prompt})

    async def set_color(self, folder_id: str, color: str) -> Optional[Folder]:
        return await self.update(folder_id, {'color': color})

    async def toggle_pin(self, folder_id: str) -> Optional[bool]:
        return await self.toggle(folder_id, 'isPinned')

    def _would_cycle(self, folder_id: str, new_parent_id: Optional[str]) -> bool:
        visited = set()
        current = new_parent_id
        while current and current not in visited:
            if current == folder_id:
                return True
            visited.add(current)
            parent = self.store.get(self.collection, current)
            current = parent.get('parentFolderId') if parent else None
        return False

    async def move(self, folder_id: str, new_parent_id: Optional[str]) -> Optional[Folder]:
        """
        Move a folder under ``new_parent_id`` (None for the root), placing it
        last among its new siblings.

        Raises FolderCycleError if the target is the folder itself or one of
        its descendants.
        """
        if new_parent_id and self._would_cycle(folder_id, new_parent_id):
            raise FolderCycleError()
        return await self.update(folder_id, {
            'parentFolderId': new_parent_id,
            'order': self._next_order(new_parent_id),
        })

    async def reorder(self, folder_ids: List[str]) -> List[Folder]:
        reordered = []
        for order, folder_id in enumerate(folder_ids):
            folder = await self.update(folder_id, {'order': order})
            if folder:
                reordered.append(folder)
        return reordered

    async def ancestors(self, folder_id: str) -> List[Folder]:
        """The folder and its ancestors, root first. Stops at a cycle or a missing parent."""
        chain: List[Folder] = []
        visited = set()
        current: Optional[str] = folder_id
        while current and current not in visited:
            visited.add(current)
            folder = await self.get(current)
            if not folder:
                break
            chain.insert(0, folder)
            current = folder.parentFolderId
        return chain

    async def descendants(self, folder_id: str) -> List[Folder]:
        """All folders below ``folder_id``, depth first."""
        found: List[Folder] = []
        seen = {folder_id}
        stack = [folder_id]
        while stack:
            parent_id = stack.pop()
            for child in await self.children(parent_id):
                if child.id in seen:
                    continue
                seen.add(child.id)
                found.append(child)
                stack.append(child.id)
        return found

    async def delete_folder(
        self,
        folder_id: str,
        delete_contents: bool = True,
        on_progress: Optional[Callable[[str], None]] = None,
    ) -> bool:
        """
        Delete a folder.

        With ``delete_contents`` every subfolder and chat group below it is
        deleted too (chat groups with their chats, messages and attachments).
        Otherwise its direct children move up to the folder's parent.
        """
        folder = await self.get(folder_id)
        if not folder:
            return False

        def report(message: str) -> None:
            if on_progress:
                on_progress(message)

        groups = ChatGroupStorage(self.store)
        if delete_contents:
            report(f"Deleting {folder.name}...")
            folder_ids = [folder_id] + [f.id for f in await self.descendants(folder_id)]
            group_ids = [
                g['id']
                for fid in folder_ids
                for g in self.store.query('chatGroups', where={'folderId': fid})
            ]
            if group_ids:
                report(f"Deleting {len(group_ids)} chat groups...")
                await groups.delete_chat_groups(group_ids)
            report("Deleting folders...")
            self.store.bulk_delete(self.collection, folder_ids)
            logger.info(f"Deleted folder {folder_id} with {len(folder_ids) - 1} subfolders and {len(group_ids)} chat groups")
        else:
            report("Moving contents to parent folder...")
            for group in await groups.in_folder(folder_id):
                await groups.update(group.id, {'folderId': folder.parentFolderId})
            for child in await self.children(folder_id):
                await self.update(child.id, {'parentFolderId': folder.parentFolderId})
            report("Deleting folder...")
            await self.delete(folder_id)
        return True
