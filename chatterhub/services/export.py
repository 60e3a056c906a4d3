"""
Export and import of folders, chat groups, chats, messages and image
attachments.

``export_all`` produces a JSON-serializable archive dict; ``to_zip`` and
``from_zip`` convert it to and from the on-disk zip layout::

    manifest.json
    folders.json
    <folder path>/<chat group title>/metadata.json
    <folder path>/<chat group title>/chat-<chat id>.json
    <folder path>/<chat group title>/attachments/<attachment id><ext>
    <folder path>/<chat group title>/attachments/<attachment id>.meta.json

Imports always allocate fresh ids and remap references, so importing the
same archive twice produces two independent copies.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import base64
import io
import json
import posixpath
import re
import zipfile

from pydantic import ValidationError as PydanticValidationError

from chatterhub.config.app_config import EXPORT_FORMAT_VERSION
from chatterhub.utils.custom_exceptions import ValidationError
from chatterhub.utils.logging_utils import logger

from ..models import Chat, ChatGroup, Folder, ImageAttachment, Message
from ..storage.backend import Record, Store
from ..storage.base import new_id

MIME_EXTENSIONS = {
    'image/jpeg': '.jpg',
    'image/jpg': '.jpg',
    'image/png': '.png',
    'image/gif': '.gif',
    'image/webp': '.webp',
    'image/svg+xml': '.svg',
    'image/bmp': '.bmp',
    'image/tiff': '.tiff',
}

_UNSAFE_PATH_CHARS = re.compile(r'[<>:"/\\|?*]')

_MESSAGE_EXPORT_FIELDS = ('id', 'role', 'content', 'model', 'starred', 'createdAt')


@dataclass
class ExportProgress:
    phase: str
    total: int
    current: int = 0
    currentItem: Optional[str] = None


@dataclass
class ImportResult:
    folders: int = 0
    chatGroups: int = 0
    chats: int = 0
    messages: int = 0
    attachments: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)


def sanitize_name(name: str) -> str:
    return _UNSAFE_PATH_CHARS.sub('_', name or '').strip() or 'Untitled'


def build_folder_paths(folders: List[Record]) -> Dict[str, str]:
    """Map folder id to its slash-joined path of sanitized names, root first."""
    by_id = {f['id']: f for f in folders}
    paths: Dict[str, str] = {}

    def path_of(folder_id: str, visiting: set) -> str:
        if folder_id in paths:
            return paths[folder_id]
        folder = by_id.get(folder_id)
        if not folder or folder_id in visiting:
            return ''
        visiting.add(folder_id)
        parent = folder.get('parentFolderId')
        parent_path = path_of(parent, visiting) if parent else ''
        paths[folder_id] = posixpath.join(parent_path, sanitize_name(folder['name']))
        return paths[folder_id]

    for folder_id in by_id:
        path_of(folder_id, set())
    return paths


def export_all(
    store: Store,
    include_images: bool = True,
    folder_ids: Optional[List[str]] = None,
    chat_group_ids: Optional[List[str]] = None,
    on_progress: Optional[Callable[[ExportProgress], None]] = None,
) -> Dict[str, Any]:
    """Export the selected folders and chat groups (default: everything)."""
    folders = store.query('folders')
    if folder_ids is not None:
        folders = [f for f in folders if f['id'] in folder_ids]
    groups = store.query('chatGroups', order_by='order')
    if chat_group_ids is not None:
        groups = [g for g in groups if g['id'] in chat_group_ids]

    progress = ExportProgress(phase='preparing', total=len(groups))
    if on_progress:
        on_progress(progress)

    folder_paths = build_folder_paths(store.query('folders'))
    message_count = 0
    image_count = 0
    exported_groups = []

    for index, group in enumerate(groups, start=1):
        progress.phase = 'exporting'
        progress.current = index
        progress.currentItem = group['name']
        if on_progress:
            on_progress(progress)

        chats = []
        for chat in store.query('chats', where={'chatGroupId': group['id']}, order_by='position'):
            messages = store.query('messages', where={'chatId': chat['id']}, order_by='createdAt')
            message_count += len(messages)
            chats.append({
                **chat,
                'messages': [{k: m[k] for k in _MESSAGE_EXPORT_FIELDS if k in m} for m in messages],
            })

        attachments = []
        if include_images:
            attachments = store.query('imageAttachments', where={'chatGroupId': group['id']})
            image_count += len(attachments)

        metadata = {k: v for k, v in group.items() if k != 'draftInput'}
        exported_groups.append({
            **metadata,
            'folderPath': folder_paths.get(group.get('folderId') or '', ''),
            'chats': chats,
            'attachments': attachments,
        })

    progress.phase = 'complete'
    if on_progress:
        on_progress(progress)
    logger.info(f"Exported {len(groups)} chat groups, {message_count} messages, {image_count} images")

    return {
        'manifest': {
            'version': EXPORT_FORMAT_VERSION,
            'exportDate': datetime.now(timezone.utc).isoformat(),
            'folderCount': len(folders),
            'chatGroupCount': len(groups),
            'messageCount': message_count,
            'imageCount': image_count,
        },
        'folders': [{**f, 'path': folder_paths.get(f['id'], '')} for f in folders],
        'chatGroups': exported_groups,
    }


def to_zip(archive: Dict[str, Any]) -> bytes:
    """Write an archive dict in the zip layout."""
    buffer = io.BytesIO()
    used_dirs = set()
    with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr('manifest.json', json.dumps(archive['manifest'], indent=2))
        zf.writestr('folders.json', json.dumps(archive.get('folders', []), indent=2))

        for group in archive.get('chatGroups', []):
            base = posixpath.join(group.get('folderPath') or '', sanitize_name(group['name']))
            if base in used_dirs:
                base = f"{base}-{group['id'][:8]}"
            used_dirs.add(base)

            metadata = {k: v for k, v in group.items() if k not in ('chats', 'attachments')}
            zf.writestr(f"{base}/metadata.json", json.dumps(metadata, indent=2))
            for chat in group.get('chats', []):
                zf.writestr(f"{base}/chat-{chat['id']}.json", json.dumps(chat, indent=2))
            for attachment in group.get('attachments', []):
                extension = MIME_EXTENSIONS.get(attachment['mimeType'], '.bin')
                meta = {k: v for k, v in attachment.items() if k != 'data'}
                zf.writestr(f"{base}/attachments/{attachment['id']}{extension}", base64.b64decode(attachment['data']))
                zf.writestr(f"{base}/attachments/{attachment['id']}.meta.json", json.dumps(meta, indent=2))
    return buffer.getvalue()


def from_zip(data: bytes) -> Dict[str, Any]:
    """Read the zip layout back into an archive dict."""
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise ValidationError(f"Not a valid export archive: {e}")

    with zf:
        names = set(zf.namelist())
        if 'manifest.json' not in names:
            raise ValidationError("Export archive has no manifest.json")
        archive: Dict[str, Any] = {
            'manifest': json.loads(zf.read('manifest.json')),
            'folders': json.loads(zf.read('folders.json')) if 'folders.json' in names else [],
            'chatGroups': [],
        }

        for name in sorted(names):
            if posixpath.basename(name) != 'metadata.json':
                continue
            base = posixpath.dirname(name)
            group = json.loads(zf.read(name))
            group['chats'] = []
            group['attachments'] = []
            for entry in sorted(names):
                if posixpath.dirname(entry) == base and posixpath.basename(entry).startswith('chat-'):
                    group['chats'].append(json.loads(zf.read(entry)))
                elif posixpath.dirname(entry) == f"{base}/attachments" and entry.endswith('.meta.json'):
                    meta = json.loads(zf.read(entry))
                    extension = MIME_EXTENSIONS.get(meta.get('mimeType'), '.bin')
                    payload = f"{base}/attachments/{meta['id']}{extension}"
                    if payload not in names:
                        logger.warning(f"Attachment payload missing from archive: {payload}")
                        continue
                    meta['data'] = base64.b64encode(zf.read(payload)).decode('ascii')
                    group['attachments'].append(meta)
            group['chats'].sort(key=lambda c: c.get('position', 0))
            archive['chatGroups'].append(group)
    return archive


def _ordered_folders(folders: List[Record]) -> List[Record]:
    """Parents before children. Folders caught in a cycle come last."""
    by_id = {f['id']: f for f in folders}
    ordered: List[Record] = []
    placed = set()
    pending = list(folders)
    while pending:
        remaining = []
        for folder in pending:
            parent = folder.get('parentFolderId')
            if not parent or parent not in by_id or parent in placed:
                ordered.append(folder)
                placed.add(folder['id'])
            else:
                remaining.append(folder)
        if len(remaining) == len(pending):
            ordered.extend(remaining)
            break
        pending = remaining
    return ordered


async def import_archive(store: Store, archive: Dict[str, Any]) -> ImportResult:
    """
    Recreate an exported archive under fresh ids.

    Folders whose parent is not in the archive land at the root. Chat groups
    are placed by folder id, falling back to the exported folder path, then
    the root. Chats, messages and attachments whose parent record is missing
    are skipped and reported in ``errors``.
    """
    if 'manifest' not in archive:
        raise ValidationError("Export archive has no manifest")
    result = ImportResult()

    folder_ids: Dict[str, str] = {}
    folder_paths: Dict[str, str] = {}
    for record in _ordered_folders(archive.get('folders', [])):
        parent = record.get('parentFolderId')
        fields = {k: v for k, v in record.items() if k != 'path'}
        fields['id'] = new_id()
        fields['parentFolderId'] = folder_ids.get(parent) if parent else None
        try:
            folder = Folder(**fields)
        except PydanticValidationError as e:
            result.errors.append(f"Folder {record.get('id')}: {e}")
            continue
        store.put('folders', folder.model_dump())
        folder_ids[record['id']] = folder.id
        if record.get('path'):
            folder_paths[record['path']] = folder.id
        result.folders += 1

    for record in archive.get('chatGroups', []):
        old_folder = record.get('folderId')
        folder_id = folder_ids.get(old_folder) if old_folder else None
        if old_folder and not folder_id:
            folder_id = folder_paths.get(record.get('folderPath') or '')

        fields = {k: v for k, v in record.items() if k not in ('chats', 'attachments', 'folderPath')}
        fields.update(id=new_id(), folderId=folder_id, draftInput='')
        try:
            group = ChatGroup(**fields)
        except PydanticValidationError as e:
            result.errors.append(f"Chat group {record.get('id')}: {e}")
            continue
        store.put('chatGroups', group.model_dump())
        result.chatGroups += 1

        chats: List[Record] = []
        messages: List[Record] = []
        message_ids: Dict[str, str] = {}
        for chat_record in record.get('chats', []):
            chat_fields = {k: v for k, v in chat_record.items() if k != 'messages'}
            chat_fields.update(id=new_id(), chatGroupId=group.id)
            try:
                chat = Chat(**chat_fields)
            except PydanticValidationError as e:
                result.errors.append(f"Chat {chat_record.get('id')}: {e}")
                continue
            chats.append(chat.model_dump())

            for message_record in chat_record.get('messages', []):
                # Absent and null fields both take the model default
                message_fields = {k: v for k, v in message_record.items() if v is not None}
                try:
                    message = Message(**{
                        **message_fields,
                        'id': new_id(),
                        'chatId': chat.id,
                        'chatGroupId': group.id,
                    })
                except PydanticValidationError as e:
                    result.errors.append(f"Message {message_record.get('id')}: {e}")
                    continue
                messages.append(message.model_dump())
                message_ids[message_record['id']] = message.id
        result.chats += store.put_many('chats', chats)
        result.messages += store.put_many('messages', messages)

        attachments: List[Record] = []
        for attachment_record in record.get('attachments', []):
            message_id = message_ids.get(attachment_record.get('messageId'))
            if not message_id:
                result.errors.append(f"Attachment {attachment_record.get('id')}: message not in archive")
                continue
            try:
                attachment = ImageAttachment(**{
                    **attachment_record,
                    'id': new_id(),
                    'messageId': message_id,
                    'chatGroupId': group.id,
                })
            except PydanticValidationError as e:
                result.errors.append(f"Attachment {attachment_record.get('id')}: {e}")
                continue
            attachments.append(attachment.model_dump())
        result.attachments += store.put_many('imageAttachments', attachments)

    logger.info(
        f"Imported {result.folders} folders, {result.chatGroups} chat groups, "
        f"{result.messages} messages, {result.attachments} attachments ({len(result.errors)} errors)"
    )
    return result
