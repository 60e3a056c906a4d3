"""
Import of a ChatGPT data export (``conversations.json`` plus uploaded images).

Each conversation becomes one chat group with a single chat. ChatGPT keeps
every edit and regeneration as a branch of a node tree; only the main branch
(the first child at every step) is imported. Custom instructions found in the
conversation become the chat group's own system prompt.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple
import io
import json
import posixpath
import re
import zipfile

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from chatterhub.config.app_config import CHATGPT_FALLBACK_MODEL, CHATGPT_FLAT_FOLDER_NAME
from chatterhub.utils.custom_exceptions import ValidationError
from chatterhub.utils.logging_utils import logger

from ..models import Chat, ChatGroup, Folder, ImageAttachment, Message
from ..storage.backend import Store
from ..storage.base import new_id, now_ms
from .export import MIME_EXTENSIONS, ExportProgress, ImportResult

OrganizationStrategy = Literal['root', 'flat', 'by-month', 'by-year']

DEFAULT_MODEL_MAPPING: Dict[str, str] = {
    'gpt-4-5': 'gpt-5',
    'gpt-5-instant': 'gpt-5-mini',
    'gpt-5-t-mini': 'gpt-5-nano',
    'gpt-5-thinking': 'gpt-5',
    'gpt-4o': 'gpt-4o',
    'gpt-4o-mini': 'gpt-4o-mini',
    'gpt-4-1': 'gpt-4.1',
    'o3': 'o3',
    'o3-mini': 'o3-mini',
    'o3-mini-high': 'o3-mini',
    'o4-mini': 'o1-mini',
    'o4-mini-high': 'o1-mini',
    'o1': 'o1',
    'research': 'gpt-4o',
    'chatgpt-4o-latest': 'chatgpt-4o-latest',
    'gpt-3.5-turbo': 'gpt-4o-mini',
}

IMAGE_PATTERN = re.compile(r'\.(jpg|jpeg|png|gif|webp|svg)$', re.IGNORECASE)
FILE_ID_PATTERN = re.compile(r'file-[A-Za-z0-9]{22}')
ASSET_PREFIX = 'file-service://'

_EXTENSION_MIME = {ext: mime for mime, ext in MIME_EXTENSIONS.items() if mime != 'image/jpg'}
_EXTENSION_MIME['.jpeg'] = 'image/jpeg'


class ChatGPTImportOptions(BaseModel):
    organizationStrategy: OrganizationStrategy = 'root'
    folderName: Optional[str] = None
    skipArchived: bool = False
    dateFrom: Optional[datetime] = None
    dateTo: Optional[datetime] = None
    includeImages: bool = True
    modelMapping: Dict[str, str] = {}


@dataclass
class ExportImage:
    filename: str
    data: bytes


@dataclass
class ChatGPTExport:
    conversations: List[Dict[str, Any]]
    # Every key an asset pointer might use, mapped to the same image
    images: Dict[str, ExportImage] = field(default_factory=dict)


def _register_image(images: Dict[str, ExportImage], path: str, image: ExportImage) -> None:
    asset_id = posixpath.splitext(posixpath.basename(path))[0]
    keys = [asset_id, f"file-{asset_id}", f"{ASSET_PREFIX}{asset_id}", f"{ASSET_PREFIX}file-{asset_id}"]
    # uploads/file-<id>-<uuid>/image.png style paths carry the id in a directory
    for part in path.split('/'):
        if part.startswith('file-') and len(part) > 10:
            keys += [part, f"{ASSET_PREFIX}{part}"]
    for candidate in [asset_id] + path.split('/'):
        match = FILE_ID_PATTERN.search(candidate)
        if match:
            keys += [match.group(0), f"{ASSET_PREFIX}{match.group(0)}"]
    for key in keys:
        images.setdefault(key, image)


def parse_chatgpt_export(data: bytes) -> ChatGPTExport:
    """Read a ChatGPT export zip, or a bare ``conversations.json`` document."""
    if not zipfile.is_zipfile(io.BytesIO(data)):
        try:
            conversations = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError(f"Not a ChatGPT export: {e}")
        if not isinstance(conversations, list):
            raise ValidationError("conversations.json must hold a list of conversations")
        return ChatGPTExport(conversations=conversations)

    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        names = zf.namelist()
        conversations_file = next((n for n in names if posixpath.basename(n) == 'conversations.json'), None)
        if not conversations_file:
            raise ValidationError("No conversations.json found in export")
        try:
            conversations = json.loads(zf.read(conversations_file))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError(f"Unreadable conversations.json: {e}")
        if not isinstance(conversations, list):
            raise ValidationError("conversations.json must hold a list of conversations")

        images: Dict[str, ExportImage] = {}
        for name in names:
            if IMAGE_PATTERN.search(name):
                _register_image(images, name, ExportImage(posixpath.basename(name), zf.read(name)))

    logger.info(f"Parsed ChatGPT export: {len(conversations)} conversations, {len(set(map(id, images.values())))} images")
    return ChatGPTExport(conversations=conversations, images=images)


def extract_linear_messages(mapping: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Messages along the main branch, from the root node down."""
    current = next((node_id for node_id, node in mapping.items() if not (node or {}).get('parent')), None)
    messages = []
    visited = set()
    while current and current not in visited:
        visited.add(current)
        node = mapping.get(current) or {}
        if node.get('message'):
            messages.append(node['message'])
        children = node.get('children') or []
        current = children[0] if children else None
    return messages


def _content_type(message: Dict[str, Any]) -> Optional[str]:
    return (message.get('content') or {}).get('content_type')


def extract_system_prompt(messages: List[Dict[str, Any]]) -> Optional[str]:
    """Custom instructions ("about me" and "how to respond") as one prompt."""
    for message in messages:
        context = ((message.get('metadata') or {}).get('user_context_message_data'))
        if _content_type(message) == 'user_editable_context' and context:
            parts = []
            if context.get('about_user_message'):
                parts.append(f"User Profile:\n{context['about_user_message']}")
            if context.get('about_model_message'):
                parts.append(f"Instructions:\n{context['about_model_message']}")
            return '\n\n'.join(parts) or None
    return None


def map_model(slug: Optional[str], custom_mapping: Optional[Dict[str, str]] = None) -> str:
    mapping = {**DEFAULT_MODEL_MAPPING, **(custom_mapping or {})}
    return mapping.get(slug or '', CHATGPT_FALLBACK_MODEL)


def find_image(images: Dict[str, ExportImage], asset_pointer: str) -> Optional[ExportImage]:
    asset_id = asset_pointer.replace(ASSET_PREFIX, '')
    for key in (asset_pointer, asset_id, f"file-{asset_id}"):
        if key in images:
            return images[key]
    # Exported file names may carry a suffix after the asset id
    return next((image for key, image in images.items() if asset_id in key), None)


def _ms(seconds: Optional[float]) -> Optional[int]:
    return int(seconds * 1000) if seconds is not None else None


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _created(conversation: Dict[str, Any]) -> datetime:
    return datetime.fromtimestamp(conversation.get('create_time') or 0, tz=timezone.utc)


def should_import(conversation: Dict[str, Any], options: ChatGPTImportOptions) -> bool:
    if options.skipArchived and conversation.get('is_archived'):
        return False
    created = _created(conversation)
    if options.dateFrom and created < _as_utc(options.dateFrom):
        return False
    if options.dateTo and created > _as_utc(options.dateTo):
        return False
    return True


def group_key(conversation: Dict[str, Any], options: ChatGPTImportOptions) -> str:
    """Name of the folder a conversation is filed under; empty for the root."""
    strategy = options.organizationStrategy
    if strategy == 'by-month':
        return _created(conversation).strftime('%Y-%m')
    if strategy == 'by-year':
        return _created(conversation).strftime('%Y')
    if strategy == 'flat':
        return options.folderName or CHATGPT_FLAT_FOLDER_NAME
    return ''


class _ConversationImporter:
    """Builds the records for one conversation without writing anything."""

    def __init__(self, export: ChatGPTExport, options: ChatGPTImportOptions):
        self.export = export
        self.options = options

    def message_content(self, message: Dict[str, Any], message_id: str, chat_group_id: str, created_at: int) -> Tuple[str, List[ImageAttachment]]:
        parts = (message.get('content') or {}).get('parts') or []
        text: List[str] = []
        attachments: List[ImageAttachment] = []
        for part in parts:
            if isinstance(part, str):
                text.append(part)
            elif isinstance(part, dict):
                if part.get('asset_pointer') and self.options.includeImages:
                    image = find_image(self.export.images, part['asset_pointer'])
                    if image is None:
                        logger.warning(f"Image not found in ChatGPT export: {part['asset_pointer']}")
                        text.append(f"[Image not found: {part['asset_pointer']}]")
                        continue
                    extension = posixpath.splitext(image.filename)[1].lower()
                    attachments.append(ImageAttachment(
                        id=new_id(),
                        messageId=message_id,
                        chatGroupId=chat_group_id,
                        filename=image.filename,
                        mimeType=_EXTENSION_MIME.get(extension, 'image/jpeg'),
                        data=image.data,
                        width=part.get('width'),
                        height=part.get('height'),
                        size=part.get('size_bytes') or len(image.data),
                        createdAt=created_at,
                    ))
                elif part.get('text'):
                    text.append(part['text'])
                elif isinstance(part.get('content'), str):
                    text.append(part['content'])
        return '\n\n'.join(text), attachments

    def build(self, conversation: Dict[str, Any], folder_id: Optional[str]):
        now = now_ms()
        created_at = _ms(conversation.get('create_time')) or now
        updated_at = _ms(conversation.get('update_time')) or created_at
        messages = extract_linear_messages(conversation.get('mapping') or {})

        group = ChatGroup(
            id=new_id(),
            name=conversation.get('title') or 'Untitled Conversation',
            folderId=folder_id,
            ownSystemPrompt=extract_system_prompt(messages),
            layout='vertical',
            order=int(conversation.get('create_time') or 0),
            isPinned=bool(conversation.get('is_starred')),
            lastActivityAt=updated_at,
            createdAt=created_at,
            updatedAt=updated_at,
        )
        default_model = map_model(conversation.get('default_model_slug') or CHATGPT_FALLBACK_MODEL, self.options.modelMapping)
        chat = Chat(
            id=new_id(),
            chatGroupId=group.id,
            model=default_model,
            position=0,
            isActive=True,
            createdAt=created_at,
            updatedAt=updated_at,
        )

        records: List[Message] = []
        attachments: List[ImageAttachment] = []
        for message in messages:
            role = (message.get('author') or {}).get('role')
            if role == 'tool' or (role == 'system' and _content_type(message) == 'user_editable_context'):
                continue
            message_id = new_id()
            message_created = _ms(message.get('create_time')) or now
            content, images = self.message_content(message, message_id, group.id, message_created)
            if not content.strip():
                continue
            slug = (message.get('metadata') or {}).get('model_slug')
            records.append(Message(
                id=message_id,
                chatId=chat.id,
                chatGroupId=group.id,
                role=role,
                content=content,
                model=map_model(slug, self.options.modelMapping) if slug else default_model,
                createdAt=message_created,
            ))
            attachments.extend(images)
        return group, chat, records, attachments


def _make_folder(store: Store, name: str, parent_id: Optional[str]) -> str:
    now = now_ms()
    folder = Folder(id=new_id(), name=name, parentFolderId=parent_id, order=now, createdAt=now, updatedAt=now)
    store.put('folders', folder.model_dump())
    return folder.id


async def import_chatgpt(
    store: Store,
    export: ChatGPTExport,
    options: Optional[ChatGPTImportOptions] = None,
    on_progress: Optional[Callable[[ExportProgress], None]] = None,
) -> ImportResult:
    """
    Import ChatGPT conversations as chat groups.

    ``organizationStrategy`` decides where they land: ``root`` leaves them
    at the root, ``flat`` puts them in one folder (``folderName``, default
    "imported"), ``by-month`` / ``by-year`` file them into one folder per
    period (nested under ``folderName`` when given). Conversations failing
    ``skipArchived`` or the date range are counted in ``skipped``; malformed
    ones are reported in ``errors`` and leave nothing behind.
    """
    options = options or ChatGPTImportOptions()
    result = ImportResult()
    builder = _ConversationImporter(export, options)

    selected = []
    for conversation in export.conversations:
        if isinstance(conversation, dict) and should_import(conversation, options):
            selected.append(conversation)
        else:
            result.skipped += 1

    progress = ExportProgress(phase='importing', total=len(selected))
    parent_id: Optional[str] = None
    if options.folderName and options.organizationStrategy in ('by-month', 'by-year'):
        parent_id = _make_folder(store, options.folderName, None)
        result.folders += 1

    folders: Dict[str, Optional[str]] = {'': None}
    for conversation in selected:
        progress.current += 1
        progress.currentItem = conversation.get('title')
        if on_progress:
            on_progress(progress)

        try:
            key = group_key(conversation, options)
            group, chat, messages, attachments = builder.build(conversation, None)
        except (PydanticValidationError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping ChatGPT conversation {conversation.get('title')!r}: {e}")
            result.errors.append(f"Failed to import \"{conversation.get('title')}\": {e}")
            continue

        if key not in folders:
            folders[key] = _make_folder(store, key, parent_id)
            result.folders += 1
        group.folderId = folders[key]

        store.put('chatGroups', group.model_dump())
        store.put('chats', chat.model_dump())
        result.chatGroups += 1
        result.chats += 1
        result.messages += store.put_many('messages', [m.model_dump() for m in messages])
        result.attachments += store.put_many('imageAttachments', [a.model_dump() for a in attachments])

    progress.phase = 'complete'
    progress.currentItem = None
    if on_progress:
        on_progress(progress)
    logger.info(
        f"Imported {result.chatGroups} ChatGPT conversations ({result.messages} messages, "
        f"{result.attachments} images), skipped {result.skipped}, {len(result.errors)} errors"
    )
    return result
