"""
Tests for chatterhub.services.export: archive export and import.

Covers:
  - Manifest counts and folder paths
  - Selective export and image exclusion
  - Zip layout round trip
  - Import with fresh ids and remapped references
  - Orphaned records reported instead of imported
"""

import io
import json
import zipfile

import pytest

from chatterhub.models.chat import ChatGroupCreate, MessageCreate
from chatterhub.models.folder import FolderCreate
from chatterhub.models.image import ImageData
from chatterhub.services.export import (
    build_folder_paths, export_all, from_zip, import_archive, sanitize_name, to_zip,
)
from chatterhub.storage.backend import Store
from chatterhub.storage.folders import FolderStorage
from chatterhub.storage.groups import ChatGroupStorage
from chatterhub.utils.custom_exceptions import ValidationError


@pytest.fixture
async def populated(store):
    """Folder Work > Drafts holding one chat group with two messages and an image."""
    folders = FolderStorage(store)
    groups = ChatGroupStorage(store)
    work = await folders.create(FolderCreate(name="Work", systemPrompt="Be concise"))
    drafts = await folders.create(FolderCreate(name="Drafts", parentFolderId=work))
    group_id = await groups.create(ChatGroupCreate(name="Plan: Q3?", folderId=drafts))
    chat = (await groups.chats.for_group(group_id))[0]
    question = await groups.messages.create(MessageCreate(
        chatId=chat.id, chatGroupId=group_id, role='user', content="What next?",
    ))
    await groups.messages.create(MessageCreate(
        chatId=chat.id, chatGroupId=group_id, role='assistant', content="Ship it.",
    ))
    await groups.images.save(question, group_id, [
        ImageData(filename="chart.png", mimeType="image/png", data=b"\x89PNG-bytes"),
    ])
    return {'store': store, 'work': work, 'drafts': drafts, 'group': group_id}


# ── Export ─────────────────────────────────────────────────────────

class TestExport:

    async def test_manifest_counts(self, populated):
        archive = export_all(populated['store'])
        manifest = archive['manifest']
        assert manifest['version'] == "1.0"
        assert manifest['folderCount'] == 2
        assert manifest['chatGroupCount'] == 1
        assert manifest['messageCount'] == 2
        assert manifest['imageCount'] == 1
        assert manifest['exportDate']

    async def test_folder_paths(self, populated):
        archive = export_all(populated['store'])
        paths = {f['name']: f['path'] for f in archive['folders']}
        assert paths == {'Work': 'Work', 'Drafts': 'Work/Drafts'}
        assert archive['chatGroups'][0]['folderPath'] == 'Work/Drafts'

    async def test_draft_not_exported(self, populated):
        await ChatGroupStorage(populated['store']).save_draft(populated['group'], "secret draft")
        archive = export_all(populated['store'])
        assert 'draftInput' not in archive['chatGroups'][0]

    async def test_without_images(self, populated):
        archive = export_all(populated['store'], include_images=False)
        assert archive['chatGroups'][0]['attachments'] == []
        assert archive['manifest']['imageCount'] == 0

    async def test_selected_chat_groups(self, populated):
        await ChatGroupStorage(populated['store']).create(ChatGroupCreate(name="Other"))
        archive = export_all(populated['store'], chat_group_ids=[populated['group']])
        assert [g['id'] for g in archive['chatGroups']] == [populated['group']]

    async def test_archive_is_json_serializable(self, populated):
        json.dumps(export_all(populated['store']))

    def test_sanitize_name(self):
        assert sanitize_name('Plan: Q3?') == 'Plan_ Q3_'
        assert sanitize_name('   ') == 'Untitled'

    def test_folder_paths_survive_cycles(self):
        paths = build_folder_paths([
            {'id': 'x', 'name': 'X', 'parentFolderId': 'y'},
            {'id': 'y', 'name': 'Y', 'parentFolderId': 'x'},
        ])
        assert set(paths) == {'x', 'y'}


# ── Zip layout ─────────────────────────────────────────────────────

class TestZip:

    async def test_layout(self, populated):
        data = to_zip(export_all(populated['store']))
        names = zipfile.ZipFile(io.BytesIO(data)).namelist()
        assert 'manifest.json' in names
        assert 'folders.json' in names
        assert 'Work/Drafts/Plan_ Q3_/metadata.json' in names
        assert any(n.startswith('Work/Drafts/Plan_ Q3_/chat-') for n in names)
        assert any(n.endswith('.png') for n in names)

    async def test_round_trip_preserves_content(self, populated):
        archive = export_all(populated['store'])
        restored = from_zip(to_zip(archive))
        assert restored['manifest'] == archive['manifest']
        group = restored['chatGroups'][0]
        assert [m['content'] for m in group['chats'][0]['messages']] == ["What next?", "Ship it."]
        assert group['attachments'][0]['data'] == archive['chatGroups'][0]['attachments'][0]['data']

    def test_not_a_zip(self):
        with pytest.raises(ValidationError):
            from_zip(b"definitely not a zip")

    def test_zip_without_manifest(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, 'w') as zf:
            zf.writestr('folders.json', '[]')
        with pytest.raises(ValidationError):
            from_zip(buffer.getvalue())


# ── Import ─────────────────────────────────────────────────────────

class TestImport:

    async def test_import_into_empty_store(self, populated, tmp_path):
        archive = export_all(populated['store'])
        target = Store(tmp_path / "other-home")

        result = await import_archive(target, archive)

        assert (result.folders, result.chatGroups, result.chats, result.messages, result.attachments) == (2, 1, 1, 2, 1)
        assert result.errors == []

        folders = {f['name']: f for f in target.query('folders')}
        assert folders['Drafts']['parentFolderId'] == folders['Work']['id']
        assert folders['Work']['systemPrompt'] == "Be concise"

        group = target.query('chatGroups')[0]
        assert group['folderId'] == folders['Drafts']['id']
        assert group['id'] != populated['group']

        chat = target.query('chats')[0]
        messages = target.query('messages', where={'chatId': chat['id']}, order_by='createdAt')
        assert [m['content'] for m in messages] == ["What next?", "Ship it."]
        attachment = target.query('imageAttachments')[0]
        assert attachment['messageId'] == messages[0]['id']
        assert attachment['chatGroupId'] == group['id']

    async def test_import_twice_creates_copies(self, populated):
        store = populated['store']
        archive = export_all(store)
        await import_archive(store, archive)
        await import_archive(store, archive)
        assert store.count('chatGroups') == 3
        assert len({g['id'] for g in store.query('chatGroups')}) == 3

    async def test_zip_round_trip_import(self, populated, tmp_path):
        target = Store(tmp_path / "zip-home")
        result = await import_archive(target, from_zip(to_zip(export_all(populated['store']))))
        assert result.messages == 2
        assert result.attachments == 1

    async def test_folder_with_missing_parent_lands_at_root(self, populated, tmp_path):
        archive = export_all(populated['store'], folder_ids=[populated['drafts']])
        target = Store(tmp_path / "partial")
        await import_archive(target, archive)
        drafts = target.query('folders')[0]
        assert drafts['parentFolderId'] is None
        assert target.query('chatGroups')[0]['folderId'] == drafts['id']

    async def test_orphan_attachment_reported(self, populated, tmp_path):
        archive = export_all(populated['store'])
        archive['chatGroups'][0]['attachments'][0]['messageId'] = 'gone'
        result = await import_archive(Store(tmp_path / "orphans"), archive)
        assert result.attachments == 0
        assert len(result.errors) == 1

    async def test_invalid_record_reported(self, populated, tmp_path):
        archive = export_all(populated['store'])
        archive['chatGroups'][0]['chats'][0]['messages'][0]['role'] = 'narrator'
        result = await import_archive(Store(tmp_path / "invalid"), archive)
        assert result.messages == 1
        assert result.errors

    async def test_archive_without_manifest(self, store):
        with pytest.raises(ValidationError):
            await import_archive(store, {'folders': []})

    async def test_messages_without_optional_fields_round_trip(self, store, tmp_path):
        store.put('chatGroups', {
            'id': 'g1', 'name': 'Legacy', 'folderId': None, 'layout': 'horizontal',
            'order': 0, 'isTemporary': False, 'isPinned': False, 'createdAt': 1, 'updatedAt': 1,
        })
        store.put('chats', {'id': 'c1', 'chatGroupId': 'g1', 'model': 'gpt-4o', 'createdAt': 1, 'updatedAt': 1})
        # Written before starred and model existed
        store.put('messages', {'id': 'm1', 'chatId': 'c1', 'chatGroupId': 'g1', 'role': 'user', 'content': 'hi', 'createdAt': 1})
        store.put('messages', {'id': 'm2', 'chatId': 'c1', 'chatGroupId': 'g1', 'role': 'assistant', 'content': 'hello', 'createdAt': 2})

        archive = export_all(store)
        assert 'starred' not in archive['chatGroups'][0]['chats'][0]['messages'][0]

        target = Store(tmp_path / "legacy")
        result = await import_archive(target, from_zip(to_zip(archive)))

        assert result.errors == []
        assert result.messages == 2
        assert [m['starred'] for m in target.query('messages')] == [False, False]

    async def test_null_message_fields_take_defaults(self, populated, tmp_path):
        archive = export_all(populated['store'])
        archive['chatGroups'][0]['chats'][0]['messages'][0]['starred'] = None
        target = Store(tmp_path / "nulls")
        result = await import_archive(target, archive)
        assert result.errors == []
        assert result.messages == 2
