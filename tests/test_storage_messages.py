"""
Tests for chatterhub.storage.messages, chats and images.

Covers:
  - Message create / edit / star toggles
  - Ordering by createdAt with insertion-order ties
  - Deletes cascading to attachments
  - Chat create, update (touches the chat group), reorder, delete
  - Image attachments and data URLs
"""

import pytest

from chatterhub.models.chat import ChatGroupCreate, ChatUpdate, MessageCreate
from chatterhub.models.image import ImageData
from chatterhub.storage import base
from chatterhub.storage.groups import ChatGroupStorage
from chatterhub.storage.images import to_data_url


@pytest.fixture
def groups(store):
    return ChatGroupStorage(store)


@pytest.fixture
async def chat(groups):
    group_id = await groups.create(ChatGroupCreate(isTemporary=True))
    return (await groups.chats.for_group(group_id))[0]


def message_for(chat, content, role='user'):
    return MessageCreate(chatId=chat.id, chatGroupId=chat.chatGroupId, role=role, content=content)


# ── Messages ───────────────────────────────────────────────────────

class TestMessages:

    async def test_create_is_unstarred(self, groups, chat):
        message = await groups.messages.get(await groups.messages.create(message_for(chat, "hi")))
        assert message.starred is False
        assert message.model is None
        assert message.content == "hi"

    async def test_edit_content(self, groups, chat):
        message_id = await groups.messages.create(message_for(chat, "typo"))
        assert (await groups.messages.update_content(message_id, "fixed")).content == "fixed"

    async def test_star_toggles(self, groups, chat):
        message_id = await groups.messages.create(message_for(chat, "hi"))
        assert await groups.messages.toggle_star(message_id) is True
        assert [m.id for m in await groups.messages.starred()] == [message_id]
        await groups.messages.unstar(message_id)
        assert await groups.messages.starred() == []
        await groups.messages.star(message_id)
        assert (await groups.messages.get(message_id)).starred is True

    async def test_star_missing_is_noop(self, groups, store):
        assert await groups.messages.toggle_star('missing') is None
        await groups.messages.star('missing')
        assert store.count('messages') == 0

    async def test_ordered_by_created_at(self, groups, chat, monkeypatch):
        clock = iter([300, 100, 200])
        monkeypatch.setattr(base, 'now_ms', lambda: next(clock))
        for content in ["third", "first", "second"]:
            await groups.messages.create(message_for(chat, content))
        assert [m.content for m in await groups.messages.for_chat(chat.id)] == ["first", "second", "third"]

    async def test_ties_keep_insertion_order(self, groups, chat, monkeypatch):
        monkeypatch.setattr(base, 'now_ms', lambda: 1000)
        for content in ["a", "b", "c"]:
            await groups.messages.create(message_for(chat, content))
        assert [m.content for m in await groups.messages.for_chat(chat.id)] == ["a", "b", "c"]
        assert (await groups.messages.last_in_chat(chat.id)).content == "c"

    async def test_counts(self, groups, chat):
        for content in ["a", "b"]:
            await groups.messages.create(message_for(chat, content))
        assert await groups.messages.count_in_chat(chat.id) == 2
        assert await groups.messages.count_in_chat_group(chat.chatGroupId) == 2

    async def test_delete_removes_attachments(self, groups, chat, store):
        message_id = await groups.messages.create(message_for(chat, "look"))
        await groups.images.save(message_id, chat.chatGroupId, [
            ImageData(filename="a.png", mimeType="image/png", data=b"one"),
            ImageData(filename="b.png", mimeType="image/png", data=b"two"),
        ])
        assert await groups.messages.delete_message(message_id) is True
        assert store.count('imageAttachments') == 0

    async def test_clear_chat_keeps_chat(self, groups, chat):
        for content in ["a", "b"]:
            await groups.messages.create(message_for(chat, content))
        assert await groups.messages.clear_chat(chat.id) == 2
        assert await groups.chats.get(chat.id) is not None

    async def test_bulk_delete(self, groups, chat):
        ids = [await groups.messages.create(message_for(chat, c)) for c in "abc"]
        assert await groups.messages.bulk_delete(ids[:2] + ['missing']) == 2


# ── Chats ──────────────────────────────────────────────────────────

class TestChats:

    async def test_update_touches_group(self, groups, chat, store):
        record = store.get('chatGroups', chat.chatGroupId)
        record['lastActivityAt'] = 1
        store.put('chatGroups', record)

        updated = await groups.chats.update(chat.id, ChatUpdate(model="gpt-4o"))
        assert updated.model == "gpt-4o"
        assert (await groups.get(chat.chatGroupId)).lastActivityAt > 1

    async def test_update_missing_is_noop(self, groups):
        assert await groups.chats.update('missing', ChatUpdate(model="x")) is None

    async def test_reorder(self, groups, chat):
        second = await groups.chats.create(chat.chatGroupId, "model-b", 1)
        other_group = await groups.create()
        foreign = (await groups.chats.for_group(other_group))[0]

        ordered = await groups.chats.reorder(chat.chatGroupId, [second, chat.id, foreign.id])
        assert [c.id for c in ordered] == [second, chat.id]
        assert (await groups.chats.get(foreign.id)).position == 0

    async def test_delete_chat_removes_messages(self, groups, chat, store):
        await groups.messages.create(message_for(chat, "bye"))
        assert await groups.chats.delete_chat(chat.id) is True
        assert store.count('messages', where={'chatId': chat.id}) == 0


# ── Images ─────────────────────────────────────────────────────────

class TestImages:

    async def test_save_and_read_back(self, groups, chat):
        message_id = await groups.messages.create(message_for(chat, "pic"))
        ids = await groups.images.save(message_id, chat.chatGroupId, [
            ImageData(filename="a.png", mimeType="image/png", data=b"\x00\x01", width=2, height=1),
        ])
        attachment = await groups.images.get(ids[0])
        assert attachment.data == b"\x00\x01"
        assert attachment.size == 2
        assert attachment.width == 2
        assert [a.id for a in await groups.images.for_message(message_id)] == ids

    async def test_base64_input_accepted(self):
        image = ImageData(filename="a.png", mimeType="image/png", data="AAE=")
        assert image.data == b"\x00\x01"

    async def test_data_url(self, groups, chat):
        message_id = await groups.messages.create(message_for(chat, "pic"))
        ids = await groups.images.save(message_id, chat.chatGroupId, [
            ImageData(filename="a.png", mimeType="image/png", data=b"\x00\x01"),
        ])
        assert to_data_url(await groups.images.get(ids[0])) == "data:image/png;base64,AAE="
