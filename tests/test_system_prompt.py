"""
Tests for chatterhub.services.system_prompt: prompt inheritance over folders.

Covers:
  - The nested-folder scenario (inherit through an empty folder, override wins)
  - Inheritance to the nearest non-empty ancestor, empty vs absent prompts
  - Cycle safety and references to deleted folders
  - Inherited prompt for folder editing
  - Affected chat groups and the inverse property, previews
  - Folder paths and prompt source paths
"""

import pytest

from chatterhub.services.system_prompt import (
    get_affected_chat_groups,
    get_effective_system_prompt,
    get_effective_system_prompts,
    get_folder_path,
    get_inherited_system_prompt,
    get_system_prompt_info,
    get_system_prompt_path,
    has_system_prompt,
    preview_affected_chat_groups,
)
from chatterhub.storage.live import LiveQueryEngine


def folder(store, folder_id, parent=None, prompt=None, name=None):
    store.put('folders', {
        'id': folder_id, 'name': name or folder_id.upper(), 'parentFolderId': parent,
        'systemPrompt': prompt, 'order': 0, 'isPinned': False, 'createdAt': 1, 'updatedAt': 1,
    })


def group(store, group_id, folder_id=None, prompt=None):
    store.put('chatGroups', {
        'id': group_id, 'name': group_id.upper(), 'folderId': folder_id, 'ownSystemPrompt': prompt,
        'layout': 'horizontal', 'order': 0, 'isTemporary': False, 'isPinned': False,
        'createdAt': 1, 'updatedAt': 1,
    })


@pytest.fixture
def nested(store):
    """Folder a ("Be concise") > folder b (""), with g1 inheriting and g2 overriding."""
    folder(store, 'a', prompt="Be concise")
    folder(store, 'b', parent='a', prompt="")
    group(store, 'g1', 'b')
    group(store, 'g2', 'b', prompt="Be verbose")
    return store


# ── Effective prompt ───────────────────────────────────────────────

class TestEffectivePrompt:

    async def test_inherits_through_empty_folder(self, nested):
        effective = await get_effective_system_prompt(nested, 'g1')
        assert effective.prompt == "Be concise"
        assert effective.source == 'folder'
        assert effective.sourceId == 'a'

    async def test_override_wins(self, nested):
        effective = await get_effective_system_prompt(nested, 'g2')
        assert effective.prompt == "Be verbose"
        assert effective.source == 'chat'
        assert effective.sourceId == 'g2'

    async def test_nearest_ancestor_wins(self, store):
        folder(store, 'root', prompt="Root")
        folder(store, 'mid', parent='root', prompt="Mid")
        folder(store, 'leaf', parent='mid')
        group(store, 'g', 'leaf')
        assert (await get_effective_system_prompt(store, 'g')).sourceId == 'mid'

    async def test_empty_override_falls_through(self, nested):
        group(nested, 'g3', 'b', prompt="")
        assert (await get_effective_system_prompt(nested, 'g3')).sourceId == 'a'

    async def test_no_prompt_anywhere(self, store):
        folder(store, 'a')
        group(store, 'g', 'a')
        effective = await get_effective_system_prompt(store, 'g')
        assert effective.prompt == ""
        assert effective.source == 'none'
        assert effective.sourceId is None

    async def test_root_group(self, store):
        group(store, 'g')
        assert (await get_effective_system_prompt(store, 'g')).source == 'none'

    async def test_unknown_group(self, store):
        assert (await get_effective_system_prompt(store, 'missing')).source == 'none'
        assert (await get_effective_system_prompt(store, None)).source == 'none'

    async def test_deleted_folder_reference_stops_walk(self, store):
        folder(store, 'orphan', parent='deleted-parent')
        group(store, 'g1', 'orphan')
        group(store, 'g2', 'deleted-folder')
        assert (await get_effective_system_prompt(store, 'g1')).source == 'none'
        assert (await get_effective_system_prompt(store, 'g2')).source == 'none'

    async def test_cycle_resolves_to_no_prompt(self, store):
        folder(store, 'x', parent='y')
        folder(store, 'y', parent='z')
        folder(store, 'z', parent='x')
        group(store, 'g', 'x')
        effective = await get_effective_system_prompt(store, 'g')
        assert effective.prompt == ""
        assert effective.source == 'none'

    async def test_self_parent_cycle(self, store):
        folder(store, 'x', parent='x')
        group(store, 'g', 'x')
        assert (await get_effective_system_prompt(store, 'g')).source == 'none'

    async def test_prompt_before_cycle_is_found(self, store):
        folder(store, 'x', parent='y')
        folder(store, 'y', parent='x', prompt="Inside")
        group(store, 'g', 'x')
        assert (await get_effective_system_prompt(store, 'g')).sourceId == 'y'

    async def test_reflects_latest_write(self, nested):
        folder(nested, 'b', parent='a', prompt="Closer")
        assert (await get_effective_system_prompt(nested, 'g1')).prompt == "Closer"

    async def test_has_system_prompt(self, nested):
        group(nested, 'bare')
        assert await has_system_prompt(nested, 'g1') is True
        assert await has_system_prompt(nested, 'bare') is False

    async def test_effective_prompts_for_all_groups(self, nested):
        prompts = await get_effective_system_prompts(nested)
        assert prompts['g1'].prompt == "Be concise"
        assert prompts['g2'].source == 'chat'


# ── Inherited prompt ───────────────────────────────────────────────

class TestInheritedPrompt:

    async def test_excludes_own_prompt(self, store):
        folder(store, 'a', prompt="Parent")
        folder(store, 'b', parent='a', prompt="Own")
        inherited = await get_inherited_system_prompt(store, 'b')
        assert inherited.prompt == "Parent"
        assert inherited.sourceFolderId == 'a'

    async def test_root_folder_inherits_nothing(self, store):
        folder(store, 'a', prompt="Own")
        inherited = await get_inherited_system_prompt(store, 'a')
        assert inherited.prompt == ""
        assert inherited.sourceFolderId is None

    async def test_cycle_back_to_self(self, store):
        folder(store, 'a', parent='b', prompt="A")
        folder(store, 'b', parent='a')
        assert (await get_inherited_system_prompt(store, 'a')).sourceFolderId is None

    async def test_unknown_folder(self, store):
        assert (await get_inherited_system_prompt(store, 'missing')).prompt == ""


# ── Affected chat groups ───────────────────────────────────────────

class TestAffectedChatGroups:

    async def test_scenario(self, nested):
        assert await get_affected_chat_groups(nested, 'a') == ['g1']
        assert await get_affected_chat_groups(nested, 'b') == []

    async def test_inverse_property(self, store):
        folder(store, 'r', prompt="R")
        folder(store, 's', parent='r')
        folder(store, 't', parent='s', prompt="T")
        folder(store, 'u', parent='t', prompt="")
        group(store, 'g1', 'r')
        group(store, 'g2', 's')
        group(store, 'g3', 't')
        group(store, 'g4', 'u')
        group(store, 'g5', 'u', prompt="Own")
        group(store, 'g6')

        for folder_id in ['r', 's', 't', 'u']:
            affected = set(await get_affected_chat_groups(store, folder_id))
            for group_id in ['g1', 'g2', 'g3', 'g4', 'g5', 'g6']:
                resolved = await get_effective_system_prompt(store, group_id)
                assert (group_id in affected) == (resolved.sourceId == folder_id)

    async def test_preview_new_prompt_on_empty_folder(self, nested):
        # Giving b a prompt would take g1 away from a; g2 keeps its override
        assert await preview_affected_chat_groups(nested, 'b', "New") == ['g1']

    async def test_preview_does_not_write(self, nested):
        await preview_affected_chat_groups(nested, 'b', "New")
        assert nested.get('folders', 'b')['systemPrompt'] == ""

    async def test_preview_clearing_prompt(self, nested):
        assert await preview_affected_chat_groups(nested, 'a', "") == ['g1']

    async def test_preview_same_prompt_changes_nothing(self, nested):
        assert await preview_affected_chat_groups(nested, 'a', "Be concise") == []


# ── Paths ──────────────────────────────────────────────────────────

class TestPaths:

    async def test_folder_path_root_first(self, nested):
        path = await get_folder_path(nested, 'g1')
        assert [(p.id, p.name) for p in path] == [('a', 'A'), ('b', 'B')]

    async def test_folder_path_unknown_group(self, store):
        assert await get_folder_path(store, 'missing') == []

    async def test_prompt_path_for_inherited(self, nested):
        assert await get_system_prompt_path(nested, 'g1') == ['A']

    async def test_prompt_path_for_override(self, nested):
        assert await get_system_prompt_path(nested, 'g2') == ['G2']

    async def test_prompt_path_without_prompt(self, store):
        group(store, 'g')
        assert await get_system_prompt_path(store, 'g') == []

    async def test_info(self, nested):
        info = await get_system_prompt_info(nested, 'g1')
        assert info.prompt == "Be concise"
        assert info.inherited is True
        assert info.path == ['A']
        override = await get_system_prompt_info(nested, 'g2')
        assert override.inherited is False
        assert (await get_system_prompt_info(nested, 'missing')).source == 'none'


# ── Live resolution ────────────────────────────────────────────────

class TestLiveResolution:

    @pytest.fixture
    def engine(self, nested):
        engine = LiveQueryEngine(nested)
        yield engine
        engine.close()

    async def test_ancestor_edit_redelivers_info(self, nested, engine):
        received = []
        await engine.subscribe(lambda s: get_system_prompt_info(s, 'g1'), lambda info: received.append(info.prompt))

        folder(nested, 'a', prompt="Changed")
        folder(nested, 'a', prompt="Changed2")
        await engine.settle()

        assert received == ["Be concise", "Changed2"]

    async def test_grandparent_edit_reaches_nested_group(self, nested, engine):
        folder(nested, 'c', parent='b')
        group(nested, 'g3', 'c')
        subscription = await engine.subscribe(lambda s: get_effective_system_prompt(s, 'g3'))
        assert subscription.value.sourceId == 'a'

        folder(nested, 'b', parent='a', prompt="Middle")
        await engine.settle()

        assert subscription.value.prompt == "Middle"
        assert subscription.value.sourceId == 'b'

    async def test_unrelated_write_does_not_redeliver(self, nested, engine):
        received = []
        await engine.subscribe(lambda s: get_system_prompt_info(s, 'g1'), received.append)

        nested.put('prompts', {'id': 'p1', 'title': 'T', 'content': 'c'})
        await engine.settle()

        assert len(received) == 1
