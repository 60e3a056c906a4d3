"""
Tests for chatterhub.storage.prompts: PromptStorage.

Covers:
  - Create with tag normalization
  - Newest-first listing, starred / regular split, tag collection
  - Star toggle and not-found no-ops
  - Duplication
"""

import pytest

from chatterhub.models.prompt import PromptCreate, PromptUpdate
from chatterhub.storage import base
from chatterhub.storage.prompts import PromptStorage


@pytest.fixture
def prompts(store):
    return PromptStorage(store)


class TestCreate:

    async def test_tags_deduplicated(self, prompts):
        prompt_id = await prompts.create(PromptCreate(
            title="Reviewer", content="Review this", tags=["code", " code ", "", "review"],
        ))
        assert (await prompts.get(prompt_id)).tags == ["code", "review"]

    async def test_update_keeps_other_fields(self, prompts):
        prompt_id = await prompts.create(PromptCreate(title="T", content="C", description="D"))
        updated = await prompts.update(prompt_id, PromptUpdate(content="New"))
        assert updated.content == "New"
        assert updated.description == "D"

    async def test_update_missing_is_noop(self, prompts, store):
        assert await prompts.update('missing', PromptUpdate(title="x")) is None
        assert store.count('prompts') == 0


class TestListing:

    async def test_newest_first(self, prompts, monkeypatch):
        clock = iter([100, 200, 300])
        monkeypatch.setattr(base, 'now_ms', lambda: next(clock))
        ids = [await prompts.create(PromptCreate(title=t, content="c")) for t in "abc"]
        assert [p.id for p in await prompts.list()] == list(reversed(ids))

    async def test_starred_and_regular(self, prompts):
        starred = await prompts.create(PromptCreate(title="S", content="c", isStarred=True))
        regular = await prompts.create(PromptCreate(title="R", content="c"))
        assert [p.id for p in await prompts.starred()] == [starred]
        assert [p.id for p in await prompts.regular()] == [regular]

    async def test_all_tags_sorted_unique(self, prompts):
        await prompts.create(PromptCreate(title="A", content="c", tags=["zeta", "alpha"]))
        await prompts.create(PromptCreate(title="B", content="c", tags=["alpha", "mid"]))
        assert await prompts.all_tags() == ["alpha", "mid", "zeta"]


class TestToggleAndDuplicate:

    async def test_toggle_star(self, prompts):
        prompt_id = await prompts.create(PromptCreate(title="T", content="c"))
        assert await prompts.toggle_star(prompt_id) is True
        assert await prompts.toggle_star(prompt_id) is False

    async def test_toggle_missing_is_noop(self, prompts, store):
        assert await prompts.toggle_star('missing') is None
        assert store.count('prompts') == 0

    async def test_duplicate(self, prompts):
        source_id = await prompts.create(PromptCreate(
            title="Reviewer", content="Review", description="desc", tags=["code"], isStarred=True,
        ))
        copy_id = await prompts.duplicate(source_id)
        source = await prompts.get(source_id)
        copy = await prompts.get(copy_id)

        assert copy_id != source_id
        assert copy.title == "Copy of Reviewer"
        assert copy.content == source.content
        assert copy.description == source.description
        assert copy.tags == source.tags
        assert copy.isStarred is False
        assert copy.createdAt >= source.createdAt
        assert copy.createdAt == copy.updatedAt

    async def test_duplicate_twice_gives_distinct_copies(self, prompts, store):
        source_id = await prompts.create(PromptCreate(title="Reviewer", content="Review"))
        first = await prompts.duplicate(source_id)
        second = await prompts.duplicate(source_id)

        assert len({source_id, first, second}) == 3
        assert store.count('prompts') == 3
        for copy_id in (first, second):
            copy = await prompts.get(copy_id)
            assert copy.title == "Copy of Reviewer"
            assert copy.content == "Review"

    async def test_duplicate_missing(self, prompts, store):
        assert await prompts.duplicate('missing') is None
        assert store.count('prompts') == 0

    async def test_delete(self, prompts):
        prompt_id = await prompts.create(PromptCreate(title="T", content="c"))
        assert await prompts.delete(prompt_id) is True
        assert await prompts.delete(prompt_id) is False
