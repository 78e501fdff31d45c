"""Tests for the generic repository and the lookup repositories."""

from pathlib import Path

import pytest

from pace_tracker.exceptions import ReferentialIntegrityViolationError
from pace_tracker.models.entities import Activity, Category, Description, Tag
from pace_tracker.models.enums import EntityKind, TagDeletePolicy
from pace_tracker.models.guid import Guid
from pace_tracker.store.core import ActivityStore
from pace_tracker.store.repository import LookupRepository


class TestRepository:
    def test_create_then_read(self, store: ActivityStore) -> None:
        category = Category(name="writing", description="docs and posts")
        with store.unit_of_work() as uow:
            assert uow.categories.create(category) == category.guid
        with store.reader() as uow:
            assert uow.categories.read(category.guid) == category

    def test_read_missing_returns_none(self, store: ActivityStore) -> None:
        with store.reader() as uow:
            assert uow.tags.read(Guid.new()) is None

    def test_read_all(self, store: ActivityStore) -> None:
        tags = [Tag(name="a"), Tag(name="b"), Tag(name="c")]
        with store.unit_of_work() as uow:
            for tag in tags:
                uow.tags.create(tag)
        with store.reader() as uow:
            assert set(uow.tags.read_all()) == set(tags)

    def test_update(self, store: ActivityStore) -> None:
        category = Category(name="writing")
        with store.unit_of_work() as uow:
            uow.categories.create(category)
            renamed = Category(name="authoring", guid=category.guid)
            assert uow.categories.update(category.guid, renamed) is True
            assert uow.categories.read(category.guid) == renamed

    def test_update_missing_returns_false(self, store: ActivityStore) -> None:
        with store.unit_of_work() as uow:
            assert uow.tags.update(Guid.new(), Tag(name="ghost")) is False

    def test_delete(self, store: ActivityStore) -> None:
        tag = Tag(name="short-lived")
        with store.unit_of_work() as uow:
            uow.tags.create(tag)
            assert uow.tags.delete(tag.guid) is True
            assert uow.tags.delete(tag.guid) is False
            assert not uow.tags.exists(tag.guid)


class TestLookupRepository:
    def test_get_or_create_deduplicates(self, store: ActivityStore) -> None:
        with store.unit_of_work() as uow:
            first = uow.descriptions.get_or_create("write docs")
            second = uow.descriptions.get_or_create("write docs")
            assert first == second
            assert len(uow.descriptions.read_all()) == 1

    def test_find_by_text(self, store: ActivityStore) -> None:
        with store.unit_of_work() as uow:
            tag = uow.tags.get_or_create("docs")
            assert uow.tags.find_by_text("docs") == tag
            assert uow.tags.find_by_text("other") is None

    def test_base_lookup_repository_is_abstract(self, store: ActivityStore) -> None:
        with store.reader() as uow:
            with pytest.raises(TypeError):
                LookupRepository(uow.conn, EntityKind.TAG, "tag")  # type: ignore[abstract]

    def test_ensure_is_idempotent(self, store: ActivityStore) -> None:
        description = Description(text="review")
        with store.unit_of_work() as uow:
            uow.descriptions.ensure(description)
            uow.descriptions.ensure(description)
            assert uow.descriptions.read_all() == [description]


def _tagged_activity(store: ActivityStore, at, tag_name: str) -> tuple[Activity, Tag]:
    with store.unit_of_work() as uow:
        tag = uow.tags.get_or_create(tag_name)
        activity = Activity(
            description=uow.descriptions.get_or_create("tagged work"),
            begin=at("09:00"),
            tags=frozenset({tag}),
        )
        uow.activities.create(activity)
    return activity, tag


class TestTagDeletePolicy:
    def test_restrict_refuses_to_delete_used_tag(self, store: ActivityStore, at) -> None:
        activity, tag = _tagged_activity(store, at, "docs")
        with pytest.raises(ReferentialIntegrityViolationError):
            with store.unit_of_work() as uow:
                uow.tags.delete(tag.guid)

        with store.reader() as uow:
            assert uow.tags.exists(tag.guid)
            stored = uow.activities.read(activity.guid)
            assert stored is not None and stored.tags == frozenset({tag})

    def test_cascade_unlinks_used_tag(self, db_path: Path, at) -> None:
        store = ActivityStore(db_path, tag_delete_policy=TagDeletePolicy.CASCADE)
        try:
            activity, tag = _tagged_activity(store, at, "docs")
            with store.unit_of_work() as uow:
                assert uow.tags.delete(tag.guid) is True

            with store.reader() as uow:
                assert not uow.tags.exists(tag.guid)
                stored = uow.activities.read(activity.guid)
                assert stored is not None and stored.tags == frozenset()
        finally:
            store.close()

    def test_unused_tag_is_deleted_under_restrict(self, store: ActivityStore) -> None:
        with store.unit_of_work() as uow:
            tag = uow.tags.get_or_create("unused")
            assert uow.tags.usage_count(tag.guid) == 0
            assert uow.tags.delete(tag.guid) is True


class TestOrphans:
    def test_orphans_lists_unreferenced_lookups(self, store: ActivityStore, at) -> None:
        _tagged_activity(store, at, "used")
        with store.unit_of_work() as uow:
            lonely_tag = uow.tags.get_or_create("lonely")
            lonely_description = uow.descriptions.get_or_create("never used")
            lonely_category = uow.categories.get_or_create("empty")

            assert uow.tags.orphans() == [lonely_tag.guid]
            assert uow.descriptions.orphans() == [lonely_description.guid]
            assert uow.categories.orphans() == [lonely_category.guid]
