"""Tests for the folderizable behavior: per-user parent and personal flag."""

import pytest

from lockbox.core.config import settings
from lockbox.models import Folder, FolderizableBehavior, FoldersRelation, Resource
from lockbox.models.folderizable import (
    EVENT_AFTER_SAVE,
    EVENT_FIND_INDEX_BEFORE,
    FIND_OPTION,
    get_item_folder_parent_id_in_user_tree,
    is_item_personal,
    unset_personal_property_if_null,
    unset_personal_property_if_null_on_result_set,
)
from lockbox.models.user import new_uuid
from lockbox.repositories.folder_repository import FolderRepository
from lockbox.repositories.resource_repository import ResourceRepository

from tests.helpers import make_folder, make_resource, place


class TestBehaviorRegistry:

    def test_folders_and_resources_are_folderizable(self):
        assert FolderizableBehavior.for_model(Folder) is not None
        assert FolderizableBehavior.for_model(Resource) is not None

    def test_implemented_events(self):
        events = FolderizableBehavior.for_model(Folder).implemented_events()
        assert set(events) == {EVENT_AFTER_SAVE, EVENT_FIND_INDEX_BEFORE}

    def test_invalid_after_save_moment_raises(self, db, ada):
        folder = make_folder(db, ada)
        behavior = FolderizableBehavior(Folder, {EVENT_AFTER_SAVE: ("sometimes",)})
        with pytest.raises(ValueError, match='The passed value "sometimes" is invalid'):
            behavior.handle_after_save(db, folder, is_new=True)


class TestAfterSave:

    @pytest.fixture()
    def attach(self, monkeypatch):
        def _attach(*moments):
            behavior = FolderizableBehavior(Folder, {EVENT_AFTER_SAVE: moments})
            monkeypatch.setitem(FolderizableBehavior._registry, Folder, behavior)
        return _attach

    @pytest.fixture()
    def shared_child(self, db, ada, betty):
        parent = make_folder(db, ada, "Parent")
        child = make_folder(db, ada, "Child", parent=parent)
        place(db, betty, child)
        db.expire_all()
        reloaded = db.get(Folder, child.id)
        assert reloaded.personal is None
        return reloaded, parent.id

    def test_existing_decorates_updates(self, db, attach, shared_child):
        attach("existing")
        child, parent_id = shared_child
        child.name = "Renamed"
        db.commit()
        assert child.personal is False
        assert child.folder_parent_id == parent_id

    def test_always_decorates_updates(self, db, attach, shared_child):
        attach("always")
        child, parent_id = shared_child
        child.name = "Renamed"
        db.commit()
        assert child.personal is False
        assert child.folder_parent_id == parent_id

    def test_new_leaves_updates_undecorated(self, db, attach, shared_child):
        attach("new")
        child, _ = shared_child
        child.name = "Renamed"
        db.commit()
        assert child.personal is None
        assert child.folder_parent_id is None

    def test_new_decorates_creations(self, db, ada, attach):
        attach("new")
        folder = make_folder(db, ada)
        assert folder.personal is True
        assert folder.folder_parent_id is None

    def test_existing_skips_creations(self, db, ada, attach):
        attach("existing")
        folder = make_folder(db, ada)
        assert folder.personal is None


class TestLookups:

    def test_parent_in_user_tree(self, db, ada, betty):
        parent = make_folder(db, ada, "Parent")
        child = make_folder(db, ada, "Child", parent=parent)
        place(db, betty, child)

        assert get_item_folder_parent_id_in_user_tree(db, ada.id, child.id) == parent.id
        assert get_item_folder_parent_id_in_user_tree(db, betty.id, child.id) is None
        assert get_item_folder_parent_id_in_user_tree(db, ada.id, new_uuid()) is None

    def test_is_item_personal(self, db, ada, betty):
        folder = make_folder(db, ada)
        assert is_item_personal(db, folder.id) is True
        place(db, betty, folder)
        assert is_item_personal(db, folder.id) is False
        assert is_item_personal(db, new_uuid()) is False


class TestFindDecoration:

    def test_personal_and_parent_are_per_user(self, db, ada, betty):
        parent = make_folder(db, ada, "Parent")
        shared = make_folder(db, ada, "Shared", parent=parent)
        place(db, betty, shared)

        for_ada = FolderRepository(db).find_view(ada.id, shared.id)
        assert for_ada.folder_parent_id == parent.id
        assert for_ada.personal is False

        for_betty = FolderRepository(db).find_view(betty.id, shared.id)
        assert for_betty.folder_parent_id is None
        assert for_betty.personal is False

    def test_personal_item(self, db, ada):
        folder = make_folder(db, ada)
        assert FolderRepository(db).find_view(ada.id, folder.id).personal is True

    def test_personal_is_null_without_relation(self, db, ada):
        resource = make_resource(db, ada)
        db.query(FoldersRelation).filter(FoldersRelation.foreign_id == resource.id).delete()
        db.commit()

        found = ResourceRepository(db).find_view(ada.id, resource.id)
        assert found.personal is None
        assert found.folder_parent_id is None

    def test_plain_query_is_not_decorated(self, db, ada):
        folder = make_folder(db, ada)
        db.expire_all()
        plain = db.query(Folder).filter(Folder.id == folder.id).one()
        assert plain.personal is None

    def test_option_decorates_any_select(self, db, ada):
        parent = make_folder(db, ada, "Parent")
        child = make_folder(db, ada, "Child", parent=parent)
        decorated = (
            db.query(Folder)
            .filter(Folder.id == child.id)
            .execution_options(**{FIND_OPTION: ada.id})
            .one()
        )
        assert decorated.folder_parent_id == parent.id
        assert decorated.personal is True


class TestSerialization:

    def test_unset_null_personal(self, monkeypatch):
        monkeypatch.setattr(settings, "folders_enabled", True)
        assert unset_personal_property_if_null({"id": "x", "personal": None}) == {"id": "x"}
        assert unset_personal_property_if_null({"id": "x", "personal": False}) == {"id": "x", "personal": False}

    def test_kept_when_folders_disabled(self, monkeypatch):
        monkeypatch.setattr(settings, "folders_enabled", False)
        assert unset_personal_property_if_null({"personal": None}) == {"personal": None}

    def test_result_set(self, monkeypatch):
        monkeypatch.setattr(settings, "folders_enabled", True)
        rows = [{"personal": None}, {"personal": True}]
        assert unset_personal_property_if_null_on_result_set(rows) == [{}, {"personal": True}]
