"""Tests for the relational integrity cleanups and the ``lockbox cleanup`` command."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lockbox import cli
from lockbox.models import FoldersRelation, Gpgkey, Group, GroupsUser, MetadataPrivateKey, Permission
from lockbox.models.folder import FOREIGN_MODEL_FOLDER
from lockbox.models.permission import ACO_RESOURCE, ARO_USER
from lockbox.models.user import ROLE_ADMIN, new_uuid
from lockbox.services import cleanup_service

from tests.helpers import make_folder, make_gpgkey, make_metadata_key, make_metadata_private_key, make_resource, make_user


@pytest.fixture(autouse=True)
def _keep_test_logging(monkeypatch):
    """The command reconfigures the root logger onto the captured stdout otherwise."""
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


@pytest.fixture()
def broken_data(db, admin, ada):
    """One inconsistency for each registered cleanup."""
    gone = make_user(db, "gone@example.com", deleted=True)

    empty_group = Group(id=new_uuid(), name="Empty")
    deleted_empty_group = Group(id=new_uuid(), name="Deleted", deleted=True)
    group = Group(id=new_uuid(), name="Team")
    db.add_all([empty_group, deleted_empty_group, group])
    db.flush()
    db.add(GroupsUser(group_id=group.id, user_id=ada.id))

    deleted_resource = make_resource(db, ada, "Deleted")
    deleted_resource.deleted = True

    folder = make_folder(db, ada)
    db.add(FoldersRelation(foreign_model=FOREIGN_MODEL_FOLDER, foreign_id=folder.id, user_id=gone.id))
    orphan_child = make_resource(db, ada, "Orphan")
    orphan_relation = db.query(FoldersRelation).filter(FoldersRelation.foreign_id == orphan_child.id).one()
    orphan_relation.folder_parent_id = new_uuid()

    db.add(Permission(aco=ACO_RESOURCE, aco_foreign_key=new_uuid(), aro=ARO_USER, aro_foreign_key=ada.id, type=1))

    key = make_metadata_key(db, admin)
    make_metadata_private_key(db, key, None)
    make_metadata_private_key(db, key, gone)

    db.add(Gpgkey(id=new_uuid(), user_id=new_uuid(), armored_key="x", key_id="DEADBEEFDEADBEEF", fingerprint="F" * 40))
    make_gpgkey(db, ada)
    db.commit()
    # Ids are read before the cleanups delete rows behind the instances.
    return {
        "empty_group_id": empty_group.id,
        "deleted_empty_group_id": deleted_empty_group.id,
        "orphan_relation_id": orphan_relation.id,
    }


EXPECTED_COUNTS = {
    "groups with no members": 1,
    "folders relations of deleted items": 1,
    "folders relations of deleted users": 1,
    "folders relations with a missing parent folder": 1,
    # the unknown resource and the soft-deleted one
    "permissions of deleted items": 2,
    "metadata private keys of deleted users": 1,
    "gpgkeys of missing users": 1,
}


class TestCleanups:

    def test_dry_run_changes_nothing(self, db, broken_data):
        results = cleanup_service.run_cleanups(db, dry_run=True)
        assert {r.name: r.count for r in results} == EXPECTED_COUNTS
        db.expire_all()
        assert db.get(Group, broken_data["empty_group_id"]) is not None

    def test_fix_mode(self, db, broken_data):
        results = {r.name: r.count for r in cleanup_service.run_cleanups(db, dry_run=False)}
        assert results == EXPECTED_COUNTS

        db.expire_all()
        assert db.get(Group, broken_data["empty_group_id"]) is None
        assert db.get(Group, broken_data["deleted_empty_group_id"]) is not None
        assert db.get(FoldersRelation, broken_data["orphan_relation_id"]).folder_parent_id is None
        assert db.query(MetadataPrivateKey).count() == 1
        assert db.query(Gpgkey).count() == 1

        # Running again finds nothing.
        assert all(r.count == 0 for r in cleanup_service.run_cleanups(db, dry_run=False))

    def test_registry(self, db):
        cleanup_service.add_cleanup("custom things", lambda session, dry_run: 3)
        assert "custom things" in cleanup_service.get_cleanups()
        result = [r for r in cleanup_service.run_cleanups(db, dry_run=True) if r.name == "custom things"][0]
        assert result.message() == "3 custom things found (dry-run)."

        cleanup_service.reset_cleanups()
        assert "custom things" not in cleanup_service.get_cleanups()

    def test_result_messages(self):
        assert cleanup_service.CleanupResult("orphans", 0, False).message() == "No orphans found."
        assert cleanup_service.CleanupResult("orphans", 2, False).message() == "2 orphans fixed."


class TestCleanupCommand:

    def test_dry_run(self, db, broken_data, capsys):
        assert cli.main(["cleanup", "--dry-run"]) == 0
        out = capsys.readouterr().out
        assert "Cleanup shell (dry-run)" in out
        assert "1 groups with no members found (dry-run)." in out
        db.expire_all()
        assert db.get(Group, broken_data["empty_group_id"]) is not None

    def test_fix_mode(self, db, broken_data, capsys):
        assert cli.main(["cleanup"]) == 0
        out = capsys.readouterr().out
        assert "Cleanup shell (fix mode)" in out
        assert "1 groups with no members fixed." in out
        db.expire_all()
        assert db.get(Group, broken_data["empty_group_id"]) is None

    def test_refuses_without_active_admin(self, db, ada, capsys):
        assert cli.main(["cleanup"]) == 0
        captured = capsys.readouterr()
        assert captured.err.strip() == cli.NO_ADMIN_MESSAGE

    def test_refuses_without_users_table(self, tmp_path, monkeypatch, capsys):
        empty_engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
        monkeypatch.setattr(cli, "SessionLocal", sessionmaker(bind=empty_engine))
        assert cli.main(["cleanup"]) == 0
        assert capsys.readouterr().err.strip() == (
            "Cleanup command cannot be executed on an instance having no users table."
        )

    def test_help(self, capsys):
        with pytest.raises(SystemExit):
            cli.main(["cleanup", "--help"])
        out = capsys.readouterr().out
        assert "usage: lockbox cleanup" in out
        assert "Identify and fix database relational integrity issues." in out


class TestOtherCommands:

    def test_create_user(self, db, capsys):
        assert cli.main(["create-user", "grace@example.com", "long enough", "--role", ROLE_ADMIN]) == 0
        assert "created" in capsys.readouterr().out

    def test_create_user_rejects_short_password(self, capsys):
        assert cli.main(["create-user", "grace@example.com", "short"]) == 1
        assert capsys.readouterr().err

    def test_healthcheck_json(self, capsys):
        assert cli.main(["healthcheck", "--domain", "application", "--json"]) == 0
        assert '"registrationClosed"' in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 2
