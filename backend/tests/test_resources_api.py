"""Tests for resources, sharing and moving."""

from lockbox.models import FoldersRelation, Permission, Resource
from lockbox.models.permission import READ, UPDATE
from lockbox.models.user import new_uuid

from tests.helpers import auth_headers, make_folder, make_resource, make_user, place


def _body(resp):
    return resp.json()["body"]


class TestResources:

    def test_create(self, client, ada):
        resp = client.post(
            "/resources.json",
            json={"name": "Mail", "username": "ada", "uri": "https://mail.example.com"},
            headers=auth_headers(ada),
        )
        assert resp.status_code == 200
        body = _body(resp)
        assert body["name"] == "Mail"
        assert body["personal"] is True
        assert body["deleted"] is False

    def test_create_requires_name(self, client, ada):
        resp = client.post("/resources.json", json={"username": "ada"}, headers=auth_headers(ada))
        assert resp.status_code == 400
        assert resp.json()["header"]["message"] == "Could not validate resource data."
        assert "_required" in _body(resp)["name"]

    def test_search_matches_name_username_and_uri(self, client, db, ada):
        make_resource(db, ada, "Bank")
        make_resource(db, ada, "Mail", username="BankTeller")
        make_resource(db, ada, "Shop", uri="https://shop.example.com")
        resp = client.get("/resources.json", params={"filter[search]": "bank"}, headers=auth_headers(ada))
        assert sorted(r["name"] for r in _body(resp)) == ["Bank", "Mail"]

        resp = client.get("/resources.json", params={"filter[search]": "SHOP.EXAMPLE"}, headers=auth_headers(ada))
        assert [r["name"] for r in _body(resp)] == ["Shop"]

    def test_filter_has_parent(self, client, db, ada):
        folder = make_folder(db, ada)
        inside = make_resource(db, ada, "Inside", parent=folder)
        make_resource(db, ada, "Outside")
        resp = client.get("/resources.json", params={"filter[has-parent][]": [folder.id]}, headers=auth_headers(ada))
        assert [r["id"] for r in _body(resp)] == [inside.id]

    def test_filter_empty_parent_lists_root(self, client, db, ada):
        folder = make_folder(db, ada)
        make_resource(db, ada, "Inside", parent=folder)
        outside = make_resource(db, ada, "Outside")
        resp = client.get("/resources.json", params={"filter[has-parent][]": [""]}, headers=auth_headers(ada))
        assert [r["id"] for r in _body(resp)] == [outside.id]

    def test_view_decorated_for_reader(self, client, db, ada):
        folder = make_folder(db, ada)
        resource = make_resource(db, ada, parent=folder)
        body = _body(client.get(f"/resources/{resource.id}.json", headers=auth_headers(ada)))
        assert body["folder_parent_id"] == folder.id
        assert body["personal"] is True

    def test_soft_delete_removes_every_relation(self, client, db, ada, betty):
        resource = make_resource(db, ada)
        place(db, betty, resource, permission_type=READ)

        resp = client.delete(f"/resources/{resource.id}.json", headers=auth_headers(ada))
        assert resp.status_code == 200

        db.expire_all()
        assert db.get(Resource, resource.id).deleted is True
        assert db.query(FoldersRelation).filter(FoldersRelation.foreign_id == resource.id).count() == 0
        assert client.get(f"/resources/{resource.id}.json", headers=auth_headers(ada)).status_code == 404
        assert _body(client.get("/resources.json", headers=auth_headers(betty))) == []

    def test_reader_cannot_delete(self, client, db, ada, betty):
        resource = make_resource(db, ada)
        place(db, betty, resource, permission_type=READ)
        assert client.delete(f"/resources/{resource.id}.json", headers=auth_headers(betty)).status_code == 403

    def test_editor_can_delete(self, client, db, ada, betty):
        resource = make_resource(db, ada)
        place(db, betty, resource, permission_type=UPDATE)
        assert client.delete(f"/resources/{resource.id}.json", headers=auth_headers(betty)).status_code == 200


class TestShare:

    def test_share_resource(self, client, db, ada, betty):
        resource = make_resource(db, ada)
        resp = client.put(
            f"/share/resource/{resource.id}.json",
            json={"permissions": [{"user_id": betty.id}]},
            headers=auth_headers(ada),
        )
        assert resp.status_code == 200
        assert _body(resp)["personal"] is False

        permission = db.query(Permission).filter(
            Permission.aco_foreign_key == resource.id, Permission.aro_foreign_key == betty.id
        ).one()
        assert permission.type == READ

        shared = _body(client.get(f"/resources/{resource.id}.json", headers=auth_headers(betty)))
        assert shared["folder_parent_id"] is None
        assert shared["personal"] is False

    def test_share_folder_keeps_recipient_at_root(self, client, db, ada, betty):
        parent = make_folder(db, ada, "Parent")
        child = make_folder(db, ada, "Child", parent=parent)
        resp = client.put(
            f"/share/folder/{child.id}.json",
            json={"permissions": [{"user_id": betty.id, "type": UPDATE}]},
            headers=auth_headers(ada),
        )
        assert resp.status_code == 200
        assert _body(resp)["folder_parent_id"] == parent.id
        assert _body(client.get(f"/folders/{child.id}.json", headers=auth_headers(betty)))["folder_parent_id"] is None

    def test_share_with_inactive_user(self, client, db, ada):
        resource = make_resource(db, ada)
        inactive = make_user(db, "gone@example.com", active=False)
        resp = client.put(
            f"/share/resource/{resource.id}.json",
            json={"permissions": [{"user_id": inactive.id}]},
            headers=auth_headers(ada),
        )
        assert resp.status_code == 400
        assert "user_exists" in _body(resp)["permissions"]["0"]["user_id"]

    def test_share_requires_owner(self, client, db, ada, betty):
        resource = make_resource(db, ada)
        place(db, betty, resource, permission_type=UPDATE)
        resp = client.put(
            f"/share/resource/{resource.id}.json",
            json={"permissions": [{"user_id": ada.id}]},
            headers=auth_headers(betty),
        )
        assert resp.status_code == 403

    def test_share_validates_payload(self, client, db, ada):
        resource = make_resource(db, ada)
        resp = client.put(
            f"/share/resource/{resource.id}.json",
            json={"permissions": [{"user_id": "nope", "type": 3}]},
            headers=auth_headers(ada),
        )
        assert resp.status_code == 400
        errors = _body(resp)["permissions"]["0"]
        assert "uuid" in errors["user_id"]
        assert "inList" in errors["type"]

    def test_unknown_item_type(self, client, db, ada):
        resp = client.put(f"/share/group/{new_uuid()}.json", json={"permissions": []}, headers=auth_headers(ada))
        assert resp.status_code == 400


class TestMove:

    def test_move_resource_into_folder(self, client, db, ada):
        folder = make_folder(db, ada)
        resource = make_resource(db, ada)
        resp = client.put(
            f"/move/resource/{resource.id}.json", json={"folder_parent_id": folder.id}, headers=auth_headers(ada)
        )
        assert resp.status_code == 200
        assert _body(resp)["folder_parent_id"] == folder.id

    def test_move_only_changes_caller_tree(self, client, db, ada, betty):
        folder = make_folder(db, ada)
        resource = make_resource(db, ada)
        place(db, betty, resource)
        client.put(f"/move/resource/{resource.id}.json", json={"folder_parent_id": folder.id}, headers=auth_headers(ada))
        assert _body(client.get(f"/resources/{resource.id}.json", headers=auth_headers(betty)))["folder_parent_id"] is None

    def test_move_to_root(self, client, db, ada):
        folder = make_folder(db, ada)
        resource = make_resource(db, ada, parent=folder)
        resp = client.put(f"/move/resource/{resource.id}.json", json={"folder_parent_id": None}, headers=auth_headers(ada))
        assert _body(resp)["folder_parent_id"] is None

    def test_move_into_invisible_folder(self, client, db, ada, betty):
        folder = make_folder(db, betty)
        resource = make_resource(db, ada)
        resp = client.put(
            f"/move/resource/{resource.id}.json", json={"folder_parent_id": folder.id}, headers=auth_headers(ada)
        )
        assert resp.status_code == 400
        assert "folder_exists" in _body(resp)["folder_parent_id"]

    def test_move_folder_into_its_child(self, client, db, ada):
        parent = make_folder(db, ada, "Parent")
        child = make_folder(db, ada, "Child", parent=parent)
        grandchild = make_folder(db, ada, "Grandchild", parent=child)
        resp = client.put(
            f"/move/folder/{parent.id}.json", json={"folder_parent_id": grandchild.id}, headers=auth_headers(ada)
        )
        assert resp.status_code == 400
        assert "cycle" in _body(resp)["folder_parent_id"]
