"""
Graphico — Persistence Gateway Tests
"""

import json

from graphico.models import Project, ProjectStatus, User
from graphico.storage import (
    PROJECTS_PREFIX, SESSION_KEY, USERS_KEY,
    JsonFileStore, MemoryStore, StorageGateway, projects_key,
)


def test_empty_store_reads_as_empty(gateway):
    assert gateway.list_registered_users() == []
    assert gateway.get_session() is None
    assert gateway.get_projects_for("a@x.com") == []


def test_register_user_is_idempotent_first_record_wins(gateway):
    first = gateway.register_user(User(name="Sara", email="a@x.com"))
    second = gateway.register_user(User(name="Other", email="a@x.com"))

    assert second == first
    users = gateway.list_registered_users()
    assert len(users) == 1
    assert users[0].name == "Sara"


def test_find_user_by_email(gateway):
    gateway.register_user(User(name="Sara", email="a@x.com"))
    assert gateway.find_user_by_email("a@x.com").name == "Sara"
    assert gateway.find_user_by_email("b@x.com") is None


def test_session_roundtrip_and_clear(gateway, store):
    user = User(name="Sara", email="a@x.com")
    gateway.save_session(user)
    assert gateway.get_session() == user

    gateway.clear_session()
    assert gateway.get_session() is None
    assert store.get_item(SESSION_KEY) is None


def test_projects_are_namespaced_per_email(gateway, make_brief):
    p = Project(id="p1", brief=make_brief(), start_time=1000.0)
    gateway.save_projects_for("a@x.com", [p])

    assert gateway.get_projects_for("a@x.com") == [p]
    assert gateway.get_projects_for("b@x.com") == []
    assert projects_key("a@x.com") == f"{PROJECTS_PREFIX}a@x.com"


def test_save_projects_overwrites_whole_list(gateway, make_brief):
    old = Project(id="p1", brief=make_brief("b1"), start_time=1000.0)
    new = Project(id="p2", brief=make_brief("b2"), start_time=2000.0)
    gateway.save_projects_for("a@x.com", [old])
    gateway.save_projects_for("a@x.com", [new])

    assert [p.id for p in gateway.get_projects_for("a@x.com")] == ["p2"]


def test_corrupt_values_fall_back_to_empty(make_brief):
    store = MemoryStore({
        USERS_KEY: "{not json",
        SESSION_KEY: json.dumps({"name": "no email"}),
        projects_key("a@x.com"): json.dumps([{"id": "p1"}]),
    })
    gateway = StorageGateway(store)

    assert gateway.list_registered_users() == []
    assert gateway.get_session() is None
    assert gateway.get_projects_for("a@x.com") == []


def test_register_repairs_corrupt_user_list():
    store = MemoryStore({USERS_KEY: "garbage"})
    gateway = StorageGateway(store)
    gateway.register_user(User(name="Sara", email="a@x.com"))

    assert [u.email for u in gateway.list_registered_users()] == ["a@x.com"]


def test_project_status_survives_persistence(gateway, make_brief):
    p = Project(id="p1", brief=make_brief(), start_time=1000.0, status=ProjectStatus.EXPIRED)
    gateway.save_projects_for("a@x.com", [p])
    assert gateway.get_projects_for("a@x.com")[0].status is ProjectStatus.EXPIRED


def test_json_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "store.json"
    JsonFileStore(path).set_item("k", "v")

    reopened = JsonFileStore(path)
    assert reopened.get_item("k") == "v"
    reopened.remove_item("k")
    assert JsonFileStore(path).get_item("k") is None
    assert not list(path.parent.glob(".store_*"))


def test_json_file_store_unreadable_file_is_empty(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("[1, 2", encoding="utf-8")
    store = JsonFileStore(path)

    assert store.get_item("k") is None
    store.set_item("k", "v")
    assert json.loads(path.read_text(encoding="utf-8")) == {"k": "v"}


def test_gateway_over_file_store(tmp_path):
    gateway = StorageGateway(JsonFileStore(tmp_path / "store.json"))
    user = gateway.register_user(User(name="سارة", email="a@x.com"))
    gateway.save_session(user)

    again = StorageGateway(JsonFileStore(tmp_path / "store.json"))
    assert again.get_session().name == "سارة"
