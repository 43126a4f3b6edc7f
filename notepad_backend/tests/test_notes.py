import pytest


def _category(call, name="Work", user="userA"):
    return call("createCategory", {"name": name}, user=user).json()["data"]["category"]


def _note(call, user="userA", **fields):
    payload = {"body": "buy milk", **fields}
    r = call("createNote", payload, user=user)
    assert r.status_code == 200, r.text
    return r.json()["data"]["note"]


def _list(call, user="userA", **filters):
    r = call("listNotes", filters, user=user)
    assert r.status_code == 200, r.text
    return r.json()["data"]


def test_scenario_category_note_pin_delete(call):
    category = _category(call, "Work")
    assert category["name"] == "Work"
    assert category["icon"] is None

    note = _note(call, categoryId=category["id"])
    assert note["categoryId"] == category["id"]

    listed = _list(call)
    assert listed["total"] == 1
    assert listed["items"][0]["id"] == note["id"]
    assert _list(call, pinnedOnly=True) == {"items": [], "total": 0}

    r = call("updateNote", {"id": note["id"], "isPinned": True})
    assert r.status_code == 200
    pinned = _list(call, pinnedOnly=True)
    assert [n["id"] for n in pinned["items"]] == [note["id"]]

    r = call("deleteNote", {"id": note["id"]})
    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert _list(call) == {"items": [], "total": 0}

    r = call("deleteNote", {"id": note["id"]})
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "NOT_FOUND"


def test_create_note_defaults(call):
    note = _note(call)
    assert note["userId"] == "userA"
    assert note["categoryId"] is None
    assert note["title"] is None
    assert note["color"] is None
    assert note["isPinned"] is False
    assert note["isArchived"] is False
    assert note["createdAt"] == note["updatedAt"]


def test_create_note_ids_are_unique(call):
    ids = {_note(call, body=f"note {i}")["id"] for i in range(5)}
    assert len(ids) == 5


@pytest.mark.parametrize("payload", [{}, {"body": ""}, {"body": None}, {"body": "x", "isPinned": "maybe"}])
def test_create_note_validation(call, payload):
    r = call("createNote", payload)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "BAD_REQUEST"


def test_create_note_with_unknown_category_is_not_found(call):
    r = call("createNote", {"body": "x", "categoryId": "nope"})
    assert r.status_code == 404
    assert r.json()["error"]["message"] == "Category not found."


def test_create_note_with_foreign_category_fails_without_write(call):
    foreign = _category(call, "B's", user="userB")

    r = call("createNote", {"body": "x", "categoryId": foreign["id"]}, user="userA")
    assert r.status_code == 404
    assert _list(call, user="userA", includeArchived=True)["total"] == 0


def test_get_note_is_owner_scoped(call):
    note = _note(call, title="Groceries")

    r = call("getNote", {"id": note["id"]})
    assert r.status_code == 200
    assert r.json()["data"]["note"]["title"] == "Groceries"

    assert call("getNote", {"id": note["id"]}, user="userB").status_code == 404


def test_update_note_applies_only_provided_fields(call):
    note = _note(call, title="t", color="#FFF7C2")

    r = call("updateNote", {"id": note["id"], "body": "buy oat milk"})
    assert r.status_code == 200
    updated = r.json()["data"]["note"]
    assert updated["body"] == "buy oat milk"
    assert updated["title"] == "t"
    assert updated["color"] == "#FFF7C2"
    assert updated["createdAt"] == note["createdAt"]


def test_update_note_twice_yields_same_fields(call):
    note = _note(call)
    patch = {"id": note["id"], "title": "Shopping", "isArchived": True}

    first = call("updateNote", patch).json()["data"]["note"]
    second = call("updateNote", patch).json()["data"]["note"]

    first.pop("updatedAt")
    second.pop("updatedAt")
    assert first == second


def test_update_note_requires_a_field(call):
    note = _note(call)
    r = call("updateNote", {"id": note["id"]})
    assert r.status_code == 400


@pytest.mark.parametrize("field", ["body", "isPinned", "isArchived"])
def test_update_note_rejects_null_for_required_fields(call, field):
    note = _note(call)
    r = call("updateNote", {"id": note["id"], field: None})
    assert r.status_code == 400


def test_update_note_moves_between_categories_and_clears(call):
    work = _category(call, "Work")
    home = _category(call, "Home")
    note = _note(call, categoryId=work["id"], title="t")

    moved = call("updateNote", {"id": note["id"], "categoryId": home["id"]}).json()["data"]["note"]
    assert moved["categoryId"] == home["id"]

    cleared = call("updateNote", {"id": note["id"], "categoryId": None, "title": None}).json()["data"]["note"]
    assert cleared["categoryId"] is None
    assert cleared["title"] is None


def test_update_note_with_foreign_category_fails_without_write(call):
    mine = _category(call, "Work")
    foreign = _category(call, "Other", user="userB")
    note = _note(call, categoryId=mine["id"])

    r = call("updateNote", {"id": note["id"], "categoryId": foreign["id"], "title": "changed"})
    assert r.status_code == 404

    unchanged = call("getNote", {"id": note["id"]}).json()["data"]["note"]
    assert unchanged["categoryId"] == mine["id"]
    assert unchanged["title"] is None


def test_other_user_cannot_update_or_delete(call):
    note = _note(call)

    assert call("updateNote", {"id": note["id"], "body": "hijack"}, user="userB").status_code == 404
    assert call("deleteNote", {"id": note["id"]}, user="userB").status_code == 404

    still = call("getNote", {"id": note["id"]}).json()["data"]["note"]
    assert still["body"] == "buy milk"


def test_archived_and_pinned_are_independent(call):
    note = _note(call)
    r = call("updateNote", {"id": note["id"], "isArchived": True, "isPinned": True})
    assert r.status_code == 200
    updated = r.json()["data"]["note"]
    assert updated["isArchived"] is True
    assert updated["isPinned"] is True


def test_list_notes_hides_archived_by_default(call):
    active = _note(call, body="active")
    archived = _note(call, body="old", isArchived=True)

    default = _list(call)
    assert [n["id"] for n in default["items"]] == [active["id"]]

    everything = _list(call, includeArchived=True)
    assert {n["id"] for n in everything["items"]} == {active["id"], archived["id"]}
    assert everything["total"] == 2


def test_list_notes_pinned_only_intersects_other_filters(call):
    work = _category(call, "Work")
    pinned_work = _note(call, body="a", categoryId=work["id"], isPinned=True)
    _note(call, body="b", categoryId=work["id"])
    _note(call, body="c", isPinned=True)
    pinned_archived = _note(call, body="d", categoryId=work["id"], isPinned=True, isArchived=True)

    data = _list(call, categoryId=work["id"], pinnedOnly=True)
    assert [n["id"] for n in data["items"]] == [pinned_work["id"]]

    data = _list(call, categoryId=work["id"], pinnedOnly=True, includeArchived=True)
    assert {n["id"] for n in data["items"]} == {pinned_work["id"], pinned_archived["id"]}


def test_list_notes_by_category(call):
    work = _category(call, "Work")
    in_work = _note(call, body="a", categoryId=work["id"])
    _note(call, body="b")

    data = _list(call, categoryId=work["id"])
    assert [n["id"] for n in data["items"]] == [in_work["id"]]


def test_list_notes_empty_category_means_no_filter(call):
    work = _category(call, "Work")
    _note(call, body="a", categoryId=work["id"])
    _note(call, body="b")

    assert _list(call, categoryId="")["total"] == 2


def test_list_notes_with_foreign_category_fails(call):
    foreign = _category(call, "Other", user="userB")
    _note(call, user="userB", categoryId=foreign["id"])

    r = call("listNotes", {"categoryId": foreign["id"]}, user="userA")
    assert r.status_code == 404


def test_list_notes_is_scoped_to_owner(call):
    _note(call, user="userA", body="mine")
    _note(call, user="userB", body="theirs")

    data = _list(call, user="userA")
    assert [n["body"] for n in data["items"]] == ["mine"]


def test_list_notes_without_payload(call):
    _note(call)
    r = call("listNotes")
    assert r.status_code == 200
    assert r.json()["data"]["total"] == 1
