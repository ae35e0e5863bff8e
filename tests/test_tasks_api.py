from taskhub.models.task import Task
from taskhub.tasks import service
from taskhub.tasks.access import can_view

from conftest import auth, task_form


def test_create_then_read_round_trip_uses_defaults(client, alice, create_task):
    created = create_task(alice)
    r = client.get(f"/tasks/{created['id']}", headers=auth(alice))
    assert r.status_code == 200
    task = r.json()
    assert task["title"] == "T"
    assert task["description"] == "D"
    assert task["dueDate"] == "2025-01-01"
    assert task["status"] == "pending"
    assert task["priority"] == "medium"
    assert task["documents"] == []
    assert task["createdBy"] == {"id": alice.id, "email": alice.email}
    assert task["assignedTo"] == {"id": alice.id, "email": alice.email}
    assert task["permissions"] == {
        "canEdit": True,
        "canDelete": True,
        "canReassign": False,
        "canUpdateStatus": True,
    }


def test_create_missing_fields(client, alice):
    form = task_form(alice.id)
    del form["dueDate"]
    r = client.post("/tasks", headers=auth(alice), data=form)
    assert r.status_code == 400
    assert r.json()["detail"] == "Missing required fields"


def test_create_rejects_bad_enum_and_date(client, alice):
    r = client.post("/tasks", headers=auth(alice), data=task_form(alice.id, status="done"))
    assert r.status_code == 400
    r = client.post("/tasks", headers=auth(alice), data=task_form(alice.id, dueDate="someday"))
    assert r.status_code == 400


def test_regular_user_cannot_assign_others_on_create(client, db, alice, bob):
    r = client.post("/tasks", headers=auth(alice), data=task_form(bob.id))
    assert r.status_code == 403
    assert r.json()["detail"] == "Regular users can only assign tasks to themselves"
    assert db.query(Task).count() == 0


def test_admin_can_assign_anyone_but_not_unknown_users(client, admin, bob, create_task):
    task = create_task(admin, assignee=bob, priority="high", status="in-progress")
    assert task["assignedTo"]["id"] == bob.id
    assert task["createdBy"]["id"] == admin.id
    assert task["priority"] == "high"
    assert task["status"] == "in-progress"

    r = client.post("/tasks", headers=auth(admin), data=task_form(9999))
    assert r.status_code == 404


def test_list_is_filtered_for_regular_users(client, make_user, admin, alice, bob, create_task):
    carol = make_user("carol@example.com")
    own = create_task(alice)
    assigned = create_task(admin, assignee=alice)
    foreign = create_task(bob)
    create_task(admin, assignee=carol)

    ids = {t["id"] for t in client.get("/tasks", headers=auth(alice)).json()}
    assert ids == {own["id"], assigned["id"]}
    assert foreign["id"] not in ids

    all_ids = {t["id"] for t in client.get("/tasks", headers=auth(admin)).json()}
    assert len(all_ids) == 4


def test_read_permissions(client, admin, alice, bob, create_task):
    task = create_task(alice)
    assert client.get(f"/tasks/{task['id']}", headers=auth(admin)).status_code == 200
    r = client.get(f"/tasks/{task['id']}", headers=auth(bob))
    assert r.status_code == 403
    assert r.json()["detail"] == "Not authorized to view this task"


def test_unknown_task_is_404_for_everyone(client, admin, alice):
    for user in (admin, alice):
        headers = auth(user)
        assert client.get("/tasks/999", headers=headers).status_code == 404
        assert client.put("/tasks/999", headers=headers, data={"title": "x"}).status_code == 404
        assert client.delete("/tasks/999", headers=headers).status_code == 404
        assert client.patch("/tasks/999/status", headers=headers, json={"status": "completed"}).status_code == 404


def test_creator_updates_general_fields(client, alice, create_task):
    task = create_task(alice)
    r = client.put(
        f"/tasks/{task['id']}",
        headers=auth(alice),
        data={"title": "Renamed", "priority": "low", "assignedTo": str(alice.id)},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "Renamed"
    assert body["priority"] == "low"
    assert body["description"] == "D"
    assert body["assignedTo"]["id"] == alice.id


def test_assignee_cannot_update_general_fields(client, admin, alice, create_task):
    task = create_task(admin, assignee=alice)
    r = client.put(f"/tasks/{task['id']}", headers=auth(alice), data={"title": "mine now"})
    assert r.status_code == 403
    assert r.json()["detail"] == "Not authorized to update this task"


def test_regular_user_cannot_reassign(client, db, alice, bob, create_task):
    task = create_task(alice)
    r = client.put(
        f"/tasks/{task['id']}",
        headers=auth(alice),
        data={"title": "sneaky", "assignedTo": str(bob.id)},
    )
    assert r.status_code == 403

    stored = db.get(Task, task["id"])
    assert stored.assigned_to_id == alice.id
    assert stored.title == "T"


def test_admin_updates_and_reassigns_any_task(client, admin, alice, bob, create_task):
    task = create_task(alice)
    r = client.put(
        f"/tasks/{task['id']}",
        headers=auth(admin),
        data={"assignedTo": str(bob.id), "status": "completed"},
    )
    assert r.status_code == 200
    assert r.json()["assignedTo"]["id"] == bob.id
    assert r.json()["createdBy"]["id"] == alice.id
    assert r.json()["status"] == "completed"

    # bob can now see it but not edit it
    seen = client.get(f"/tasks/{task['id']}", headers=auth(bob)).json()
    assert seen["permissions"]["canEdit"] is False
    assert seen["permissions"]["canUpdateStatus"] is True


def test_status_patch_allowed_for_assignee(client, admin, alice, bob, create_task):
    task = create_task(admin, assignee=alice)
    r = client.patch(f"/tasks/{task['id']}/status", headers=auth(alice), json={"status": "in-progress"})
    assert r.status_code == 200
    assert r.json()["status"] == "in-progress"

    r = client.patch(f"/tasks/{task['id']}/status", headers=auth(bob), json={"status": "completed"})
    assert r.status_code == 403

    r = client.patch(f"/tasks/{task['id']}/status", headers=auth(alice), json={"status": "archived"})
    assert r.status_code == 400


def test_delete_rules(client, db, admin, alice, bob, create_task):
    task = create_task(alice)
    r = client.delete(f"/tasks/{task['id']}", headers=auth(bob))
    assert r.status_code == 403
    assert db.get(Task, task["id"]) is not None

    r = client.delete(f"/tasks/{task['id']}", headers=auth(alice))
    assert r.status_code == 200
    assert r.json() == {"message": "Task deleted successfully"}

    other = create_task(bob)
    assert client.delete(f"/tasks/{other['id']}", headers=auth(admin)).status_code == 200
    db.expire_all()
    assert db.query(Task).count() == 0


def test_list_agrees_with_view_rule_for_every_user(client, db, make_user, admin, alice, bob, create_task):
    carol = make_user("carol@example.com")
    create_task(alice)
    create_task(bob)
    create_task(admin, assignee=alice)
    create_task(admin, assignee=carol)
    create_task(admin)

    db.expire_all()
    everything = db.query(Task).all()
    for user in (admin, alice, bob, carol):
        requester = service.requester_of(user)
        expected = {t.id for t in everything if can_view(requester, service.task_ref(t))}
        listed = {t["id"] for t in client.get("/tasks", headers=auth(user)).json()}
        assert listed == expected, user.email


def test_creator_can_take_back_a_reassigned_task(client, admin, alice, bob, create_task):
    task = create_task(alice)
    r = client.put(f"/tasks/{task['id']}", headers=auth(admin), data={"assignedTo": str(bob.id)})
    assert r.json()["assignedTo"]["id"] == bob.id

    r = client.put(f"/tasks/{task['id']}", headers=auth(alice), data={"assignedTo": str(alice.id)})
    assert r.status_code == 200
    assert r.json()["assignedTo"]["id"] == alice.id


def test_update_rejects_clearing_required_fields(client, db, alice, create_task):
    task = create_task(alice)
    for field in ("title", "description", "dueDate", "assignedTo"):
        r = client.put(f"/tasks/{task['id']}", headers=auth(alice), data={field: "   "})
        assert r.status_code == 400, field
        assert field in r.json()["detail"]

    r = client.put(f"/tasks/{task['id']}", headers=auth(alice), data={"title": ""})
    assert r.status_code == 400
    assert db.get(Task, task["id"]).title == "T"
