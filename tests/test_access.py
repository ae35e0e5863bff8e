import pytest

from taskhub.tasks.access import Action, Requester, TaskRef, can_view, decide, list_scope, permitted_actions

ADMIN = Requester(id=1, role="admin")
CREATOR = Requester(id=2, role="user")
ASSIGNEE = Requester(id=3, role="user")
STRANGER = Requester(id=4, role="user")

TASK = TaskRef(creator_id=2, assignee_id=3)


def test_list_always_allowed_but_view_is_filtered():
    assert decide(STRANGER, Action.LIST)
    assert can_view(ADMIN, TASK)
    assert can_view(CREATOR, TASK)
    assert can_view(ASSIGNEE, TASK)
    assert not can_view(STRANGER, TASK)


@pytest.mark.parametrize("requester, allowed", [(ADMIN, True), (CREATOR, True), (ASSIGNEE, True), (STRANGER, False)])
def test_read(requester, allowed):
    assert decide(requester, Action.READ, TASK).allowed is allowed


@pytest.mark.parametrize("requester, allowed", [(ADMIN, True), (CREATOR, True), (ASSIGNEE, False), (STRANGER, False)])
def test_update_and_delete_need_creator_or_admin(requester, allowed):
    assert decide(requester, Action.UPDATE, TASK).allowed is allowed
    assert decide(requester, Action.DELETE, TASK).allowed is allowed


@pytest.mark.parametrize("requester, allowed", [(ADMIN, True), (CREATOR, True), (ASSIGNEE, True), (STRANGER, False)])
def test_status_change_open_to_participants(requester, allowed):
    assert decide(requester, Action.CHANGE_STATUS, TASK).allowed is allowed


def test_create_self_assignment_only_for_regular_users():
    assert decide(CREATOR, Action.CREATE, assignee_id=CREATOR.id)
    denied = decide(CREATOR, Action.CREATE, assignee_id=ASSIGNEE.id)
    assert not denied
    assert denied.reason == "Regular users can only assign tasks to themselves"
    assert decide(ADMIN, Action.CREATE, assignee_id=ASSIGNEE.id)


def test_change_assignee_is_checked_independently_of_update():
    # the creator passes the general update check but still cannot hand the task off
    assert decide(CREATOR, Action.UPDATE, TASK)
    assert not decide(CREATOR, Action.CHANGE_ASSIGNEE, TASK, assignee_id=STRANGER.id)
    assert decide(CREATOR, Action.CHANGE_ASSIGNEE, TASK, assignee_id=CREATOR.id)
    assert decide(ADMIN, Action.CHANGE_ASSIGNEE, TASK, assignee_id=STRANGER.id)


def test_denials_carry_a_reason():
    decision = decide(STRANGER, Action.DELETE, TASK)
    assert decision.allowed is False
    assert decision.reason == "Not authorized to delete this task"


def test_task_required_for_task_scoped_actions():
    with pytest.raises(ValueError):
        decide(CREATOR, Action.READ)


def test_permitted_actions():
    assert permitted_actions(ASSIGNEE, TASK) == {
        "can_edit": False,
        "can_delete": False,
        "can_reassign": False,
        "can_update_status": True,
    }
    assert all(permitted_actions(ADMIN, TASK).values())
    assert permitted_actions(CREATOR, TASK)["can_reassign"] is False


def test_list_scope_narrows_regular_users_to_their_own_id():
    assert list_scope(ADMIN) is None
    assert list_scope(STRANGER) == STRANGER.id
