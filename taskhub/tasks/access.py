"""Task access control.

A single decision table answers "may this requester perform this action on
this task?". It knows nothing about HTTP or the database: callers resolve the
requester from a verified token, fetch the task snapshot, and ask ``decide``.

Rules:

* ``LIST``            always allowed; ``can_view`` narrows the rows.
* ``READ``            admin, creator or assignee.
* ``CREATE``          anyone; a non-admin must assign the task to themselves.
* ``UPDATE``          admin or creator.
* ``CHANGE_ASSIGNEE`` admin may pick anyone; others may only resubmit themselves.
* ``DELETE``          admin or creator.
* ``CHANGE_STATUS``   admin, creator or assignee.

``UPDATE`` and ``CHANGE_ASSIGNEE`` are independent checks; an update that
touches the assignee has to pass both.
"""
from dataclasses import dataclass
from enum import Enum

from taskhub.models.user import ROLE_ADMIN as ADMIN


class Action(str, Enum):
    LIST = "list"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    CHANGE_ASSIGNEE = "change_assignee"
    DELETE = "delete"
    CHANGE_STATUS = "change_status"


@dataclass(frozen=True)
class Requester:
    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


@dataclass(frozen=True)
class TaskRef:
    creator_id: int
    assignee_id: int


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)

DENY_REASONS = {
    Action.READ: "Not authorized to view this task",
    Action.CREATE: "Regular users can only assign tasks to themselves",
    Action.UPDATE: "Not authorized to update this task",
    Action.CHANGE_ASSIGNEE: "Regular users can only assign tasks to themselves",
    Action.DELETE: "Not authorized to delete this task",
    Action.CHANGE_STATUS: "Not authorized to change the status of this task",
}


def _deny(action: Action) -> Decision:
    return Decision(False, DENY_REASONS[action])


def is_creator(requester: Requester, task: TaskRef) -> bool:
    return requester.id == task.creator_id


def is_participant(requester: Requester, task: TaskRef) -> bool:
    return requester.id in (task.creator_id, task.assignee_id)


def can_view(requester: Requester, task: TaskRef) -> bool:
    return requester.is_admin or is_participant(requester, task)


def list_scope(requester: Requester) -> int | None:
    """Participant id a listing must be narrowed to, or None for every task.

    Stores use it to push the ``can_view`` rule into their query; rows they
    return are still passed through ``can_view``.
    """
    return None if requester.is_admin else requester.id


def decide(
    requester: Requester,
    action: Action,
    task: TaskRef | None = None,
    assignee_id: int | None = None,
) -> Decision:
    """Return the decision for ``requester`` performing ``action``.

    ``task`` is required for READ, UPDATE, DELETE and CHANGE_STATUS.
    ``assignee_id`` is the requested assignee for CREATE and CHANGE_ASSIGNEE.
    """
    if action is Action.LIST:
        return ALLOW

    if action in (Action.CREATE, Action.CHANGE_ASSIGNEE):
        if requester.is_admin or assignee_id == requester.id:
            return ALLOW
        return _deny(action)

    if task is None:
        raise ValueError(f"{action.value} needs a task to decide on")

    if requester.is_admin:
        return ALLOW

    if action is Action.READ or action is Action.CHANGE_STATUS:
        allowed = is_participant(requester, task)
    elif action is Action.UPDATE or action is Action.DELETE:
        allowed = is_creator(requester, task)
    else:
        raise ValueError(f"unknown action {action!r}")

    return ALLOW if allowed else _deny(action)


def permitted_actions(requester: Requester, task: TaskRef) -> dict[str, bool]:
    """Flags the client uses to show or hide edit controls for a task."""
    return {
        "can_edit": decide(requester, Action.UPDATE, task).allowed,
        "can_delete": decide(requester, Action.DELETE, task).allowed,
        "can_reassign": requester.is_admin,
        "can_update_status": decide(requester, Action.CHANGE_STATUS, task).allowed,
    }
