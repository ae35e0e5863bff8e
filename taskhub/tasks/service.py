import logging
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from taskhub.errors import AuthorizationError, NotFoundError, StoreError
from taskhub.models.task import Task, TaskDocument
from taskhub.models.user import User
from taskhub.schemas.task import TaskCreate, TaskUpdate
from taskhub.tasks.access import Action, Decision, Requester, TaskRef, can_view, decide, list_scope
from taskhub.uploads.storage import BlobStorage, IncomingFile, StoredFile, discard, store_all, validate_uploads

logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found"


def requester_of(user: User) -> Requester:
    return Requester(id=user.id, role=user.role)


def task_ref(task: Task) -> TaskRef:
    return TaskRef(creator_id=task.created_by_id, assignee_id=task.assigned_to_id)


def _enforce(decision: Decision, user: User, action: Action, task_id: int | None = None) -> None:
    if not decision.allowed:
        logger.info("denied %s on task %s for user %s", action.value, task_id, user.id)
        raise AuthorizationError(decision.reason)


def _query(db: Session):
    return db.query(Task).options(
        selectinload(Task.documents),
        selectinload(Task.created_by),
        selectinload(Task.assigned_to),
    )


def _load(db: Session, task_id: int) -> Task:
    task = _query(db).filter(Task.id == task_id).first()
    if task is None:
        raise NotFoundError(TASK_NOT_FOUND)
    return task


def _ensure_user_exists(db: Session, user_id: int) -> None:
    if db.get(User, user_id) is None:
        raise NotFoundError("Assigned user not found")


def _attach(task: Task, stored: list[StoredFile]) -> None:
    position = len(task.documents)
    for s in stored:
        task.documents.append(
            TaskDocument(filename=s.filename, path=s.path, original_name=s.original_name, position=position)
        )
        position += 1


def _commit(db: Session, storage: BlobStorage | None = None, stored: list[StoredFile] | None = None) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        logger.exception("task store write failed")
        db.rollback()
        if storage is not None and stored:
            discard(storage, stored)
        raise StoreError() from exc


def list_tasks(db: Session, user: User) -> list[Task]:
    requester = requester_of(user)
    _enforce(decide(requester, Action.LIST), user, Action.LIST)
    q = _query(db)
    participant_id = list_scope(requester)
    if participant_id is not None:
        q = q.filter(or_(Task.created_by_id == participant_id, Task.assigned_to_id == participant_id))
    rows = q.order_by(Task.created_at.desc(), Task.id.desc()).all()
    return [t for t in rows if can_view(requester, task_ref(t))]


def get_task(db: Session, user: User, task_id: int) -> Task:
    task = _load(db, task_id)
    _enforce(decide(requester_of(user), Action.READ, task_ref(task)), user, Action.READ, task_id)
    return task


def create_task(
    db: Session,
    user: User,
    storage: BlobStorage,
    data: TaskCreate,
    files: list[IncomingFile] | None = None,
) -> Task:
    files = files or []
    _enforce(
        decide(requester_of(user), Action.CREATE, assignee_id=data.assigned_to),
        user,
        Action.CREATE,
    )
    _ensure_user_exists(db, data.assigned_to)
    validate_uploads(files)

    stored = store_all(storage, files)
    task = Task(
        title=data.title,
        description=data.description,
        status=data.status,
        priority=data.priority,
        due_date=data.due_date,
        assigned_to_id=data.assigned_to,
        created_by_id=user.id,
    )
    _attach(task, stored)
    db.add(task)
    _commit(db, storage, stored)
    logger.info("task %s created by user %s with %d document(s)", task.id, user.id, len(stored))
    return _load(db, task.id)


def update_task(
    db: Session,
    user: User,
    storage: BlobStorage,
    task_id: int,
    data: TaskUpdate,
    files: list[IncomingFile] | None = None,
) -> Task:
    files = files or []
    task = _load(db, task_id)
    requester = requester_of(user)

    _enforce(decide(requester, Action.UPDATE, task_ref(task)), user, Action.UPDATE, task_id)
    changes = data.model_dump(exclude_none=True)
    if "assigned_to" in changes:
        _enforce(
            decide(requester, Action.CHANGE_ASSIGNEE, task_ref(task), assignee_id=changes["assigned_to"]),
            user,
            Action.CHANGE_ASSIGNEE,
            task_id,
        )
        if changes["assigned_to"] != task.assigned_to_id:
            _ensure_user_exists(db, changes["assigned_to"])
    validate_uploads(files)

    stored = store_all(storage, files)
    for field, value in changes.items():
        if field == "assigned_to":
            task.assigned_to_id = value
        else:
            setattr(task, field, value)
    _attach(task, stored)
    _commit(db, storage, stored)
    logger.info("task %s updated by user %s (%s)", task_id, user.id, ", ".join(sorted(changes)) or "documents")
    return _load(db, task_id)


def update_status(db: Session, user: User, task_id: int, status: str) -> Task:
    task = _load(db, task_id)
    _enforce(decide(requester_of(user), Action.CHANGE_STATUS, task_ref(task)), user, Action.CHANGE_STATUS, task_id)
    task.status = status
    _commit(db)
    logger.info("task %s status set to %s by user %s", task_id, status, user.id)
    return _load(db, task_id)


def delete_task(db: Session, user: User, storage: BlobStorage, task_id: int) -> None:
    task = _load(db, task_id)
    _enforce(decide(requester_of(user), Action.DELETE, task_ref(task)), user, Action.DELETE, task_id)
    filenames = [d.filename for d in task.documents]
    db.delete(task)
    _commit(db)
    for name in filenames:
        try:
            storage.delete(name)
        except OSError:
            logger.warning("could not remove %s of deleted task %s", name, task_id, exc_info=True)
    logger.info("task %s deleted by user %s", task_id, user.id)
