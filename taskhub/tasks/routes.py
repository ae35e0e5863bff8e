from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session
from taskhub.auth.deps import get_db, get_current_user
from taskhub.errors import ValidationError
from taskhub.models.task import Task
from taskhub.models.user import User
from taskhub.schemas.task import DeleteOut, StatusUpdate, TaskCreate, TaskOut, TaskPermissions, TaskUpdate
from taskhub.tasks import service
from taskhub.tasks.access import permitted_actions
from taskhub.uploads.storage import BlobStorage, get_storage, read_uploads

router = APIRouter(prefix="/tasks", tags=["tasks"])

REQUIRED_FORM_FIELDS = ("title", "description", "dueDate", "assignedTo")


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse(model, **fields):
    try:
        return model(**fields)
    except PydanticValidationError as exc:
        err = exc.errors()[0]
        field = to_camel(str(err["loc"][0])) if err.get("loc") else "body"
        raise ValidationError(f"Invalid {field}: {err['msg']}")


def to_out(task: Task, user: User) -> TaskOut:
    out = TaskOut.model_validate(task)
    out.permissions = TaskPermissions(**permitted_actions(service.requester_of(user), service.task_ref(task)))
    return out


@router.get("", response_model=list[TaskOut])
def list_tasks(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return [to_out(t, user) for t in service.list_tasks(db, user)]


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(
    title: str | None = Form(None),
    description: str | None = Form(None),
    due_date: str | None = Form(None, alias="dueDate"),
    assigned_to: str | None = Form(None, alias="assignedTo"),
    task_status: str | None = Form(None, alias="status"),
    priority: str | None = Form(None),
    documents: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    required = [_blank_to_none(v) for v in (title, description, due_date, assigned_to)]
    if not all(required):
        raise ValidationError("Missing required fields")

    fields = dict(
        title=title.strip(),
        description=description.strip(),
        due_date=due_date.strip(),
        assigned_to=assigned_to.strip(),
    )
    if _blank_to_none(task_status):
        fields["status"] = task_status.strip()
    if _blank_to_none(priority):
        fields["priority"] = priority.strip()
    data = _parse(TaskCreate, **fields)

    files = await read_uploads(documents)
    task = service.create_task(db, user, storage, data, files)
    return to_out(task, user)


@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return to_out(service.get_task(db, user, task_id), user)


@router.put("/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: int,
    request: Request,
    title: str | None = Form(None),
    description: str | None = Form(None),
    due_date: str | None = Form(None, alias="dueDate"),
    assigned_to: str | None = Form(None, alias="assignedTo"),
    task_status: str | None = Form(None, alias="status"),
    priority: str | None = Form(None),
    documents: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    # absent fields stay unchanged, but a required field cannot be cleared
    form = await request.form()
    blank = [k for k in REQUIRED_FORM_FIELDS if k in form and not str(form[k]).strip()]
    if blank:
        raise ValidationError(f"Required fields cannot be empty: {', '.join(blank)}")

    fields = {
        "title": _blank_to_none(title),
        "description": _blank_to_none(description),
        "due_date": _blank_to_none(due_date),
        "assigned_to": _blank_to_none(assigned_to),
        "status": _blank_to_none(task_status),
        "priority": _blank_to_none(priority),
    }
    data = _parse(TaskUpdate, **{k: v for k, v in fields.items() if v is not None})

    files = await read_uploads(documents)
    task = service.update_task(db, user, storage, task_id, data, files)
    return to_out(task, user)


@router.patch("/{task_id}/status", response_model=TaskOut)
def update_task_status(
    task_id: int,
    body: StatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return to_out(service.update_status(db, user, task_id, body.status), user)


@router.delete("/{task_id}", response_model=DeleteOut)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    service.delete_task(db, user, storage, task_id)
    return DeleteOut(message="Task deleted successfully")
