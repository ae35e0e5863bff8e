from datetime import date, datetime
from pydantic import BaseModel, Field, computed_field
from pydantic.alias_generators import to_camel
from taskhub.config import settings
from taskhub.models.task import TaskPriority, TaskStatus


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class UserRef(CamelModel):
    id: int
    email: str


class DocumentOut(CamelModel):
    filename: str
    path: str
    original_name: str | None = ""

    @computed_field
    @property
    def url(self) -> str:
        return f"{settings.uploads_url_prefix}/{self.filename}"


class TaskPermissions(CamelModel):
    can_edit: bool = False
    can_delete: bool = False
    can_reassign: bool = False
    can_update_status: bool = False


class TaskOut(CamelModel):
    id: int
    title: str
    description: str
    status: str
    priority: str
    due_date: date
    assigned_to: UserRef
    created_by: UserRef
    documents: list[DocumentOut] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None
    permissions: TaskPermissions = TaskPermissions()


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    due_date: date
    assigned_to: int
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"


class TaskUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    due_date: date | None = None
    assigned_to: int | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None


class StatusUpdate(BaseModel):
    status: TaskStatus


class DeleteOut(BaseModel):
    message: str
