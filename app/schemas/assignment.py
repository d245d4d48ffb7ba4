from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime, timezone


def as_utc(value: datetime) -> datetime:
    # le date senza timezone sono considerate UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AssignmentStatus(str, Enum):
    draft = "draft"
    published = "published"
    completed = "completed"


class SubmissionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    answer: str = Field(..., min_length=1)


class Submission(BaseModel):
    studentId: str
    answer: str
    submittedAt: datetime
    reviewed: bool = False

    @field_validator("submittedAt")
    @classmethod
    def submitted_at_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class AssignmentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    dueDate: datetime

    @field_validator("dueDate")
    @classmethod
    def due_date_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class AssignmentUpdate(BaseModel):
    """Update parziale: None o stringa vuota significano "nessuna modifica"."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = None
    description: Optional[str] = None
    dueDate: Optional[datetime] = None
    status: Optional[AssignmentStatus] = None

    @field_validator("status", "dueDate", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("dueDate")
    @classmethod
    def due_date_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else None


class Assignment(AssignmentCreate):
    assignmentId: str
    teacherId: str
    status: AssignmentStatus = AssignmentStatus.draft
    submissions: List[Submission] = []
    createdAt: datetime
    updatedAt: Optional[datetime] = None

    def submission_of(self, student_id: str) -> Optional[Submission]:
        return next((s for s in self.submissions if s.studentId == student_id), None)


# ---- Read models (riferimenti popolati con nome/email) ----
class UserRef(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class SubmissionRead(BaseModel):
    student: UserRef
    answer: str
    submittedAt: datetime
    reviewed: bool = False


class AssignmentRead(BaseModel):
    assignmentId: str
    title: str
    description: str
    dueDate: datetime
    status: AssignmentStatus
    teacher: UserRef
    submissions: List[SubmissionRead] = []
    createdAt: datetime
    updatedAt: Optional[datetime] = None


# ---- Envelopes HTTP ----
class AssignmentResponse(BaseModel):
    message: Optional[str] = None
    assignment: AssignmentRead


class AssignmentListResponse(BaseModel):
    assignments: List[AssignmentRead]


class SubmissionResponse(BaseModel):
    submission: SubmissionRead


class MessageResponse(BaseModel):
    message: str
