"""
Regole del ciclo di vita draft -> published -> completed.

Le transizioni ammesse in update sono tutte nella tabella TRANSITIONS:
la chiave e' (stato corrente, stato richiesto), dove None indica una
richiesta che non tocca lo status. Il valore e' None se l'update e'
ammesso, altrimenti il messaggio di errore.
"""
from datetime import datetime
from typing import Dict, Optional, Tuple

from app.core.errors import InvalidStateError
from app.schemas.assignment import Assignment, AssignmentStatus, as_utc
from app.schemas.context import Role, UserContext

DRAFT = AssignmentStatus.draft
PUBLISHED = AssignmentStatus.published
COMPLETED = AssignmentStatus.completed

PUBLISHED_EDIT = "Cannot edit published assignment"
COMPLETED_EDIT = "Cannot edit completed assignment"
NOT_DRAFT_DELETE = "Can only delete draft assignments"
NOT_AVAILABLE = "Assignment is not available for submission"
DEADLINE_PASSED = "Assignment submission deadline passed"
ALREADY_SUBMITTED = "You have already submitted this assignment"

TRANSITIONS: Dict[Tuple[AssignmentStatus, Optional[AssignmentStatus]], Optional[str]] = {
    (DRAFT, None): None,
    (DRAFT, DRAFT): None,
    (DRAFT, PUBLISHED): None,
    (DRAFT, COMPLETED): None,
    (PUBLISHED, None): PUBLISHED_EDIT,
    (PUBLISHED, DRAFT): PUBLISHED_EDIT,
    (PUBLISHED, PUBLISHED): PUBLISHED_EDIT,
    (PUBLISHED, COMPLETED): None,
    (COMPLETED, None): COMPLETED_EDIT,
    (COMPLETED, DRAFT): COMPLETED_EDIT,
    (COMPLETED, PUBLISHED): COMPLETED_EDIT,
    (COMPLETED, COMPLETED): COMPLETED_EDIT,
}


# ---- guard sui ruoli ----
def ensure_teacher(user: UserContext, action: str = "manage assignments") -> None:
    if user.role != Role.teacher:
        raise PermissionError(f"Only teachers can {action}")


def ensure_student(user: UserContext, action: str = "submit assignments") -> None:
    if user.role != Role.student:
        raise PermissionError(f"Only students can {action}")


def ensure_owner(user: UserContext, assignment: Assignment) -> None:
    ensure_teacher(user)
    if assignment.teacherId != user.user_id:
        raise PermissionError("Access denied")


# ---- guard sugli stati ----
def check_update(current: AssignmentStatus, requested: Optional[AssignmentStatus]) -> None:
    error = TRANSITIONS[(current, requested)]
    if error is not None:
        raise InvalidStateError(error)


def check_delete(current: AssignmentStatus) -> None:
    if current != DRAFT:
        raise InvalidStateError(NOT_DRAFT_DELETE)


def check_submission(assignment: Assignment, student_id: str, now: datetime) -> None:
    """Ordine fisso: status -> deadline -> duplicato."""
    if assignment.status != PUBLISHED:
        raise InvalidStateError(NOT_AVAILABLE)
    if as_utc(now) > assignment.dueDate:
        raise InvalidStateError(DEADLINE_PASSED)
    if assignment.submission_of(student_id) is not None:
        raise InvalidStateError(ALREADY_SUBMITTED)
