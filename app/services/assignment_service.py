import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Sequence, Optional
from app.core.errors import AssignmentNotFoundError, InvalidStateError, SubmissionNotFoundError
from app.schemas.assignment import (
    Assignment,
    AssignmentCreate,
    AssignmentRead,
    AssignmentStatus,
    AssignmentUpdate,
    Submission,
    SubmissionCreate,
    SubmissionRead,
    UserRef,
)
from app.schemas.context import UserContext
from app.database.assignment_repo import AssignmentRepo
from app.services import lifecycle

logger = logging.getLogger(__name__)

def create_assignment_id() -> str:
    return f"as-{uuid.uuid4().hex}"

def _now() -> datetime:
    return datetime.now(timezone.utc)

class AssignmentService:

    @staticmethod
    async def _load(assignment_id: str, repo: AssignmentRepo) -> Assignment:
        doc = await repo.find_one(assignment_id)
        if doc is None:
            raise AssignmentNotFoundError()
        return doc

    @staticmethod
    async def create_assignment(
        data: AssignmentCreate,
        user: UserContext,
        repo: AssignmentRepo
    ) -> Assignment:
        lifecycle.ensure_teacher(user, "create assignments")

        now = _now()
        assignment = Assignment(
            assignmentId=create_assignment_id(),
            teacherId=str(user.user_id),
            status=AssignmentStatus.draft,
            submissions=[],
            createdAt=now,
            updatedAt=now,
            **data.model_dump(),
        )

        inserted_id = await repo.create(assignment)
        if not inserted_id:
            raise RuntimeError("Creazione assignment fallita")

        logger.info("Assignment %s creato da %s", inserted_id, user.user_id)
        return assignment

    @staticmethod
    async def list_teacher_assignments(
        user: UserContext,
        repo: AssignmentRepo,
        status: Optional[str] = None,
    ) -> Sequence[Assignment]:
        lifecycle.ensure_teacher(user, "list their assignments")
        if not status:
            return await repo.find_for_teacher(user.user_id)
        try:
            wanted = AssignmentStatus(status)
        except ValueError:
            # status sconosciuto: nessun assignment corrisponde al filtro
            return []
        return await repo.find_for_teacher(user.user_id, wanted)

    @staticmethod
    async def list_student_assignments(user: UserContext, repo: AssignmentRepo) -> Sequence[Assignment]:
        lifecycle.ensure_student(user, "list published assignments")
        return await repo.find_published()

    @staticmethod
    async def get_assignment(assignment_id: str, user: UserContext, repo: AssignmentRepo) -> Assignment:
        # qualunque utente autenticato può leggere un singolo assignment
        return await AssignmentService._load(assignment_id, repo)

    @staticmethod
    async def update_assignment(
        assignment_id: str,
        data: AssignmentUpdate,
        user: UserContext,
        repo: AssignmentRepo,
    ) -> Assignment:
        lifecycle.ensure_teacher(user, "update assignments")
        current = await AssignmentService._load(assignment_id, repo)
        lifecycle.ensure_owner(user, current)
        lifecycle.check_update(current.status, data.status)

        # campi assenti o vuoti mantengono il valore precedente
        updated = current.model_copy(update={
            "title": data.title or current.title,
            "description": data.description or current.description,
            "dueDate": data.dueDate or current.dueDate,
            "status": data.status or current.status,
        })

        saved = await repo.update(updated)
        if saved is None:
            raise AssignmentNotFoundError()

        if saved.status != current.status:
            logger.info("Assignment %s: %s -> %s", assignment_id, current.status.value, saved.status.value)
        return saved

    @staticmethod
    async def delete_assignment(assignment_id: str, user: UserContext, repo: AssignmentRepo) -> None:
        lifecycle.ensure_teacher(user, "delete assignments")
        current = await AssignmentService._load(assignment_id, repo)
        lifecycle.ensure_owner(user, current)
        lifecycle.check_delete(current.status)

        if not await repo.delete(assignment_id):
            raise AssignmentNotFoundError()
        logger.info("Assignment %s cancellato da %s", assignment_id, user.user_id)

    @staticmethod
    async def submit_assignment(
        assignment_id: str,
        data: SubmissionCreate,
        user: UserContext,
        repo: AssignmentRepo,
        now: Optional[datetime] = None,
    ) -> Assignment:
        lifecycle.ensure_student(user)
        now = now or _now()

        current = await AssignmentService._load(assignment_id, repo)
        lifecycle.check_submission(current, user.user_id, now)

        submission = Submission(studentId=str(user.user_id), answer=data.answer, submittedAt=now)
        if not await repo.add_submission(assignment_id, submission):
            # il documento è cambiato tra il controllo e la scrittura: ricontrollo per l'errore giusto
            latest = await AssignmentService._load(assignment_id, repo)
            lifecycle.check_submission(latest, user.user_id, now)
            raise InvalidStateError(lifecycle.ALREADY_SUBMITTED)

        logger.info("Submission di %s su assignment %s", user.user_id, assignment_id)
        return await AssignmentService._load(assignment_id, repo)

    @staticmethod
    async def get_own_submission(assignment_id: str, user: UserContext, repo: AssignmentRepo) -> Submission:
        lifecycle.ensure_student(user, "view their submissions")
        current = await AssignmentService._load(assignment_id, repo)
        submission = current.submission_of(user.user_id)
        if submission is None:
            raise SubmissionNotFoundError()
        return submission

    # ---- popolamento dei riferimenti (teacher, submissions.student) ----

    @staticmethod
    def _read_submission(s: Submission, users: dict) -> SubmissionRead:
        return SubmissionRead(
            student=users.get(s.studentId) or UserRef(id=s.studentId),
            answer=s.answer,
            submittedAt=s.submittedAt,
            reviewed=s.reviewed,
        )

    @staticmethod
    async def expand(assignments: Iterable[Assignment], repo: AssignmentRepo) -> List[AssignmentRead]:
        items = list(assignments)
        ids = {a.teacherId for a in items}
        ids.update(s.studentId for a in items for s in a.submissions)
        users = await repo.find_users(ids)

        return [
            AssignmentRead(
                assignmentId=a.assignmentId,
                title=a.title,
                description=a.description,
                dueDate=a.dueDate,
                status=a.status,
                teacher=users.get(a.teacherId) or UserRef(id=a.teacherId),
                submissions=[AssignmentService._read_submission(s, users) for s in a.submissions],
                createdAt=a.createdAt,
                updatedAt=a.updatedAt,
            )
            for a in items
        ]

    @staticmethod
    async def expand_submission(submission: Submission, repo: AssignmentRepo) -> SubmissionRead:
        users = await repo.find_users([submission.studentId])
        return AssignmentService._read_submission(submission, users)
