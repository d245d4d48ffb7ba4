import pytest
from datetime import datetime, timedelta, timezone

from app.schemas.assignment import Assignment, AssignmentCreate, AssignmentStatus, Submission, UserRef
from app.schemas.context import UserContext

# ------------------------- Fake repository -------------------------
class FakeAssignmentRepo:
    """Stessa semantica del repository Mongo, in memoria."""

    def __init__(self):
        self.items: dict[str, Assignment] = {}
        self.users: dict[str, UserRef] = {}

    async def create(self, assignment: Assignment) -> str:
        # NON genera ID: si aspetta assignment.assignmentId già valorizzato
        if not getattr(assignment, "assignmentId", None):
            raise ValueError("assignmentId must be set by the service")
        self.items[assignment.assignmentId] = assignment.model_copy(deep=True)
        return assignment.assignmentId

    def _sorted(self, items):
        return [a.model_copy(deep=True) for a in sorted(items, key=lambda a: a.createdAt, reverse=True)]

    async def find_for_teacher(self, teacher_id: str, status=None):
        return self._sorted(
            a for a in self.items.values()
            if a.teacherId == teacher_id and (status is None or a.status == status)
        )

    async def find_published(self):
        return self._sorted(a for a in self.items.values() if a.status == AssignmentStatus.published)

    async def find_one(self, assignment_id: str):
        a = self.items.get(assignment_id)
        return a.model_copy(deep=True) if a else None

    async def update(self, assignment: Assignment):
        stored = self.items.get(assignment.assignmentId)
        if stored is None:
            return None
        stored = stored.model_copy(update={
            "title": assignment.title,
            "description": assignment.description,
            "dueDate": assignment.dueDate,
            "status": assignment.status,
            "updatedAt": datetime.now(timezone.utc),
        })
        self.items[assignment.assignmentId] = stored
        return stored.model_copy(deep=True)

    async def delete(self, assignment_id: str):
        return self.items.pop(assignment_id, None) is not None

    async def add_submission(self, assignment_id: str, submission: Submission) -> bool:
        a = self.items.get(assignment_id)
        if (
            a is None
            or a.status != AssignmentStatus.published
            or a.dueDate < submission.submittedAt
            or a.submission_of(submission.studentId) is not None
        ):
            return False
        a.submissions.append(submission.model_copy())
        return True

    async def find_users(self, user_ids):
        return {u: self.users.get(u, UserRef(id=u)) for u in user_ids}


# ------------------------------- Fixtures -------------------------------------
@pytest.fixture
def repo():
    return FakeAssignmentRepo()

@pytest.fixture
def teacher():
    return UserContext(user_id="t1", role="teacher")

@pytest.fixture
def other_teacher():
    return UserContext(user_id="t2", role="teacher")

@pytest.fixture
def student():
    return UserContext(user_id="s1", role="student")

@pytest.fixture
def student2():
    return UserContext(user_id="s2", role="student")


def make_create(**overrides):
    future = datetime.now(timezone.utc) + timedelta(days=7)
    base = dict(
        title="Compito",
        description="Desc",
        dueDate=future,
    )
    base.update(overrides)
    return AssignmentCreate(**base)
