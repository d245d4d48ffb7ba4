import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument

from app.database.mongo_assignment import MongoAssignmentRepository, build_filter
from app.schemas.assignment import Assignment, AssignmentStatus, Submission, UserRef

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class RecordingCursor:
    def __init__(self, docs, calls):
        self.docs = list(docs)
        self.calls = calls

    def sort(self, key, direction):
        self.calls.append(("sort", key, direction))
        return self

    def __aiter__(self):
        self._it = iter(self.docs)
        return self

    async def __anext__(self):
        try:
            return next(self._it)
        except StopIteration:
            raise StopAsyncIteration


class RecordingCollection:
    """Registra le chiamate al posto della collection motor."""
    def __init__(self, modified=1, docs=(), returned=None):
        self.calls = []
        self.modified = modified
        self.docs = docs
        self.returned = returned

    async def update_one(self, filt, update):
        self.calls.append(("update_one", filt, update))
        return SimpleNamespace(modified_count=self.modified)

    async def insert_one(self, doc):
        self.calls.append(("insert_one", doc))

    async def find_one_and_update(self, filt, update, return_document=None):
        self.calls.append(("find_one_and_update", filt, update, return_document))
        return self.returned

    def find(self, filt, projection=None):
        self.calls.append(("find", filt, projection))
        return RecordingCursor(self.docs, self.calls)


def _repo(col, users=None):
    return MongoAssignmentRepository({"assignments": col, "users": users})


def _doc(**overrides):
    d = dict(_id=ObjectId(), assignmentId="as-1", teacherId="t1", title="T", description="D",
             dueDate=NOW, status="published", submissions=[], createdAt=NOW, updatedAt=NOW)
    d.update(overrides)
    return d


def test_build_filter():
    assert build_filter() == {}
    assert build_filter(teacher_id="t1") == {"teacherId": "t1"}
    assert build_filter(teacher_id="t1", status="draft") == {"teacherId": "t1", "status": "draft"}
    assert build_filter(status=AssignmentStatus.published) == {"status": "published"}

def test_build_filter_rejects_unknown_status():
    with pytest.raises(ValueError):
        build_filter(status="archived")

@pytest.mark.asyncio
async def test_create_stores_plain_status_and_timestamps():
    col = RecordingCollection()
    a = Assignment(assignmentId="as-1", teacherId="t1", title="T", description="D",
                   dueDate=NOW, createdAt=NOW)
    assert await _repo(col).create(a) == "as-1"

    [(_, doc)] = col.calls
    assert doc["status"] == "draft"
    assert doc["createdAt"] == NOW
    assert doc["updatedAt"] is not None
    assert doc["submissions"] == []

@pytest.mark.asyncio
async def test_add_submission_is_conditional_append():
    col = RecordingCollection()
    sub = Submission(studentId="s1", answer="42", submittedAt=NOW)
    assert await _repo(col).add_submission("as-1", sub) is True

    [(_, filt, update)] = col.calls
    assert filt == {
        "assignmentId": "as-1",
        "status": "published",
        "dueDate": {"$gte": NOW},
        "submissions.studentId": {"$ne": "s1"},
    }
    assert update["$push"]["submissions"] == {
        "studentId": "s1", "answer": "42", "submittedAt": NOW, "reviewed": False,
    }

@pytest.mark.asyncio
async def test_add_submission_not_applied():
    sub = Submission(studentId="s1", answer="42", submittedAt=NOW)
    assert await _repo(RecordingCollection(modified=0)).add_submission("as-1", sub) is False

@pytest.mark.asyncio
async def test_update_sets_only_editable_fields():
    col = RecordingCollection(returned=_doc(status="completed", title="Chiuso"))
    sub = Submission(studentId="s1", answer="42", submittedAt=NOW)
    a = Assignment(assignmentId="as-1", teacherId="t1", title="Chiuso", description="D",
                   dueDate=NOW, status="completed", submissions=[sub], createdAt=NOW)

    saved = await _repo(col).update(a)
    assert saved.status == AssignmentStatus.completed

    [(_, filt, update, return_document)] = col.calls
    assert filt == {"assignmentId": "as-1"}
    assert return_document == ReturnDocument.AFTER
    assert set(update) == {"$set"}
    assert set(update["$set"]) == {"title", "description", "dueDate", "status", "updatedAt"}
    assert update["$set"]["status"] == "completed"
    assert update["$set"]["title"] == "Chiuso"

@pytest.mark.asyncio
async def test_update_missing_document():
    assert await _repo(RecordingCollection(returned=None)).update(
        Assignment(assignmentId="as-x", teacherId="t1", title="T", description="D",
                   dueDate=NOW, createdAt=NOW)
    ) is None

@pytest.mark.asyncio
async def test_find_for_teacher_sorted_newest_first():
    older = _doc(assignmentId="as-old", createdAt=NOW - timedelta(days=1))
    col = RecordingCollection(docs=[_doc(), older])

    items = await _repo(col).find_for_teacher("t1", AssignmentStatus.published)
    assert [a.assignmentId for a in items] == ["as-1", "as-old"]
    assert col.calls == [
        ("find", {"teacherId": "t1", "status": "published"}, None),
        ("sort", "createdAt", DESCENDING),
    ]

@pytest.mark.asyncio
async def test_find_published_sorted():
    col = RecordingCollection(docs=[_doc()])
    await _repo(col).find_published()
    assert col.calls == [("find", {"status": "published"}, None), ("sort", "createdAt", DESCENDING)]

@pytest.mark.asyncio
async def test_find_users_object_and_string_ids():
    oid = ObjectId()
    users = RecordingCollection(docs=[
        {"_id": oid, "name": "Prof", "email": "prof@scuola.it"},
        {"_id": "s1", "name": "Studente", "email": "s1@scuola.it"},
    ])

    found = await _repo(RecordingCollection(), users).find_users([str(oid), "s1", "ghost"])
    assert found[str(oid)] == UserRef(id=str(oid), name="Prof", email="prof@scuola.it")
    assert found["s1"].name == "Studente"
    assert found["ghost"] == UserRef(id="ghost")

    [(_, filt, projection)] = users.calls
    keys = filt["_id"]["$in"]
    assert oid in keys
    assert {str(oid), "s1", "ghost"} <= set(k for k in keys if isinstance(k, str))
    assert projection == {"name": 1, "email": 1}

@pytest.mark.asyncio
async def test_find_users_empty():
    users = RecordingCollection()
    assert await _repo(RecordingCollection(), users).find_users([]) == {}
    assert users.calls == []
