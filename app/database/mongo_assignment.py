# app/database/mongo_assignment.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Sequence, Optional, List
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from app.database.assignment_repo import AssignmentRepo
from app.schemas.assignment import Assignment, AssignmentStatus, Submission, UserRef

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "dueDate", "status")


def build_filter(
    teacher_id: Optional[str] = None,
    status: Optional[AssignmentStatus] = None,
) -> Dict[str, Any]:
    filt: Dict[str, Any] = {}
    if teacher_id is not None:
        filt["teacherId"] = str(teacher_id)
    if status is not None:
        filt["status"] = AssignmentStatus(status).value
    return filt


class MongoAssignmentRepository(AssignmentRepo):
    def __init__(self, db: AsyncIOMotorDatabase):
        self.col = db["assignments"]
        self.users = db["users"]

    def _from_doc(self, d: dict) -> Assignment:
        base = {k: v for k, v in d.items() if k not in {"_id"}}
        return Assignment(**base)

    def _to_doc_from_model(self, a: Assignment) -> dict:
        doc = a.model_dump(mode="python")
        doc["status"] = a.status.value

        now = datetime.now(timezone.utc)
        doc.setdefault("createdAt", now)
        doc["updatedAt"] = doc.get("updatedAt") or now
        return doc

    async def create(self, assignment: Assignment) -> str:
        """
        Inserisce un Assignment completo (con id già generato nel service).
        """
        doc = self._to_doc_from_model(assignment)
        await self.col.insert_one(doc)
        return assignment.assignmentId

    async def _find_sorted(self, filt: Dict[str, Any]) -> Sequence[Assignment]:
        cursor = self.col.find(filt).sort("createdAt", DESCENDING)
        docs: List[dict] = [d async for d in cursor]
        return [self._from_doc(d) for d in docs]

    async def find_for_teacher(
        self, teacher_id: str, status: Optional[AssignmentStatus] = None
    ) -> Sequence[Assignment]:
        return await self._find_sorted(build_filter(teacher_id=teacher_id, status=status))

    async def find_published(self) -> Sequence[Assignment]:
        return await self._find_sorted(build_filter(status=AssignmentStatus.published))

    async def find_one(self, assignment_id: str) -> Optional[Assignment]:
        d = await self.col.find_one({"assignmentId": str(assignment_id)})
        return self._from_doc(d) if d else None

    async def update(self, assignment: Assignment) -> Optional[Assignment]:
        changes = {k: getattr(assignment, k) for k in EDITABLE_FIELDS}
        changes["status"] = assignment.status.value
        changes["updatedAt"] = datetime.now(timezone.utc)

        d = await self.col.find_one_and_update(
            {"assignmentId": assignment.assignmentId},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        return self._from_doc(d) if d else None

    async def delete(self, assignment_id: str) -> bool:
        res = await self.col.delete_one({"assignmentId": str(assignment_id)})
        return res.deleted_count > 0

    async def add_submission(self, assignment_id: str, submission: Submission) -> bool:
        # insert-if-absent: le condizioni del service vengono ricontrollate nel filtro
        filt = {
            "assignmentId": str(assignment_id),
            "status": AssignmentStatus.published.value,
            "dueDate": {"$gte": submission.submittedAt},
            "submissions.studentId": {"$ne": submission.studentId},
        }
        res = await self.col.update_one(
            filt,
            {
                "$push": {"submissions": submission.model_dump()},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            },
        )
        if res.modified_count == 0:
            logger.warning("Submission di %s su %s non inserita (condizioni cambiate)",
                           submission.studentId, assignment_id)
        return res.modified_count > 0

    async def find_users(self, user_ids: Iterable[str]) -> Dict[str, UserRef]:
        ids = {str(u) for u in user_ids}
        if not ids:
            return {}
        # gli _id degli utenti possono essere ObjectId o stringhe
        keys: List[Any] = [ObjectId(u) for u in ids if ObjectId.is_valid(u)]
        keys.extend(ids)
        cursor = self.users.find({"_id": {"$in": keys}}, {"name": 1, "email": 1})
        found = {str(d["_id"]): d async for d in cursor}
        return {
            u: UserRef(id=u, name=found.get(u, {}).get("name"), email=found.get(u, {}).get("email"))
            for u in ids
        }

    async def ensure_indexes(self):
        await self.col.create_index("assignmentId", unique=True)
        await self.col.create_index([("teacherId", ASCENDING), ("status", ASCENDING)])
        await self.col.create_index("status")
        await self.col.create_index([("createdAt", DESCENDING)])
