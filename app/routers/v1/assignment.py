import logging
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status, Response
from pymongo.errors import PyMongoError

from app.core.deps import get_repository
from app.core.errors import AssignmentNotFoundError, InvalidStateError, SubmissionNotFoundError
from app.schemas.assignment import (
    AssignmentCreate,
    AssignmentListResponse,
    AssignmentResponse,
    AssignmentUpdate,
    MessageResponse,
    SubmissionCreate,
    SubmissionResponse,
)
from app.schemas.context import UserContext
from app.database.assignment_repo import AssignmentRepo

from app.services.auth_service import AuthService
from app.services.assignment_service import AssignmentService

logger = logging.getLogger(__name__)

router = APIRouter()

RepoDep = Annotated[AssignmentRepo, Depends(get_repository)]
UserDep = Annotated[UserContext, Depends(AuthService.get_current_user)]


def _server_error(e: Exception) -> HTTPException:
    logger.exception("Errore persistenza", exc_info=e)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.post("/assignments", status_code=status.HTTP_201_CREATED, response_model=AssignmentResponse)
async def create_assignment_endpoint(
    assignment: AssignmentCreate,
    user: UserDep,
    repo: RepoDep,
    response: Response,
):
    try:
        created = await AssignmentService.create_assignment(assignment, user, repo)
        [read] = await AssignmentService.expand([created], repo)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except PyMongoError as e:
        raise _server_error(e)

    response.headers["Location"] = f"/api/v1/assignments/{created.assignmentId}"
    return AssignmentResponse(message="Assignment created successfully", assignment=read)


@router.get("/assignments/teacher", response_model=AssignmentListResponse)
async def list_teacher_assignments_endpoint(
    user: UserDep,
    repo: RepoDep,
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
):
    try:
        items = await AssignmentService.list_teacher_assignments(user, repo, status_filter)
        return AssignmentListResponse(assignments=await AssignmentService.expand(items, repo))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except PyMongoError as e:
        raise _server_error(e)


@router.get("/assignments/student", response_model=AssignmentListResponse)
async def list_student_assignments_endpoint(
    user: UserDep,
    repo: RepoDep,
):
    try:
        items = await AssignmentService.list_student_assignments(user, repo)
        return AssignmentListResponse(assignments=await AssignmentService.expand(items, repo))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except PyMongoError as e:
        raise _server_error(e)


@router.get("/assignments/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment_endpoint(
    assignment_id: str,
    user: UserDep,
    repo: RepoDep,
):
    try:
        result = await AssignmentService.get_assignment(assignment_id, user, repo)
        [read] = await AssignmentService.expand([result], repo)
        return AssignmentResponse(assignment=read)
    except AssignmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PyMongoError as e:
        raise _server_error(e)


@router.put("/assignments/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment_endpoint(
    assignment_id: str,
    changes: AssignmentUpdate,
    user: UserDep,
    repo: RepoDep,
):
    try:
        updated = await AssignmentService.update_assignment(assignment_id, changes, user, repo)
        [read] = await AssignmentService.expand([updated], repo)
        return AssignmentResponse(message="Assignment updated successfully", assignment=read)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except AssignmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PyMongoError as e:
        raise _server_error(e)


@router.delete("/assignments/{assignment_id}", response_model=MessageResponse)
async def delete_assignment_endpoint(
    assignment_id: str,
    user: UserDep,
    repo: RepoDep,
):
    try:
        await AssignmentService.delete_assignment(assignment_id, user, repo)
        return MessageResponse(message="Assignment deleted successfully")
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except AssignmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PyMongoError as e:
        raise _server_error(e)


@router.post("/assignments/{assignment_id}/submit", response_model=AssignmentResponse)
async def submit_assignment_endpoint(
    assignment_id: str,
    body: SubmissionCreate,
    user: UserDep,
    repo: RepoDep,
):
    try:
        updated = await AssignmentService.submit_assignment(assignment_id, body, user, repo)
        [read] = await AssignmentService.expand([updated], repo)
        return AssignmentResponse(message="Assignment submitted successfully", assignment=read)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except AssignmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PyMongoError as e:
        raise _server_error(e)


@router.get("/assignments/{assignment_id}/submission", response_model=SubmissionResponse)
async def get_own_submission_endpoint(
    assignment_id: str,
    user: UserDep,
    repo: RepoDep,
):
    try:
        submission = await AssignmentService.get_own_submission(assignment_id, user, repo)
        return SubmissionResponse(submission=await AssignmentService.expand_submission(submission, repo))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except (AssignmentNotFoundError, SubmissionNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PyMongoError as e:
        raise _server_error(e)
