"""Bounty template and bounty assignment API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bribebank.api.deps import get_current_user, get_outbox
from bribebank.database import get_session
from bribebank.models.bounty import BountyAssignment, BountyTemplate
from bribebank.models.family import User
from bribebank.schemas.auth import MemberSummary
from bribebank.schemas.bounty import (
    AssignBountyRequest,
    BountyAssignmentResponse,
    BountyTemplateCreate,
    BountyTemplateResponse,
    BountyTemplateUpdate,
    VerifyResponse,
)
from bribebank.schemas.reward import PrizeResponse
from bribebank.services import task_service, template_service
from bribebank.services.outbox import Outbox

router = APIRouter(tags=["bounties"])


def _assignment_to_response(assignment: BountyAssignment, session: Session) -> BountyAssignmentResponse:
    bounty = session.get(BountyTemplate, assignment.bounty_id)
    child = session.get(User, assignment.user_id)
    response = BountyAssignmentResponse.model_validate(assignment)
    response.bounty = BountyTemplateResponse.model_validate(bounty) if bounty else None
    response.user = MemberSummary.model_validate(child) if child else None
    return response


# --- Templates ---

@router.get("/families/{family_id}/bounties", response_model=list[BountyTemplateResponse])
def list_bounties(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return template_service.list_bounties(family_id, user, session)


@router.post("/families/{family_id}/bounties", response_model=BountyTemplateResponse, status_code=201)
def create_bounty(
    family_id: str,
    request: BountyTemplateCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    return template_service.create_bounty(family_id, request.model_dump(), user, session, outbox)


@router.put("/bounties/{bounty_id}", response_model=BountyTemplateResponse)
def update_bounty(
    bounty_id: str,
    request: BountyTemplateUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    changes = request.model_dump(exclude_unset=True)
    return template_service.update_bounty(bounty_id, changes, user, session, outbox)


@router.delete("/bounties/{bounty_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_bounty(
    bounty_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Delete a bounty template and its assignments."""
    template_service.delete_bounty(bounty_id, user, session, outbox)


# --- Assignments ---

@router.get("/families/{family_id}/bounty-assignments", response_model=list[BountyAssignmentResponse])
def list_assignments(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    assignments = task_service.list_assignments(family_id, user, session)
    return [_assignment_to_response(a, session) for a in assignments]


@router.post(
    "/families/{family_id}/bounty-assignments",
    response_model=BountyAssignmentResponse,
    status_code=201,
)
def assign_bounty(
    family_id: str,
    request: AssignBountyRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Offer a bounty to a family member. Parent only."""
    assignment = task_service.assign_bounty(
        family_id, request.bounty_id, request.user_id, user, session, outbox
    )
    return _assignment_to_response(assignment, session)


@router.post("/bounty-assignments/{assignment_id}/accept", response_model=BountyAssignmentResponse)
def accept_assignment(
    assignment_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    assignment = task_service.accept_bounty(assignment_id, user, session, outbox)
    return _assignment_to_response(assignment, session)


@router.post("/bounty-assignments/{assignment_id}/complete", response_model=BountyAssignmentResponse)
def complete_assignment(
    assignment_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    assignment = task_service.complete_bounty(assignment_id, user, session, outbox)
    return _assignment_to_response(assignment, session)


@router.post(
    "/bounty-assignments/{assignment_id}/verify",
    response_model=VerifyResponse,
    response_model_exclude_none=True,
)
def verify_assignment(
    assignment_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Verify a completed task and pay out its reward. Parent only, never your own task."""
    result = task_service.verify_bounty(assignment_id, user, session, outbox)
    return VerifyResponse(
        assignment=_assignment_to_response(result.assignment, session),
        prize=PrizeResponse.model_validate(result.prize) if result.prize else None,
        tickets_awarded=result.tickets_awarded,
    )


@router.delete("/bounty-assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    assignment_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Parents delete any assignment; children may withdraw their own unaccepted offer."""
    task_service.delete_assignment(assignment_id, user, session, outbox)
