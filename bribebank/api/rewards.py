"""Reward template and assigned prize API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bribebank.api.deps import get_current_user, get_outbox
from bribebank.database import get_session
from bribebank.models.family import User
from bribebank.schemas.reward import (
    AssignPrizeRequest,
    PrizeResponse,
    RewardTemplateCreate,
    RewardTemplateResponse,
    RewardTemplateUpdate,
)
from bribebank.services import reward_service, template_service
from bribebank.services.outbox import Outbox

router = APIRouter(tags=["rewards"])


# --- Templates ---

@router.get("/families/{family_id}/rewards", response_model=list[RewardTemplateResponse])
def list_rewards(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return template_service.list_rewards(family_id, user, session)


@router.post("/families/{family_id}/rewards", response_model=RewardTemplateResponse, status_code=201)
def create_reward(
    family_id: str,
    request: RewardTemplateCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    return template_service.create_reward(family_id, request.model_dump(), user, session, outbox)


@router.put("/rewards/{reward_id}", response_model=RewardTemplateResponse)
def update_reward(
    reward_id: str,
    request: RewardTemplateUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    changes = request.model_dump(exclude_unset=True)
    return template_service.update_reward(reward_id, changes, user, session, outbox)


@router.delete("/rewards/{reward_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reward(
    reward_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    template_service.delete_reward(reward_id, user, session, outbox)


# --- Assigned prizes ---

@router.get("/families/{family_id}/assigned-prizes", response_model=list[PrizeResponse])
def list_prizes(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return reward_service.list_prizes(family_id, user, session)


@router.post("/families/{family_id}/assigned-prizes", response_model=PrizeResponse, status_code=201)
def assign_prize(
    family_id: str,
    request: AssignPrizeRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Give a family member a prize from a reward template. Parent only."""
    return reward_service.assign_prize(
        family_id, request.template_id, request.user_id, user, session, outbox
    )


@router.post("/assigned-prizes/{prize_id}/claim", response_model=PrizeResponse)
def claim_prize(
    prize_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    return reward_service.claim_prize(prize_id, user, session, outbox)


@router.post("/assigned-prizes/{prize_id}/approve", response_model=PrizeResponse)
def approve_prize(
    prize_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    return reward_service.approve_prize(prize_id, user, session, outbox)


@router.post("/assigned-prizes/{prize_id}/reject", response_model=PrizeResponse)
def reject_prize(
    prize_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Send a claimed prize back to the child's wallet."""
    return reward_service.reject_prize(prize_id, user, session, outbox)


@router.delete("/assigned-prizes/{prize_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_prize(
    prize_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    reward_service.delete_prize(prize_id, user, session, outbox)
