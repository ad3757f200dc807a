"""Prize wheel API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from bribebank.api.deps import get_current_user, get_outbox
from bribebank.database import get_session
from bribebank.models.family import User
from bribebank.schemas.store import (
    SpinRequest,
    SpinResponse,
    WheelConfigResponse,
    WheelSegmentResponse,
    WheelUpdateRequest,
    WheelUpdateResponse,
)
from bribebank.services import wheel_service
from bribebank.services.outbox import Outbox
from bribebank.services.wheel_service import SegmentSpec

router = APIRouter(prefix="/families/{family_id}", tags=["wheel"])


@router.get("/wheel-segments", response_model=list[WheelSegmentResponse])
def list_segments(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return wheel_service.list_segments(family_id, user, session)


@router.get("/wheel-config", response_model=WheelConfigResponse)
def get_wheel_config(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return WheelConfigResponse(spin_cost=wheel_service.get_spin_cost(family_id, user, session))


@router.put("/wheel-segments", response_model=WheelUpdateResponse)
def update_segments(
    family_id: str,
    request: WheelUpdateRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Replace every segment. Probabilities must sum to 1 (within 0.01)."""
    specs = [SegmentSpec(**seg.model_dump()) for seg in request.segments]
    segments, spin_cost = wheel_service.update_segments(
        family_id, specs, request.spin_cost, user, session, outbox
    )
    return WheelUpdateResponse(
        segments=[WheelSegmentResponse.model_validate(s) for s in segments],
        spin_cost=spin_cost,
    )


@router.post("/wheel-segments/reset", response_model=list[WheelSegmentResponse])
def reset_segments(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    return wheel_service.reset_segments(family_id, user, session, outbox)


@router.post("/wheel-segments/spin", response_model=SpinResponse)
def spin_wheel(
    family_id: str,
    request: Optional[SpinRequest] = None,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    spinner_id = (request.user_id if request else None) or user.id
    result = wheel_service.spin(family_id, spinner_id, user, session, outbox)
    return SpinResponse(
        won=result.won,
        prize=result.prize,
        emoji=result.emoji,
        new_balance=result.new_balance,
        assignment_id=result.assigned_prize.id if result.assigned_prize else None,
    )
