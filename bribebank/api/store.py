"""Ticket store API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from bribebank.api.deps import get_current_user, get_outbox
from bribebank.database import get_session
from bribebank.models.family import User
from bribebank.schemas.store import (
    PurchaseRequest,
    PurchaseResponse,
    StoreItemCreate,
    StoreItemResponse,
    StoreItemUpdate,
)
from bribebank.services import store_service, template_service
from bribebank.services.outbox import Outbox

router = APIRouter(tags=["store"])


@router.get("/families/{family_id}/store-items", response_model=list[StoreItemResponse])
def list_store_items(
    family_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return template_service.list_store_items(family_id, user, session)


@router.post("/families/{family_id}/store-items", response_model=StoreItemResponse, status_code=201)
def create_store_item(
    family_id: str,
    request: StoreItemCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    return template_service.create_store_item(family_id, request.model_dump(), user, session, outbox)


@router.put("/store-items/{item_id}", response_model=StoreItemResponse)
def update_store_item(
    item_id: str,
    request: StoreItemUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    changes = request.model_dump(exclude_unset=True)
    return template_service.update_store_item(item_id, changes, user, session, outbox)


@router.delete("/store-items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_store_item(
    item_id: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    template_service.delete_store_item(item_id, user, session, outbox)


@router.post("/store-items/{item_id}/purchase", response_model=PurchaseResponse)
def purchase_item(
    item_id: str,
    request: Optional[PurchaseRequest] = None,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    outbox: Outbox = Depends(get_outbox),
):
    """Spend tickets on an item. The purchase waits for a parent to fulfil it."""
    buyer_id = (request.user_id if request else None) or user.id
    result = store_service.purchase(item_id, buyer_id, user, session, outbox)
    return PurchaseResponse(ticket_balance=result.ticket_balance, assignment_id=result.prize.id)
