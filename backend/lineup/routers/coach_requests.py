# lineup/routers/coach_requests.py

import logging
from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lineup import auth, schemas
from lineup.controller import DEFAULT_COACH_NAME
from lineup.db import get_db
from lineup.errors import StoreError
from lineup.store import RosterStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/coach-requests",
    tags=["Coach Requests"]
)

# --- List pending requests (admin only) ---
@router.get("", response_model=List[schemas.CoachRequestOut])
def list_coach_requests(
    current_user=Depends(auth.require_admin),
    db: Session = Depends(get_db)
):
    try:
        return RosterStore(db).query_all("coach_requests")
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

# --- Ask for admin access (any signed-in user) ---
@router.post("", response_model=schemas.CoachRequestOut, status_code=status.HTTP_201_CREATED)
def request_access(
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    if not current_user.email:
        raise HTTPException(status_code=400, detail="Your account has no email address")

    store = RosterStore(db)
    try:
        if store.query_one_by_field("coaches", "email", current_user.email):
            raise HTTPException(status_code=409, detail="You already have admin access")
        if store.query_one_by_field("coach_requests", "email", current_user.email):
            raise HTTPException(status_code=409, detail="Access request already pending")

        request = store.insert("coach_requests", {
            "name": current_user.full_name or DEFAULT_COACH_NAME,
            "email": current_user.email
        })
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

    logger.info(f"Coach access requested by {current_user.email}")
    return request

# --- Approve a request (admin only) ---
@router.post("/{request_id}/approve", response_model=schemas.CoachOut)
def approve_request(
    request_id: UUID,
    current_user=Depends(auth.require_admin),
    db: Session = Depends(get_db)
):
    try:
        coach = RosterStore(db).approve_coach_request(request_id)
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    if coach is None:
        raise HTTPException(status_code=404, detail=f"Coach request {request_id} not found")
    return coach

# --- Deny a request (admin only) ---
@router.post("/{request_id}/deny", status_code=status.HTTP_204_NO_CONTENT)
def deny_request(
    request_id: UUID,
    current_user=Depends(auth.require_admin),
    db: Session = Depends(get_db)
):
    try:
        deleted = RosterStore(db).delete_by_field("coach_requests", "id", request_id)
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Coach request {request_id} not found")
    logger.info(f"{current_user.email} denied coach request {request_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
