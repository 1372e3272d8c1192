# lineup/routers/coaches.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from lineup import auth, schemas
from lineup.db import get_db
from lineup.errors import StoreError
from lineup.store import RosterStore

router = APIRouter(
    prefix="/api/coaches",
    tags=["Coaches"]
)

# Coaches are created only by approving a request; see coach_requests.py
@router.get("", response_model=List[schemas.CoachOut])
def list_coaches(
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return RosterStore(db).query_all("coaches")
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
