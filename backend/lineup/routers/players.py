# lineup/routers/players.py

import logging
from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lineup import auth, schemas
from lineup.db import get_db
from lineup.errors import StoreError
from lineup.store import RosterStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/players",
    tags=["Players"]
)

# --- List players (any signed-in user) ---
@router.get("", response_model=List[schemas.PlayerOut])
def list_players(
    current_user=Depends(auth.get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return RosterStore(db).query_all("players")
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

# --- Add a player (admin only) ---
@router.post("", response_model=schemas.PlayerOut, status_code=status.HTTP_201_CREATED)
def create_player(
    payload: schemas.PlayerCreate,
    current_user=Depends(auth.require_admin),
    db: Session = Depends(get_db)
):
    try:
        player = RosterStore(db).insert("players", {"name": payload.name})
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    logger.info(f"{current_user.email} added player {player['name']}")
    return player

# --- Delete a player (admin only) ---
@router.delete("/{player_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_player(
    player_id: UUID,
    current_user=Depends(auth.require_admin),
    db: Session = Depends(get_db)
):
    try:
        deleted = RosterStore(db).delete_by_field("players", "id", player_id)
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Player {player_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
