import logging
from typing import Any
from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
import crud
from database import get_db
from dependencies import require_admin
from errors import BadRequest
from schemas import Identity, MessageResponse, SettingsMap

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["Settings"])


@router.get("", response_model=SettingsMap)
def get_settings(identity: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    return crud.get_settings(db)


@router.put("", response_model=MessageResponse)
def update_settings(
    values: Any = Body(...),
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if not isinstance(values, dict):
        raise BadRequest("Settings must be an object")
    crud.upsert_settings(db, values)
    logger.info(f"{identity.username} updated settings: {', '.join(sorted(values))}")
    return MessageResponse(message="Settings updated successfully")
