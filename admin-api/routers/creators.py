import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple
from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile
import crud
from database import get_db
from dependencies import get_current_user, require_admin
from errors import BadRequest
from schemas import (
    BulkStatusRequest,
    BulkStatusResponse,
    CreatedResponse,
    CreatorCreate,
    CreatorOut,
    CreatorPatch,
    Identity,
    MessageResponse,
    StatusUpdate,
)
from uploads import store_avatar

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/creators", tags=["Creators"])

CREATOR_FORM_FIELDS = (
    "display_name", "description", "email", "platforms", "status",
    "is_featured", "is_paid_member", "featured_priority", "viewers",
)


@asynccontextmanager
async def read_creator_payload(request: Request) -> AsyncIterator[Tuple[Dict[str, Any], Optional[UploadFile]]]:
    """
    Accepts either a JSON object or a multipart form with an optional `avatar` file.
    Only fields actually present in the request are yielded. The form, and with it
    any uploaded temp file, is closed when the block exits.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise BadRequest("Malformed JSON body")
        if not isinstance(body, dict):
            raise BadRequest("Request body must be an object")
        yield body, None
        return

    async with request.form() as form:
        fields: Dict[str, Any] = {}
        for name in CREATOR_FORM_FIELDS:
            values = [v for v in form.getlist(name) if not isinstance(v, UploadFile)]
            if not values:
                continue
            # Repeated platforms fields form a list; a single one is pre-serialized
            fields[name] = values if name == "platforms" and len(values) > 1 else values[0]

        avatar = form.get("avatar")
        if not isinstance(avatar, UploadFile) or not avatar.filename:
            avatar = None
        yield fields, avatar


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else first.get("msg")


@router.get("", response_model=List[CreatorOut])
def list_creators(
    status: Optional[str] = None,
    featured: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(50, ge=0),
    offset: int = Query(0, ge=0),
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    featured_filter = None if featured is None else featured == "true"
    return crud.list_creators(db, status=status, featured=featured_filter, search=search, limit=limit, offset=offset)


@router.post("/bulk-status", response_model=BulkStatusResponse)
def bulk_status(
    payload: BulkStatusRequest,
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # Open to any authenticated caller so polling agents can report status.
    # TODO: product review on whether this should require an admin role.
    count = crud.bulk_set_status(db, payload.updates)
    logger.info(f"{identity.username} submitted {count} bulk status updates")
    return BulkStatusResponse(message=f"Updated {count} creators", count=count)


@router.get("/{creator_id}", response_model=CreatorOut)
def get_creator(
    creator_id: int,
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return crud.get_creator(db, creator_id)


@router.post("", response_model=CreatedResponse)
async def create_creator(
    request: Request,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    async with read_creator_payload(request) as (fields, avatar):
        try:
            payload = CreatorCreate(**fields)
        except ValidationError as e:
            raise BadRequest(_validation_message(e))

        avatar_url = store_avatar(avatar) if avatar else None

    creator = crud.create_creator(db, payload, avatar_url=avatar_url)
    logger.info(f"{identity.username} created creator {creator.id}")
    return CreatedResponse(id=creator.id, message="Creator created successfully")


@router.put("/{creator_id}", response_model=MessageResponse)
async def update_creator(
    creator_id: int,
    request: Request,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    async with read_creator_payload(request) as (fields, avatar):
        fields.pop("avatar_url", None)
        try:
            patch = CreatorPatch(**fields)
        except ValidationError as e:
            raise BadRequest(_validation_message(e))

        crud.get_creator(db, creator_id)
        if avatar:
            patch.avatar_url = store_avatar(avatar)

    crud.update_creator(db, creator_id, patch)
    return MessageResponse(message="Creator updated successfully")


@router.delete("/{creator_id}", response_model=MessageResponse)
def delete_creator(
    creator_id: int,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    crud.delete_creator(db, creator_id)
    logger.info(f"{identity.username} deleted creator {creator_id}")
    return MessageResponse(message="Creator deleted successfully")


@router.post("/{creator_id}/status", response_model=MessageResponse)
def update_status(
    creator_id: int,
    change: StatusUpdate,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    crud.set_creator_status(db, creator_id, change)
    return MessageResponse(message="Status updated successfully")
