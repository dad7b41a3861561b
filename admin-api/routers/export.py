from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import crud
from database import get_db
from dependencies import require_admin
from schemas import CreatorOut, Identity

router = APIRouter(prefix="/api/export", tags=["Export"])

EXPORT_FILENAME = "psycheverse-creators.json"


@router.get("/creators")
def export_creators(identity: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    creators = [CreatorOut.model_validate(c) for c in crud.export_creators(db)]
    return JSONResponse(
        content=jsonable_encoder(creators),
        headers={"Content-Disposition": f"attachment; filename={EXPORT_FILENAME}"},
    )
