from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import crud
from database import get_db
from dependencies import get_current_user
from schemas import DashboardStats, Identity

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("/dashboard", response_model=DashboardStats)
def dashboard(identity: Identity = Depends(get_current_user), db: Session = Depends(get_db)):
    return crud.dashboard_stats(db)
