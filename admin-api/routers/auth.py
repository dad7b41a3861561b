import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import crud
from config import settings
from database import get_db
from dependencies import get_current_user, limiter
from errors import Unauthorized
from schemas import Identity, LoginRequest, LoginResponse, UserPublic, VerifyResponse
from security import create_access_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(request: Request, credentials: LoginRequest, db: Session = Depends(get_db)):
    admin = crud.get_admin_by_login(db, credentials.username)

    if not verify_password(credentials.password, admin.password_hash if admin else None):
        logger.warning(f"Failed login for '{credentials.username}'")
        raise Unauthorized("Invalid credentials")

    user = UserPublic.model_validate(admin)
    token = create_access_token(user.id, user.username, user.role)

    # Not coupled to token issuance
    crud.touch_last_login(db, admin)

    logger.info(f"Admin '{user.username}' logged in")
    return LoginResponse(token=token, user=user)


@router.get("/verify", response_model=VerifyResponse)
def verify(identity: Identity = Depends(get_current_user)):
    return VerifyResponse(user=identity)
