from datetime import datetime, timedelta, timezone
import logging
import bcrypt
import jwt
from config import settings
from errors import Forbidden

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10
# bcrypt only uses the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

# Checked against when the account does not exist, so unknown users cost a full bcrypt round too
_DUMMY_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(BCRYPT_ROUNDS))


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str = None) -> bool:
    if not password_hash:
        bcrypt.checkpw(_password_bytes(password), _DUMMY_HASH)
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_access_token(user_id: int, username: str, role: str, expires_in: timedelta = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "username": username,
        "role": role,
        "iat": now,
        "exp": now + (expires_in or timedelta(hours=settings.TOKEN_EXPIRE_HOURS)),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Validates signature and expiry.
    Raises Forbidden for anything that does not verify.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("Access token expired")
        raise Forbidden("Invalid or expired token")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Access token rejected: {e}")
        raise Forbidden("Invalid or expired token")
