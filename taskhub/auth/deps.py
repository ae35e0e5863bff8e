import logging
from fastapi import Request, Depends
from sqlalchemy.orm import Session
from jose import ExpiredSignatureError, JWTError
from taskhub.db.session import SessionLocal
from taskhub.errors import AuthenticationError, AuthorizationError
from taskhub.utils.security import decode_token
from taskhub.models.user import User

logger = logging.getLogger(__name__)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def bearer_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    return token or None

def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = bearer_token(request)
    if not token:
        raise AuthenticationError("Authentication required")

    try:
        payload = decode_token(token)
    except ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except JWTError:
        raise AuthenticationError("Invalid token")

    user_id = payload.get("sub")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token")

    user = db.get(User, user_id)
    if user is None:
        logger.warning("token for unknown user id=%s", user_id)
        raise AuthenticationError("User not found")

    return user

def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    return user
