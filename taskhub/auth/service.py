import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from taskhub.errors import AuthenticationError, ConflictError
from taskhub.models.user import User, ROLE_USER
from taskhub.utils.security import hash_password, verify_password, create_access_token

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"

def _normalize_email(email: str) -> str:
    return email.strip().lower()

def register_user(db: Session, email: str, password: str, role: str = ROLE_USER) -> User:
    email = _normalize_email(email)
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("Email already registered")
    user = User(email=email, password_hash=hash_password(password), role=role)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # lost a race against a concurrent registration of the same email
        db.rollback()
        raise ConflictError("Email already registered") from exc
    db.refresh(user)
    logger.info("registered user id=%s role=%s", user.id, user.role)
    return user

def authenticate_user(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("failed login attempt")
        raise AuthenticationError(INVALID_CREDENTIALS)
    return user

def issue_token(user: User) -> str:
    return create_access_token(str(user.id))
