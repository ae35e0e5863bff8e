from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from taskhub.auth.deps import get_db, require_admin
from taskhub.models.user import User
from taskhub.schemas.auth import UserOut

router = APIRouter(prefix="/users", tags=["users"])

@router.get("", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    return db.query(User).order_by(User.email).all()
