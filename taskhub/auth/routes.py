from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from taskhub.auth.deps import get_db, get_current_user
from taskhub.schemas.auth import RegisterIn, LoginIn, AuthOut, UserOut
from taskhub.auth.service import register_user, authenticate_user, issue_token
from taskhub.models.user import User

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
def register(body: RegisterIn, db: Session = Depends(get_db)):
    user = register_user(db, body.email, body.password)
    return AuthOut(user=UserOut.model_validate(user), token=issue_token(user))

@router.post("/login", response_model=AuthOut)
def login(body: LoginIn, db: Session = Depends(get_db)):
    user = authenticate_user(db, body.email, body.password)
    return AuthOut(user=UserOut.model_validate(user), token=issue_token(user))

@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
