from pydantic import BaseModel, EmailStr, Field

class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=256)

class LoginIn(BaseModel):
    # any string; unknown and malformed addresses fail the same way
    email: str
    password: str

class UserOut(BaseModel):
    id: int
    email: str
    role: str

    class Config:
        from_attributes = True

class AuthOut(BaseModel):
    user: UserOut
    token: str
    token_type: str = "bearer"
