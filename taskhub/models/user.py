from sqlalchemy import Column, Integer, String, DateTime, func
from taskhub.db.session import Base

ROLE_ADMIN = "admin"
ROLE_USER = "user"

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_USER)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
