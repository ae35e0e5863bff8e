from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool
from taskhub.config import settings
import os

class Base(DeclarativeBase):
    pass

url = settings.database_url or os.getenv("DATABASE_URL", "sqlite:///./taskhub.db")

if url.startswith("postgres://"):
    url = url.replace("postgres://", "postgresql+psycopg://", 1)
elif url.startswith("postgresql://"):
    url = url.replace("postgresql://", "postgresql+psycopg://", 1)

connect_args = {}
engine_kwargs = {}
if url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
    # in-memory databases live as long as their single connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(
    url,
    connect_args=connect_args,
    pool_pre_ping=True,
    future=True,
    **engine_kwargs,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
)

def init_db():
    from taskhub.models import user, task  # noqa: F401
    Base.metadata.create_all(bind=engine)
