from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from app.settings import settings

engine = create_engine(
    f"sqlite:///{settings.SQLITE_PATH}", echo=False, future=True,
    connect_args={"check_same_thread": False})
SessionLocal = sessionmaker(
    bind=engine, autoflush=False, autocommit=False, future=True,
    expire_on_commit=False)


class Base(DeclarativeBase):
    pass


def init_db(bind=None):
    from infra.db.models import JobApplicationRecord, MasterCvRecord, AtsAnalysisRecord, ChatMessageRecord
    Base.metadata.create_all(bind=bind or engine)
