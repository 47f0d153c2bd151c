import secrets
from typing import Optional

from fastapi import Header, HTTPException

from app.settings import settings
from domain.services.ats_scoring import AtsScoringEngine
from domain.services.chat import ChatService
from domain.services.generation import GenerationService
from infra.repositories.files_repository import FilesRepository
from infra.db.session import SessionLocal
from infra.repositories.jobs_repository import JobsRepository


def require_token(authorization: Optional[str] = Header(default=None)) -> None:
    """Static bearer check; open when no API_TOKEN is configured."""
    if not settings.API_TOKEN:
        return
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not secrets.compare_digest(token, settings.API_TOKEN):
        raise HTTPException(status_code=401, detail="Invalid or missing bearer token")


def get_jobs_repo() -> JobsRepository:
    return JobsRepository()


def get_files_repo() -> FilesRepository:
    return FilesRepository()


def get_ats_engine() -> AtsScoringEngine:
    return AtsScoringEngine()


def get_generation_service() -> GenerationService:
    return GenerationService()


def get_chat_service() -> ChatService:
    return ChatService()


def get_session_factory():
    return SessionLocal
