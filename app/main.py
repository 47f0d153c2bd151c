import logging
from fastapi import FastAPI
from app.settings import settings
from app.logging import configure_logging
from app.error_handlers import attach_error_handlers
from api.router import api_router
from infra.db.session import init_db
from infra.repositories.files_repository import FilesRepository

configure_logging()
logger = logging.getLogger(__name__)
app = FastAPI(title=settings.APP_NAME)


@app.on_event("startup")
def _on_startup():
    init_db()
    pdf_dir = FilesRepository().ensure_dir()
    provider = "openai" if settings.OPENAI_API_KEY else "openrouter" if settings.OPENROUTER_API_KEY else "none"
    logger.info("%s started (env=%s, llm=%s, pdf_dir=%s)", settings.APP_NAME, settings.ENV, provider, pdf_dir)


attach_error_handlers(app)
app.include_router(api_router)
