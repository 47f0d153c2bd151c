import os
from pydantic import BaseModel
from functools import lru_cache
from dotenv import load_dotenv
load_dotenv()

class Settings(BaseModel):
    APP_NAME: str = os.getenv("APP_NAME", "Application Tracker Core")
    ENV: str = os.getenv("ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    SQLITE_PATH: str = os.getenv("SQLITE_PATH", "app.sqlite3")
    PDF_DIR: str = os.getenv("PDF_DIR", "temp_pdfs")
    API_TOKEN: str | None = os.getenv("API_TOKEN") or None
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY") or None
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENROUTER_API_KEY: str | None = os.getenv("OPENROUTER_API_KEY") or None
    OPENROUTER_MODEL: str = os.getenv("OPENROUTER_MODEL", "openai/gpt-4o-mini")
    LLM_TIMEOUT_S: float = float(os.getenv("LLM_TIMEOUT_S", "60"))
    ATS_POLL_INTERVAL_MS: int = int(os.getenv("ATS_POLL_INTERVAL_MS", "3000"))
    ATS_POLL_TIMEOUT_MS: int = int(os.getenv("ATS_POLL_TIMEOUT_MS", "120000"))
    DRAFT_AUTOSAVE_DEBOUNCE_MS: int = int(os.getenv("DRAFT_AUTOSAVE_DEBOUNCE_MS", "2000"))

@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
