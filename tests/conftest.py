import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from domain.services.ats_scoring import AtsScoringEngine
from domain.services.chat import ChatService
from domain.services.generation import GenerationService
from infra.db.session import init_db
from infra.repositories.ats_repository import AtsAnalysesRepository
from infra.repositories.chat_repository import ChatRepository
from infra.repositories.files_repository import FilesRepository
from infra.repositories.jobs_repository import JobsRepository
from tests.factories import JOB_TEXT, MASTER_CV, FakeLlm, FakeRenderer


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def jobs_repo(session_factory):
    return JobsRepository(session_factory)


@pytest.fixture
def analyses_repo(session_factory):
    return AtsAnalysesRepository(session_factory)


@pytest.fixture
def chat_repo(session_factory):
    return ChatRepository(session_factory)


@pytest.fixture
def files(tmp_path):
    return FilesRepository(str(tmp_path / "pdfs"))


@pytest.fixture
def renderer(files):
    return FakeRenderer(files)


@pytest.fixture
def llm():
    return FakeLlm()


@pytest.fixture
def master_cv(jobs_repo):
    jobs_repo.save_master_cv(MASTER_CV)
    return MASTER_CV


@pytest.fixture
def job(jobs_repo):
    return jobs_repo.create("Senior Backend Engineer", "Example GmbH", job_description_text=JOB_TEXT)


@pytest.fixture
def engine(jobs_repo, analyses_repo, llm):
    return AtsScoringEngine(jobs_repo, analyses_repo, chat_fn=llm)


@pytest.fixture
def generation(jobs_repo, renderer, llm):
    return GenerationService(jobs_repo, renderer, chat_fn=llm)


@pytest.fixture
def chat_service(jobs_repo, chat_repo, llm):
    return ChatService(jobs_repo, chat_repo, chat_fn=llm)
