from fastapi import APIRouter, BackgroundTasks, Depends
from api.deps import get_ats_engine
from domain.schemas import ScanRequest, ScanResponse
from domain.services.ats_scoring import AtsScoringEngine

router = APIRouter(prefix="/ats")


@router.post("/scan", response_model=ScanResponse, status_code=202)
async def scan(body: ScanRequest, background_tasks: BackgroundTasks,
               engine: AtsScoringEngine = Depends(get_ats_engine)) -> ScanResponse:
    analysis_id, token = engine.start_scan(body.job_application_id, body.analysis_id)
    background_tasks.add_task(engine.run_scan, analysis_id, token)
    return ScanResponse(analysis_id=analysis_id)


@router.get("/scores/{analysis_id}")
def get_scores(analysis_id: str, engine: AtsScoringEngine = Depends(get_ats_engine)):
    return engine.get_score(analysis_id)


@router.get("/job/{job_application_id}")
def latest_for_job(job_application_id: str, engine: AtsScoringEngine = Depends(get_ats_engine)):
    return engine.latest_for_job(job_application_id)
