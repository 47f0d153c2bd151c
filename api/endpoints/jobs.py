from fastapi import APIRouter, Depends
from api.deps import get_jobs_repo
from domain.errors import NotFoundError
from domain.schemas import JobCreateRequest, JobResponse, MasterCvRequest
from infra.repositories.jobs_repository import JobsRepository

router = APIRouter()


def _job_response(rec) -> JobResponse:
    return JobResponse(
        id=rec.id, job_title=rec.job_title, company_name=rec.company_name, status=rec.status,
        job_url=rec.job_url, job_description_text=rec.job_description_text,
        language=rec.language, notes=rec.notes, generation_status=rec.generation_status,
    )


@router.post("/jobs", response_model=JobResponse, status_code=201)
def create_job(body: JobCreateRequest, jobs: JobsRepository = Depends(get_jobs_repo)) -> JobResponse:
    rec = jobs.create(
        body.job_title, body.company_name,
        job_description_text=body.job_description_text, job_url=body.job_url,
        language=body.language, notes=body.notes, status=body.status,
    )
    return _job_response(rec)


@router.get("/jobs/{job_id}", response_model=JobResponse)
def get_job(job_id: str, jobs: JobsRepository = Depends(get_jobs_repo)) -> JobResponse:
    rec = jobs.get(job_id)
    if not rec:
        raise NotFoundError("Job application not found")
    return _job_response(rec)


@router.put("/cv/master")
def save_master_cv(body: MasterCvRequest, jobs: JobsRepository = Depends(get_jobs_repo)):
    jobs.save_master_cv(body.cv_json)
    return {"cvJson": body.cv_json}


@router.get("/cv/master")
def get_master_cv(jobs: JobsRepository = Depends(get_jobs_repo)):
    cv_json = jobs.get_master_cv()
    if cv_json is None:
        raise NotFoundError("No master CV saved")
    return {"cvJson": cv_json}
