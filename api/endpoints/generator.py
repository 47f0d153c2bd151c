from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from api.deps import get_files_repo, get_generation_service
from domain.schemas import DraftUpdateRequest, FinalizeRequest, GenerateRequest, SubmitInputsRequest
from domain.services.generation import GenerationService
from infra.repositories.files_repository import FilesRepository

router = APIRouter(prefix="/generator")


@router.get("/download/{filename}")
def download(filename: str, files: FilesRepository = Depends(get_files_repo)):
    if not filename.lower().endswith(".pdf") or not files.exists(filename):
        raise HTTPException(status_code=404, detail="file not found")
    return FileResponse(files.get_path(filename), media_type="application/pdf", filename=filename)


@router.post("/{job_id}")
async def generate(job_id: str, body: Optional[GenerateRequest] = None,
                   service: GenerationService = Depends(get_generation_service)):
    body = body or GenerateRequest()
    return await service.generate(job_id, body.language, body.theme)


@router.get("/{job_id}")
def get_generation(job_id: str, service: GenerationService = Depends(get_generation_service)):
    return service.view(job_id)


@router.post("/{job_id}/submit")
def submit_inputs(job_id: str, body: SubmitInputsRequest,
                  service: GenerationService = Depends(get_generation_service)):
    return service.submit(job_id, body.user_input_data)


@router.post("/{job_id}/finalize")
def finalize(job_id: str, body: Optional[FinalizeRequest] = None,
             service: GenerationService = Depends(get_generation_service)):
    return service.finalize(job_id, body.user_input_data if body else None)


@router.put("/{job_id}/draft")
def save_draft(job_id: str, body: DraftUpdateRequest,
               service: GenerationService = Depends(get_generation_service)):
    return service.edit_draft(job_id, body.draft_cv_json, body.draft_cover_letter_text)


@router.post("/{job_id}/render-cv-pdf")
def render_cv_pdf(job_id: str, service: GenerationService = Depends(get_generation_service)):
    return service.render_cv(job_id)


@router.post("/{job_id}/render-cover-letter-pdf")
def render_cover_letter_pdf(job_id: str, service: GenerationService = Depends(get_generation_service)):
    return service.render_cover_letter(job_id)
