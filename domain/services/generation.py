import json
import logging
import re
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from domain import generation_fsm as fsm
from domain.errors import (
    AppError,
    LlmResponseError,
    MissingPreconditionError,
    NotFoundError,
    RenderError,
    StateConflictError,
)
from domain.generation_fsm import GenerationStatus as S
from infra.db.models import JobApplicationRecord
from infra.llm.client import ChatFn, chat_completion, extract_json
from infra.llm.prompts import TAILORING_PROMPT, TAILORING_SYSTEM
from infra.pdf.renderer import PdfRenderer, document_prefix
from infra.repositories.jobs_repository import JobsRepository

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\[\[ASK_USER:(.+?)\]\]")
INPUT_TYPES = ("text", "number", "date", "textarea")
LANGUAGE_NAMES = {"en": "English", "de": "German"}

# first matching family wins
_TYPE_KEYWORDS = (
    ("date", ("date", "start", "available", "datum", "verfügbar")),
    ("number", ("salary", "amount", "number", "gehalt", "notice period")),
    ("textarea", ("description", "reason", "details", "notes", "motivation")),
)


class TailoringOutput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    tailored_cv_json: Dict[str, Any]
    cover_letter_text: str = Field(min_length=1)
    required_inputs: List[Any] = Field(default_factory=list)


def infer_input_type(name: str) -> str:
    lowered = name.lower()
    for input_type, keywords in _TYPE_KEYWORDS:
        if any(k in lowered for k in keywords):
            return input_type
    return "text"


def placeholder_names(template: str) -> List[str]:
    seen: List[str] = []
    for match in PLACEHOLDER.finditer(template or ""):
        if match.group(1) not in seen:
            seen.append(match.group(1))
    return seen


def required_inputs_for(template: str, declared: List[Any]) -> List[Dict[str, str]]:
    """One entry per placeholder in order of appearance; the model's type is kept when valid."""
    declared_types = {}
    for item in declared or []:
        if isinstance(item, dict) and isinstance(item.get("name"), str) and item.get("type") in INPUT_TYPES:
            declared_types.setdefault(item["name"], item["type"])
    return [
        {"name": name, "type": declared_types.get(name) or infer_input_type(name)}
        for name in placeholder_names(template)
    ]


def fill_placeholders(template: str, values: Dict[str, str]) -> str:
    # one pass: names are dict keys, and substituted values are never rescanned
    return PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def generation_view(job: JobApplicationRecord) -> Dict[str, Any]:
    status = S(job.generation_status or S.NONE.value)
    view = {
        "jobId": job.id,
        "status": status.value,
        "language": job.generation_language,
        "theme": job.theme,
        "draftCvJson": job.draft_cv_json if status in fsm.DRAFT_VISIBLE else None,
        "draftCoverLetterText": job.draft_cover_letter_text if status in fsm.DRAFT_VISIBLE else None,
        "requiredInputs": list(job.required_inputs or []) if status is S.PENDING_INPUT else [],
        "generatedCvFilename": job.generated_cv_filename if status is S.FINALIZED else None,
        "generatedCoverLetterFilename": (
            job.generated_cover_letter_filename if status is S.FINALIZED else None),
        "error": job.generation_error if status is S.ERROR else None,
    }
    if status is S.PENDING_INPUT:
        view["coverLetterTemplate"] = job.cover_letter_template
    return view


class GenerationService:
    def __init__(self, jobs: Optional[JobsRepository] = None,
                 renderer: Optional[PdfRenderer] = None,
                 chat_fn: ChatFn = chat_completion):
        self.jobs = jobs or JobsRepository()
        self.renderer = renderer or PdfRenderer()
        self.chat_fn = chat_fn

    def _job(self, job_id: str) -> JobApplicationRecord:
        job = self.jobs.get(job_id)
        if not job:
            raise NotFoundError("Job application not found")
        return job

    def _transition(self, job: JobApplicationRecord, event: str, changes: Dict[str, Any],
                    *, has_draft: bool = False) -> None:
        to = fsm.check(event, job.generation_status, has_draft=has_draft)
        ok = self.jobs.compare_and_set(
            job.id, job.generation_status or S.NONE.value,
            {"generation_status": to.value, **changes},
            expected_token=job.generation_token,
        )
        if not ok:
            current = self.jobs.get(job.id)
            raise StateConflictError(
                "Generation state changed concurrently; reload and try again",
                current_status=current.generation_status if current else None,
            )

    def _discard(self, *filenames: Optional[str]) -> None:
        for filename in filenames:
            self.renderer.files.remove(filename)

    def view(self, job_id: str) -> Dict[str, Any]:
        return generation_view(self._job(job_id))

    async def generate(self, job_id: str, language: str = "en", theme: str = "modern") -> Dict[str, Any]:
        job = self._job(job_id)
        if not (job.job_description_text or "").strip():
            raise MissingPreconditionError("Job description text is required to generate documents")
        master_cv = self.jobs.get_master_cv()
        if not master_cv or not master_cv.get("basics"):
            raise MissingPreconditionError("A master CV with a basics section is required")
        fsm.check("generate", job.generation_status)

        token = uuid.uuid4().hex
        self._transition(job, "generate", {
            "generation_token": token,
            "generation_language": language,
            "theme": theme,
            "generation_error": None,
        })
        job = self._job(job_id)
        old_files = (job.generated_cv_filename, job.generated_cover_letter_filename)
        logger.info("Generating %s documents for job %s", language, job_id)

        try:
            output = await self._tailor(job, master_cv, language)
        except Exception as exc:
            # the record must not stay in pending_generation
            self._fail(job, exc.message if isinstance(exc, AppError) else f"Internal error: {exc}")
            raise

        required = required_inputs_for(output.cover_letter_text, output.required_inputs)
        changes = {
            "draft_cv_json": output.tailored_cv_json,
            "generated_cv_filename": None,
            "generated_cover_letter_filename": None,
        }
        if required:
            self._transition(job, "needs_input", {
                **changes,
                "draft_cover_letter_text": None,
                "cover_letter_template": output.cover_letter_text,
                "required_inputs": required,
            })
            logger.info("Job %s needs %d user inputs", job_id, len(required))
        else:
            self._transition(job, "tailored", {
                **changes,
                "draft_cover_letter_text": output.cover_letter_text,
                "cover_letter_template": None,
                "required_inputs": None,
            })
        self._discard(*old_files)
        return self.view(job_id)

    async def _tailor(self, job: JobApplicationRecord, master_cv: Dict, language: str) -> TailoringOutput:
        prompt = TAILORING_PROMPT.format(
            language_name=LANGUAGE_NAMES.get(language, language),
            today=date.today().isoformat(),
            job_title=job.job_title,
            company_name=job.company_name,
        )
        user = (
            f"{prompt}\n"
            f"Target Job Description:\n{job.job_description_text}\n\n"
            f"Base CV (JSON Resume):\n{json.dumps(master_cv, ensure_ascii=False)}"
        )
        completion = await self.chat_fn(
            [{"role": "system", "content": TAILORING_SYSTEM}, {"role": "user", "content": user}],
            json_mode=True,
        )
        try:
            return TailoringOutput.model_validate(extract_json(completion))
        except ValueError as exc:
            # pydantic's ValidationError is a ValueError too
            if isinstance(exc, ValidationError):
                detail = "; ".join(
                    f"{'.'.join(str(p) for p in e['loc']) or '$'}: {e['msg']}" for e in exc.errors())
            else:
                detail = str(exc)
            raise LlmResponseError(f"Invalid generation response: {detail}") from exc

    def _fail(self, job: JobApplicationRecord, message: str) -> None:
        ok = self.jobs.compare_and_set(
            job.id, fsm.status_values(fsm.sources("fail")),
            {"generation_status": S.ERROR.value, "generation_error": message},
            expected_token=job.generation_token,
        )
        if ok:
            logger.warning("Generation for job %s failed: %s", job.id, message)
        else:
            logger.info("Generation failure for job %s dropped: superseded", job.id)

    def submit(self, job_id: str, user_input_data: Dict[str, str]) -> Dict[str, Any]:
        job = self._job(job_id)
        fsm.check("submit", job.generation_status)
        values = user_input_data or {}
        missing = [
            item["name"] for item in (job.required_inputs or [])
            if not str(values.get(item["name"]) or "").strip()
        ]
        if missing:
            raise MissingPreconditionError(f"Missing required inputs: {', '.join(missing)}")
        letter = fill_placeholders(job.cover_letter_template or "", values)
        self._transition(job, "submit", {
            "draft_cover_letter_text": letter,
            "cover_letter_template": None,
            "required_inputs": None,
        })
        logger.info("User inputs submitted for job %s", job_id)
        return self.view(job_id)

    def edit_draft(self, job_id: str, draft_cv_json: Optional[Dict] = None,
                   draft_cover_letter_text: Optional[str] = None) -> Dict[str, Any]:
        if draft_cv_json is None and draft_cover_letter_text is None:
            raise MissingPreconditionError("Nothing to save: send draftCvJson or draftCoverLetterText")
        job = self._job(job_id)
        # a fresh token turns any render started from the previous draft stale
        changes: Dict[str, Any] = {
            "generation_token": uuid.uuid4().hex,
            "generated_cv_filename": None,
            "generated_cover_letter_filename": None,
        }
        if draft_cv_json is not None:
            changes["draft_cv_json"] = draft_cv_json
        if draft_cover_letter_text is not None:
            changes["draft_cover_letter_text"] = draft_cover_letter_text
        self._transition(job, "edit_draft", changes)
        self._discard(job.generated_cv_filename, job.generated_cover_letter_filename)
        return self.view(job_id)

    def finalize(self, job_id: str, user_input_data: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        job = self._job(job_id)
        if job.generation_status == S.PENDING_INPUT.value:
            self.submit(job_id, user_input_data or {})
            job = self._job(job_id)
        self._require_draft(job, "finalize")

        cv_file = self._render(job, "cv")
        letter_file = None
        if job.draft_cover_letter_text:
            try:
                letter_file = self._render(job, "cover_letter")
            except RenderError:
                self._discard(cv_file)
                raise
        self._commit_files(job, "finalize", {
            "generated_cv_filename": cv_file,
            "generated_cover_letter_filename": letter_file,
        })
        logger.info("Finalized documents for job %s", job_id)
        return {"status": "success", "cvFilename": cv_file, "coverLetterFilename": letter_file}

    def render_cv(self, job_id: str) -> Dict[str, Any]:
        job = self._job(job_id)
        self._require_draft(job, "render_cv")
        filename = self._render(job, "cv")
        self._commit_files(job, "render_cv", {"generated_cv_filename": filename})
        return {"status": "success", "cvFilename": filename}

    def render_cover_letter(self, job_id: str) -> Dict[str, Any]:
        job = self._job(job_id)
        self._require_draft(job, "render_cover_letter")
        if not job.draft_cover_letter_text:
            raise MissingPreconditionError("No cover letter draft to render")
        filename = self._render(job, "cover_letter")
        self._commit_files(job, "render_cover_letter", {"generated_cover_letter_filename": filename})
        return {"status": "success", "coverLetterFilename": filename}

    def _require_draft(self, job: JobApplicationRecord, event: str) -> None:
        fsm.check(event, job.generation_status, has_draft=job.draft_cv_json is not None)
        if job.draft_cv_json is None:
            raise StateConflictError("No draft CV to render; generate documents first",
                                     current_status=job.generation_status)

    def _render(self, job: JobApplicationRecord, kind: str) -> str:
        language = job.generation_language or job.language or "en"
        theme = job.theme or "modern"
        try:
            if kind == "cv":
                prefix = document_prefix("CV", job.draft_cv_json, job.company_name, job.job_title, language)
                return self.renderer.render_cv(job.draft_cv_json, prefix, theme)
            prefix = document_prefix("CoverLetter", job.draft_cv_json, job.company_name, job.job_title, language)
            return self.renderer.render_cover_letter(job.draft_cover_letter_text, prefix, theme)
        except RenderError as exc:
            if job.generation_status in fsm.status_values(fsm.sources("fail")):
                self._fail(job, exc.message)
            raise

    def _commit_files(self, job: JobApplicationRecord, event: str, files: Dict[str, Optional[str]]) -> None:
        try:
            self._transition(job, event, {**files, "generation_error": None}, has_draft=True)
        except StateConflictError:
            logger.info("Render for job %s dropped: draft changed while rendering", job.id)
            self._discard(*files.values())
            raise
        superseded = {
            "generated_cv_filename": job.generated_cv_filename,
            "generated_cover_letter_filename": job.generated_cover_letter_filename,
        }
        self._discard(*(old for key, old in superseded.items() if key in files and old != files[key]))
