import json
import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from domain.ats_schema import SCORE_WEIGHTS, AtsResponse
from domain.errors import AppError, MissingPreconditionError, NotFoundError, StateConflictError
from domain.services.ats_validator import parse_completion
from domain.services.cv_text import cv_to_text
from infra.db.models import AtsAnalysisRecord
from infra.llm.client import ChatFn, chat_completion
from infra.llm.prompts import ATS_ANALYSIS_PROMPT, ATS_NO_JOB_NOTE, ATS_SYSTEM
from infra.repositories.ats_repository import AtsAnalysesRepository
from infra.repositories.jobs_repository import JobsRepository

logger = logging.getLogger(__name__)

# canonical fields that are not folded into skill match or compliance details
EXTRA_METRIC_FIELDS = (
    "industryKeywords",
    "missingIndustryKeywords",
    "actionableFeedback",
    "sectionCompleteness",
    "quantifiableMetrics",
    "skillsAnalysis",
    "lengthAnalysis",
    "readabilityScore",
    "atsBlockingElements",
    "standardHeaders",
)

SKILL_RECOMMENDATION_TERMS = ("skill", "experience", "qualification")


def skill_match_percentage(canonical: Dict[str, Any]) -> Optional[float]:
    """Reported value when present, else the share of matched skills, rounded half up."""
    if "skillMatchPercentage" in canonical:
        return canonical["skillMatchPercentage"]
    matched = len(canonical.get("matchedSkills", []))
    total = matched + len(canonical.get("missingSkills", []))
    if total == 0:
        return None
    return math.floor(matched * 100 / total + 0.5)


def split_details(parsed: AtsResponse) -> Dict[str, Any]:
    canonical = parsed.to_canonical()
    recommendations: List[str] = canonical["recommendations"]
    skill_match_details = {
        "skillMatchPercentage": skill_match_percentage(canonical),
        "matchedSkills": canonical["matchedSkills"],
        "missingSkills": canonical["missingSkills"],
        "recommendations": [
            r for r in recommendations if any(t in r.lower() for t in SKILL_RECOMMENDATION_TERMS)
        ],
        "gapAnalysis": canonical.get("gapAnalysis", {}),
    }
    compliance_details = {
        "keywordsMatched": canonical["matchedKeywords"],
        "keywordsMissing": canonical["missingKeywords"],
        "formattingIssues": canonical["formattingIssues"],
        "suggestions": recommendations,
    }
    if "sectionScores" in canonical:
        compliance_details["sectionScores"] = canonical["sectionScores"]
    extra = {k: canonical[k] for k in EXTRA_METRIC_FIELDS if k in canonical}
    return dict(
        score=canonical["atsScore"],
        score_breakdown=canonical.get("scoreBreakdown"),
        skill_match_details=skill_match_details,
        compliance_details=compliance_details,
        extra_metrics=extra or None,
    )


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() + "Z" if value else None


def analysis_view(rec: AtsAnalysisRecord) -> Dict[str, Any]:
    if rec.score is not None:
        status = "completed"
    elif rec.error is not None:
        status = "failed"
    else:
        status = "pending"
    return {
        "analysisId": rec.id,
        "jobApplicationId": rec.job_application_id,
        "status": status,
        "score": rec.score,
        "scoreBreakdown": rec.score_breakdown,
        "scoreWeights": dict(SCORE_WEIGHTS),
        "skillMatchDetails": rec.skill_match_details,
        "complianceDetails": rec.compliance_details,
        "metrics": rec.extra_metrics,
        "error": rec.error,
        "errorKind": rec.error_kind,
        "startedAt": _iso(rec.started_at),
        "cachedAt": _iso(rec.cached_at),
    }


def build_messages(cv_json: Dict, job_description: Optional[str]) -> List[Dict[str, str]]:
    job_block = job_description.strip() if job_description else ATS_NO_JOB_NOTE
    user = (
        f"{ATS_ANALYSIS_PROMPT}\n"
        f"CV (plain text):\n{cv_to_text(cv_json)}\n\n"
        f"CV (JSON Resume):\n{json.dumps(cv_json, ensure_ascii=False)}\n\n"
        f"Job Description:\n{job_block}"
    )
    return [{"role": "system", "content": ATS_SYSTEM}, {"role": "user", "content": user}]


class AtsScoringEngine:
    def __init__(self, jobs: Optional[JobsRepository] = None,
                 analyses: Optional[AtsAnalysesRepository] = None,
                 chat_fn: ChatFn = chat_completion):
        self.jobs = jobs or JobsRepository()
        self.analyses = analyses or AtsAnalysesRepository()
        self.chat_fn = chat_fn

    def _inputs(self, job_application_id: Optional[str]) -> Tuple[Dict, Optional[str]]:
        """CV and job text a scan runs on; the job's draft wins over the master CV."""
        job_description = None
        cv_json = None
        if job_application_id:
            job = self.jobs.get(job_application_id)
            if not job:
                raise NotFoundError("Job application not found")
            if not (job.job_description_text or "").strip():
                raise MissingPreconditionError("Job application has no description text to score against")
            job_description = job.job_description_text
            cv_json = job.draft_cv_json
        cv_json = cv_json or self.jobs.get_master_cv()
        if not cv_json:
            raise MissingPreconditionError("No CV available: save a master CV or generate a draft first")
        return cv_json, job_description

    def start_scan(self, job_application_id: Optional[str] = None,
                   analysis_id: Optional[str] = None) -> Tuple[str, str]:
        """Create (or reset) a pending analysis and return (analysis_id, run_token)."""
        if analysis_id:
            rec = self.analyses.get(analysis_id)
            if not rec:
                raise NotFoundError("Analysis not found")
            # a rescan stays bound to the job it was first run for
            if job_application_id is None:
                job_application_id = rec.job_application_id
            elif job_application_id != rec.job_application_id:
                raise StateConflictError(
                    f"Analysis {analysis_id} belongs to "
                    f"{rec.job_application_id or 'a general scan'}, not {job_application_id}")
            self._inputs(job_application_id)
            token = self.analyses.reset_pending(analysis_id, job_application_id)
            if token is None:
                raise NotFoundError("Analysis not found")
            logger.info("Rescan of %s started for job %s", analysis_id, job_application_id)
            return analysis_id, token
        self._inputs(job_application_id)
        analysis_id, token = self.analyses.create_pending(job_application_id)
        logger.info("Scan %s started for job %s", analysis_id, job_application_id)
        return analysis_id, token

    async def run_scan(self, analysis_id: str, run_token: str) -> None:
        rec = self.analyses.get(analysis_id)
        if not rec or rec.run_token != run_token:
            logger.info("Scan %s superseded before it ran", analysis_id)
            return
        try:
            cv_json, job_description = self._inputs(rec.job_application_id)
            completion = await self.chat_fn(build_messages(cv_json, job_description), json_mode=True)
        except AppError as exc:
            self._record_failure(analysis_id, run_token, exc.message,
                                 "transport" if exc.kind == "transport" else "internal")
            return
        except Exception as exc:
            logger.exception("Scan %s crashed", analysis_id)
            self._record_failure(analysis_id, run_token, f"Internal error: {exc}", "internal")
            return

        result = parse_completion(completion)
        if not result.ok:
            self._record_failure(analysis_id, run_token,
                                 f"Invalid ATS response: {result.error.describe()}", "validation")
            return

        if self.analyses.complete(analysis_id, run_token, **split_details(result.value)):
            logger.info("Scan %s completed with score %s", analysis_id, result.value.ats_score)
        else:
            logger.info("Scan %s result dropped: superseded by a rescan", analysis_id)

    def _record_failure(self, analysis_id: str, run_token: str, message: str, kind: str) -> None:
        if self.analyses.fail(analysis_id, run_token, message, kind):
            logger.warning("Scan %s failed (%s): %s", analysis_id, kind, message)
        else:
            logger.info("Scan %s failure dropped: superseded by a rescan", analysis_id)

    def get_score(self, analysis_id: str) -> Dict[str, Any]:
        rec = self.analyses.get(analysis_id)
        if not rec:
            raise NotFoundError("Analysis not found")
        return analysis_view(rec)

    def latest_for_job(self, job_application_id: str) -> Dict[str, Any]:
        rec = self.analyses.latest_for_job(job_application_id)
        if not rec:
            raise NotFoundError("No analysis found for this job application")
        return analysis_view(rec)
