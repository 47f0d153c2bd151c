import uuid
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple
from sqlalchemy import select, update
from infra.db.session import SessionLocal
from infra.db.models import AtsAnalysisRecord

# columns cleared when an analysis goes (back) to pending
_PENDING = dict(score=None, error=None, error_kind=None, score_breakdown=None,
                skill_match_details=None, compliance_details=None,
                extra_metrics=None, cached_at=None)


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AtsAnalysesRepository:
    def __init__(self, session_factory=SessionLocal):
        self._sessions = session_factory

    def create_pending(self, job_application_id: Optional[str]) -> Tuple[str, str]:
        aid = f"ats_{uuid.uuid4().hex}"
        token = uuid.uuid4().hex
        with self._sessions() as s:
            s.add(AtsAnalysisRecord(id=aid, job_application_id=job_application_id,
                                    run_token=token, started_at=_now(), **_PENDING))
            s.commit()
        return aid, token

    def reset_pending(self, analysis_id: str, job_application_id: Optional[str]) -> Optional[str]:
        """Replace the record wholesale with a fresh pending run; returns the new run token."""
        token = uuid.uuid4().hex
        with self._sessions() as s:
            rec = s.get(AtsAnalysisRecord, analysis_id)
            if not rec:
                return None
            rec.job_application_id = job_application_id
            rec.run_token = token
            rec.started_at = _now()
            for column, value in _PENDING.items():
                setattr(rec, column, value)
            s.commit()
        return token

    def complete(self, analysis_id: str, run_token: str, *, score: float,
                 score_breakdown: Optional[Dict], skill_match_details: Dict,
                 compliance_details: Dict, extra_metrics: Optional[Dict]) -> bool:
        return self._finish(analysis_id, run_token, dict(
            score=float(score), score_breakdown=score_breakdown,
            skill_match_details=skill_match_details,
            compliance_details=compliance_details,
            extra_metrics=extra_metrics, cached_at=_now()))

    def fail(self, analysis_id: str, run_token: str, error: str, kind: str) -> bool:
        return self._finish(analysis_id, run_token, dict(error=error, error_kind=kind))

    def _finish(self, analysis_id: str, run_token: str, values: Dict) -> bool:
        # a run that was superseded by a rescan no longer owns the record
        stmt = update(AtsAnalysisRecord).where(
            AtsAnalysisRecord.id == analysis_id,
            AtsAnalysisRecord.run_token == run_token,
            AtsAnalysisRecord.score.is_(None),
            AtsAnalysisRecord.error.is_(None),
        ).values(**values)
        with self._sessions() as s:
            result = s.execute(stmt)
            s.commit()
            return result.rowcount == 1

    def get(self, analysis_id: str) -> Optional[AtsAnalysisRecord]:
        with self._sessions() as s:
            return s.get(AtsAnalysisRecord, analysis_id)

    def latest_for_job(self, job_application_id: str) -> Optional[AtsAnalysisRecord]:
        stmt = (select(AtsAnalysisRecord)
                .where(AtsAnalysisRecord.job_application_id == job_application_id)
                .order_by(AtsAnalysisRecord.started_at.desc())
                .limit(1))
        with self._sessions() as s:
            return s.execute(stmt).scalars().first()
