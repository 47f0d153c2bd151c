import uuid
from typing import Any, Dict, Iterable, Optional, Union
from sqlalchemy import update
from infra.db.session import SessionLocal
from infra.db.models import JobApplicationRecord, MasterCvRecord

_ANY = object()
MASTER_CV_ID = "master"


class JobsRepository:
    def __init__(self, session_factory=SessionLocal):
        self._sessions = session_factory

    def create(self, job_title: str, company_name: str, *, job_description_text: Optional[str] = None,
               job_url: Optional[str] = None, language: Optional[str] = None,
               notes: Optional[str] = None, status: str = "Not Applied") -> JobApplicationRecord:
        jid = f"jobapp_{uuid.uuid4().hex}"
        rec = JobApplicationRecord(id=jid, job_title=job_title, company_name=company_name,
                                   job_description_text=job_description_text, job_url=job_url,
                                   language=language, notes=notes, status=status,
                                   generation_status="none")
        with self._sessions() as s:
            s.add(rec)
            s.commit()
            s.refresh(rec)
        return rec

    def get(self, job_id: str) -> Optional[JobApplicationRecord]:
        with self._sessions() as s:
            return s.get(JobApplicationRecord, job_id)

    def compare_and_set(self, job_id: str, expected_status: Union[str, Iterable[str]],
                        changes: Dict[str, Any], *, expected_token: Any = _ANY) -> bool:
        """Apply `changes` only if the generation status (and token) still match."""
        statuses = [expected_status] if isinstance(expected_status, str) else list(expected_status)
        stmt = update(JobApplicationRecord).where(
            JobApplicationRecord.id == job_id,
            JobApplicationRecord.generation_status.in_(statuses),
        )
        if expected_token is not _ANY:
            if expected_token is None:
                stmt = stmt.where(JobApplicationRecord.generation_token.is_(None))
            else:
                stmt = stmt.where(JobApplicationRecord.generation_token == expected_token)
        with self._sessions() as s:
            result = s.execute(stmt.values(**changes))
            s.commit()
            return result.rowcount == 1

    def get_master_cv(self) -> Optional[Dict]:
        with self._sessions() as s:
            rec = s.get(MasterCvRecord, MASTER_CV_ID)
            return rec.cv_json if rec else None

    def save_master_cv(self, cv_json: Dict) -> None:
        with self._sessions() as s:
            s.merge(MasterCvRecord(id=MASTER_CV_ID, cv_json=cv_json))
            s.commit()
