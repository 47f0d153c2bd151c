from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import select
from infra.db.session import SessionLocal
from infra.db.models import ChatMessageRecord


class ChatRepository:
    def __init__(self, session_factory=SessionLocal):
        self._sessions = session_factory

    def append_exchange(self, job_id: str, question: str, asked_at: datetime,
                        answer: str, answered_at: datetime) -> Tuple[ChatMessageRecord, ChatMessageRecord]:
        # question and answer land together or not at all
        user_msg = ChatMessageRecord(job_application_id=job_id, sender="user",
                                     text=question, created_at=asked_at)
        ai_msg = ChatMessageRecord(job_application_id=job_id, sender="ai",
                                   text=answer, created_at=answered_at)
        with self._sessions() as s:
            s.add(user_msg)
            s.flush()
            s.add(ai_msg)
            s.commit()
        return user_msg, ai_msg

    def history(self, job_id: str, last: Optional[int] = None) -> List[ChatMessageRecord]:
        stmt = (select(ChatMessageRecord)
                .where(ChatMessageRecord.job_application_id == job_id)
                .order_by(ChatMessageRecord.id))
        with self._sessions() as s:
            rows = list(s.execute(stmt).scalars())
        return rows[-last:] if last else rows
