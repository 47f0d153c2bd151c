import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from domain.errors import LlmResponseError, MissingPreconditionError, NotFoundError
from infra.db.models import ChatMessageRecord
from infra.llm.client import ChatFn, chat_completion
from infra.llm.prompts import CHAT_PROMPT, CHAT_SYSTEM
from infra.repositories.chat_repository import ChatRepository
from infra.repositories.jobs_repository import JobsRepository

logger = logging.getLogger(__name__)

HISTORY_CONTEXT = 10
MAX_QUESTION_LENGTH = 1000


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def message_view(msg: ChatMessageRecord) -> Dict[str, str]:
    return {"sender": msg.sender, "text": msg.text, "timestamp": msg.created_at.isoformat() + "Z"}


class ChatService:
    def __init__(self, jobs: Optional[JobsRepository] = None,
                 chats: Optional[ChatRepository] = None,
                 chat_fn: ChatFn = chat_completion):
        self.jobs = jobs or JobsRepository()
        self.chats = chats or ChatRepository()
        self.chat_fn = chat_fn

    async def ask(self, job_id: str, question: str) -> str:
        question = (question or "").strip()
        if not question or len(question) > MAX_QUESTION_LENGTH:
            raise MissingPreconditionError(
                f"Question must be between 1 and {MAX_QUESTION_LENGTH} characters")
        job = self.jobs.get(job_id)
        if not job:
            raise NotFoundError("Job application not found")
        if not (job.job_description_text or "").strip():
            raise MissingPreconditionError("This job has no description text to answer from")

        asked_at = _now()
        messages = [
            {"role": "system", "content": CHAT_SYSTEM},
            {"role": "user", "content": f"{CHAT_PROMPT}\nJob Description:\n{job.job_description_text}"},
        ]
        for msg in self.chats.history(job_id, last=HISTORY_CONTEXT):
            messages.append({"role": "user" if msg.sender == "user" else "assistant", "content": msg.text})
        messages.append({"role": "user", "content": question})

        answer = (await self.chat_fn(messages) or "").strip()
        if not answer:
            raise LlmResponseError("LLM returned an empty answer")
        self.chats.append_exchange(job_id, question, asked_at, answer, _now())
        logger.info("Answered question for job %s (%d chars)", job_id, len(answer))
        return answer

    def history(self, job_id: str) -> List[Dict[str, str]]:
        if not self.jobs.get(job_id):
            raise NotFoundError("Job application not found")
        return [message_view(m) for m in self.chats.history(job_id)]
