import itertools
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from client.api_client import ApiError, TrackerApiClient

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


@dataclass
class LocalMessage:
    sender: str
    text: str
    # pending | confirmed | failed
    status: str = "pending"
    error: Optional[str] = None
    id: int = 0

    def __post_init__(self):
        if not self.id:
            self.id = next(_ids)


class ChatThread:
    """Local view of one job's chat; a question stays visible with an explicit status."""

    def __init__(self, client: TrackerApiClient, job_id: str):
        self.client = client
        self.job_id = job_id
        self.messages: List[LocalMessage] = []

    async def load(self) -> List[LocalMessage]:
        history = await self.client.chat_history(self.job_id)
        self.messages = [LocalMessage(m["sender"], m["text"], "confirmed") for m in history]
        return self.messages

    async def ask(self, question: str) -> LocalMessage:
        message = LocalMessage("user", question)
        self.messages.append(message)
        return await self._send(message)

    async def retry(self, message_id: int) -> LocalMessage:
        message = next((m for m in self.messages if m.id == message_id), None)
        if message is None or message.status != "failed":
            raise ValueError("only a failed question can be retried")
        message.status = "pending"
        message.error = None
        return await self._send(message)

    async def _send(self, message: LocalMessage) -> LocalMessage:
        try:
            answer = await self.client.ask(self.job_id, message.text)
        except (ApiError, httpx.HTTPError) as exc:
            message.status = "failed"
            message.error = str(exc)
            logger.info("Chat question failed for job %s: %s", self.job_id, exc)
            return message
        message.status = "confirmed"
        index = self.messages.index(message)
        self.messages.insert(index + 1, LocalMessage("ai", answer, "confirmed"))
        return message
