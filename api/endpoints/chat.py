from fastapi import APIRouter, Depends
from api.deps import get_chat_service
from domain.schemas import ChatHistoryResponse, ChatRequest, ChatResponse
from domain.services.chat import ChatService

router = APIRouter(prefix="/chat")


@router.post("/{job_id}", response_model=ChatResponse)
async def ask(job_id: str, body: ChatRequest, service: ChatService = Depends(get_chat_service)) -> ChatResponse:
    answer = await service.ask(job_id, body.question)
    return ChatResponse(answer=answer)


@router.get("/{job_id}/history", response_model=ChatHistoryResponse)
def history(job_id: str, service: ChatService = Depends(get_chat_service)) -> ChatHistoryResponse:
    return ChatHistoryResponse(history=service.history(job_id))
