from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional

Language = Literal["en", "de"]
Theme = Literal["modern", "classic"]
ApplicationStatus = Literal["Applied", "Not Applied", "Interview", "Assessment", "Rejected", "Closed", "Offer"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobCreateRequest(CamelModel):
    job_title: str = Field(..., min_length=1)
    company_name: str = Field(..., min_length=1)
    job_description_text: Optional[str] = None
    job_url: Optional[str] = None
    language: Optional[Language] = None
    notes: Optional[str] = None
    status: ApplicationStatus = "Not Applied"


class JobResponse(CamelModel):
    id: str
    job_title: str
    company_name: str
    status: str
    job_url: Optional[str] = None
    job_description_text: Optional[str] = None
    language: Optional[str] = None
    notes: Optional[str] = None
    generation_status: str


class MasterCvRequest(CamelModel):
    cv_json: Dict[str, Any]


class GenerateRequest(CamelModel):
    language: Language = "en"
    theme: Theme = "modern"


class SubmitInputsRequest(CamelModel):
    user_input_data: Dict[str, str]


class FinalizeRequest(CamelModel):
    user_input_data: Optional[Dict[str, str]] = None


class DraftUpdateRequest(CamelModel):
    draft_cv_json: Optional[Dict[str, Any]] = None
    draft_cover_letter_text: Optional[str] = None


class ScanRequest(CamelModel):
    job_application_id: Optional[str] = None
    analysis_id: Optional[str] = None


class ScanResponse(CamelModel):
    analysis_id: str


class ChatRequest(CamelModel):
    question: str = Field(..., min_length=1, max_length=1000)


class ChatResponse(CamelModel):
    answer: str


class ChatMessage(CamelModel):
    sender: Literal["user", "ai"]
    text: str
    timestamp: str


class ChatHistoryResponse(CamelModel):
    history: List[ChatMessage]
