from sqlalchemy import Column, String, Float, Integer, Text, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from infra.db.session import Base

class JobApplicationRecord(Base):
    __tablename__ = "job_applications"
    id = Column(String, primary_key=True)
    job_title = Column(String, nullable=False)
    company_name = Column(String, nullable=False)
    status = Column(String, nullable=False, default="Not Applied")  # pipeline status, not generation
    job_url = Column(String, nullable=True)
    job_description_text = Column(Text, nullable=True)
    language = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # generation lifecycle
    generation_status = Column(String, nullable=False, default="none")
    generation_token = Column(String, nullable=True)
    generation_language = Column(String, nullable=True)
    theme = Column(String, nullable=True)
    draft_cv_json = Column(JSON, nullable=True)
    draft_cover_letter_text = Column(Text, nullable=True)
    cover_letter_template = Column(Text, nullable=True)
    required_inputs = Column(JSON, nullable=True)
    generated_cv_filename = Column(String, nullable=True)
    generated_cover_letter_filename = Column(String, nullable=True)
    generation_error = Column(Text, nullable=True)

class MasterCvRecord(Base):
    __tablename__ = "master_cv"
    id = Column(String, primary_key=True)
    cv_json = Column(JSON, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

class AtsAnalysisRecord(Base):
    __tablename__ = "ats_analyses"
    id = Column(String, primary_key=True)
    job_application_id = Column(String, ForeignKey("job_applications.id"), nullable=True, index=True)
    run_token = Column(String, nullable=False)
    score = Column(Float, nullable=True)
    error = Column(Text, nullable=True)
    error_kind = Column(String, nullable=True)
    score_breakdown = Column(JSON, nullable=True)
    skill_match_details = Column(JSON, nullable=True)
    compliance_details = Column(JSON, nullable=True)
    extra_metrics = Column(JSON, nullable=True)
    started_at = Column(DateTime, nullable=False)
    cached_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

class ChatMessageRecord(Base):
    __tablename__ = "chat_messages"
    id = Column(Integer, primary_key=True, autoincrement=True)
    job_application_id = Column(String, ForeignKey("job_applications.id"), nullable=False, index=True)
    sender = Column(String, nullable=False)   # 'user' | 'ai'
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False)
