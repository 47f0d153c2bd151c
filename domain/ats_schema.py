from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Scores are validated, never clamped: out of range means the model ignored the prompt.
Score = Annotated[float, Field(ge=0, le=100, strict=True)]
Count = Annotated[float, Field(ge=0, strict=True)]
Priority = Literal["high", "medium", "low"]

LEGACY_PRIORITY = "medium"
LEGACY_KEYWORD_CONTEXT = "Identified as a relevant keyword from job description"
LEGACY_SKILL_CONTEXT = "Identified as a relevant skill from job requirements"

# weights of the breakdown categories, fixed policy
SCORE_WEIGHTS = {
    "technicalSkills": 0.40,
    "experienceRelevance": 0.30,
    "additionalSkills": 0.20,
    "formatting": 0.10,
}


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MissingKeyword(_WireModel):
    keyword: str
    priority: Priority
    context: str


class MissingSkill(_WireModel):
    skill: str
    priority: Priority
    context: str


class ActionableFeedback(_WireModel):
    priority: Priority
    action: str
    impact: str


class ScoreBreakdown(_WireModel):
    technical_skills: Score
    experience_relevance: Score
    additional_skills: Score
    formatting: Score


class SectionCompleteness(_WireModel):
    present: List[str]
    missing: List[str]
    score: Score


class QuantifiableMetrics(_WireModel):
    has_metrics: StrictBool
    examples: List[str]
    score: Score


class SkillsAnalysis(_WireModel):
    hard_skills: List[str]
    soft_skills: List[str]
    score: Score


class LengthAnalysis(_WireModel):
    page_count: Count
    word_count: Count
    is_optimal: StrictBool
    score: Score


class StandardHeaders(_WireModel):
    is_standard: StrictBool
    non_standard_headers: List[str]
    score: Score


def _upgrade_legacy(value: Any, key: str, context: str) -> Any:
    # the first element decides the shape of the whole list
    if not isinstance(value, list) or not value or not isinstance(value[0], str):
        return value
    upgraded = []
    for index, item in enumerate(value):
        if not isinstance(item, str):
            raise ValueError(
                f"item {index} is not a string; a list starting with a string must contain only strings")
        upgraded.append({key: item, "priority": LEGACY_PRIORITY, "context": context})
    return upgraded


class AtsResponse(_WireModel):
    ats_score: Score
    score_breakdown: Optional[ScoreBreakdown] = None

    matched_keywords: List[str]
    missing_keywords: List[MissingKeyword]
    industry_keywords: Optional[List[str]] = None
    missing_industry_keywords: Optional[List[str]] = None

    matched_skills: List[str]
    missing_skills: List[MissingSkill]

    formatting_issues: List[str]
    recommendations: List[str]
    actionable_feedback: Optional[List[ActionableFeedback]] = None

    section_scores: Optional[Dict[str, Score]] = None
    skill_match_percentage: Optional[Score] = None
    gap_analysis: Optional[Dict[str, Any]] = None
    section_completeness: Optional[SectionCompleteness] = None
    quantifiable_metrics: Optional[QuantifiableMetrics] = None
    skills_analysis: Optional[SkillsAnalysis] = None
    length_analysis: Optional[LengthAnalysis] = None
    readability_score: Optional[Score] = None
    ats_blocking_elements: Optional[List[str]] = None
    standard_headers: Optional[StandardHeaders] = None

    @model_validator(mode="before")
    @classmethod
    def _drop_unreported(cls, data: Any) -> Any:
        # an explicit null on an optional field means "not reported", same as absent
        if not isinstance(data, dict):
            return data
        optional = {f.alias for f in cls.model_fields.values() if not f.is_required()}
        return {k: v for k, v in data.items() if not (v is None and k in optional)}

    @field_validator("missing_keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, value):
        return _upgrade_legacy(value, "keyword", LEGACY_KEYWORD_CONTEXT)

    @field_validator("missing_skills", mode="before")
    @classmethod
    def _normalize_skills(cls, value):
        return _upgrade_legacy(value, "skill", LEGACY_SKILL_CONTEXT)

    def to_canonical(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)
