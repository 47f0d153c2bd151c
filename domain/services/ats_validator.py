from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError

from domain.ats_schema import AtsResponse
from infra.llm.client import extract_json


@dataclass(frozen=True)
class FieldIssue:
    path: str
    reason: str


@dataclass(frozen=True)
class AtsValidationError:
    issues: List[FieldIssue] = field(default_factory=list)

    def describe(self) -> str:
        return "; ".join(f"{i.path}: {i.reason}" for i in self.issues)


@dataclass(frozen=True)
class ValidationResult:
    value: Optional[AtsResponse] = None
    error: Optional[AtsValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _path(loc: Tuple) -> str:
    return ".".join(str(part) for part in loc) if loc else "$"


def validate(raw: Any) -> ValidationResult:
    try:
        parsed = AtsResponse.model_validate(raw)
    except ValidationError as exc:
        issues = [FieldIssue(_path(e["loc"]), e["msg"]) for e in exc.errors()]
        return ValidationResult(error=AtsValidationError(issues))
    return ValidationResult(value=parsed)


def parse_completion(text: Optional[str]) -> ValidationResult:
    try:
        raw = extract_json(text)
    except ValueError as exc:
        return ValidationResult(error=AtsValidationError([FieldIssue("$", str(exc))]))
    return validate(raw)
