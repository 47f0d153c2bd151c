import json

from domain.ats_schema import LEGACY_KEYWORD_CONTEXT, LEGACY_SKILL_CONTEXT
from domain.services.ats_validator import parse_completion, validate
from tests.factories import ats_payload


def _paths(result):
    return [issue.path for issue in result.error.issues]


def test_valid_payload_is_returned_in_canonical_shape():
    result = validate(ats_payload())
    assert result.ok and result.error is None
    canonical = result.value.to_canonical()
    assert canonical["atsScore"] == 78
    assert canonical["missingKeywords"][0] == {
        "keyword": "Kubernetes", "priority": "high", "context": "Listed as a plus"}
    assert "sectionScores" not in canonical
    assert "skillMatchPercentage" not in canonical


def test_legacy_string_lists_are_upgraded():
    result = validate(ats_payload(missingKeywords=["Kubernetes", "Terraform"], missingSkills=["PostgreSQL"]))
    assert result.ok
    canonical = result.value.to_canonical()
    assert canonical["missingKeywords"] == [
        {"keyword": "Kubernetes", "priority": "medium", "context": LEGACY_KEYWORD_CONTEXT},
        {"keyword": "Terraform", "priority": "medium", "context": LEGACY_KEYWORD_CONTEXT},
    ]
    assert canonical["missingSkills"] == [
        {"skill": "PostgreSQL", "priority": "medium", "context": LEGACY_SKILL_CONTEXT}]


def test_list_shape_is_decided_by_first_element():
    mixed = ["Kubernetes", {"keyword": "Go", "priority": "low", "context": "nice to have"}]
    result = validate(ats_payload(missingKeywords=mixed))
    assert not result.ok
    assert _paths(result) == ["missingKeywords"]


def test_empty_missing_lists_are_valid():
    result = validate(ats_payload(missingKeywords=[], missingSkills=[]))
    assert result.ok
    assert result.value.missing_keywords == []


def test_scores_out_of_range_fail_and_are_not_clamped():
    result = validate(ats_payload(atsScore=101))
    assert not result.ok
    assert _paths(result) == ["atsScore"]

    breakdown = dict(ats_payload()["scoreBreakdown"], formatting=-1)
    result = validate(ats_payload(scoreBreakdown=breakdown))
    assert _paths(result) == ["scoreBreakdown.formatting"]

    result = validate(ats_payload(sectionScores={"Skills": 120}))
    assert _paths(result) == ["sectionScores.Skills"]


def test_bounds_are_inclusive_and_ints_are_numbers():
    assert validate(ats_payload(atsScore=0)).ok
    assert validate(ats_payload(atsScore=100, skillMatchPercentage=100.0)).ok


def test_booleans_are_not_scores():
    result = validate(ats_payload(atsScore=True))
    assert not result.ok
    assert _paths(result) == ["atsScore"]


def test_missing_required_field_is_reported_by_path():
    payload = ats_payload()
    del payload["matchedSkills"]
    result = validate(payload)
    assert not result.ok
    assert result.value is None
    assert _paths(result) == ["matchedSkills"]


def test_null_optional_is_absent_but_null_required_fails():
    result = validate(ats_payload(scoreBreakdown=None, gapAnalysis=None))
    assert result.ok
    assert "scoreBreakdown" not in result.value.to_canonical()

    result = validate(ats_payload(recommendations=None))
    assert _paths(result) == ["recommendations"]


def test_invalid_priority_fails():
    bad = [{"skill": "Go", "priority": "urgent", "context": "x"}]
    result = validate(ats_payload(missingSkills=bad))
    assert _paths(result) == ["missingSkills.0.priority"]


def test_optional_metrics_pass_through():
    extra = {
        "readabilityScore": 64,
        "lengthAnalysis": {"pageCount": 2, "wordCount": 640, "isOptimal": True, "score": 85},
        "atsBlockingElements": ["table in header"],
    }
    result = validate(ats_payload(**extra))
    assert result.ok
    canonical = result.value.to_canonical()
    for key, value in extra.items():
        assert canonical[key] == value


def test_non_object_input_fails_at_root():
    result = validate(["not", "an", "object"])
    assert _paths(result) == ["$"]


def test_parse_completion_accepts_fenced_json():
    text = "```json\n" + json.dumps(ats_payload()) + "\n```"
    assert parse_completion(text).ok


def test_parse_completion_reports_undecodable_text():
    result = parse_completion("I think the CV is great!")
    assert not result.ok
    assert _paths(result) == ["$"]
    assert "not valid JSON" in result.error.describe()
