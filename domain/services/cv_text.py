from typing import Dict, List


def _dated(lines: List[str], item: Dict) -> None:
    if item.get("startDate"):
        lines.append(f"Start Date: {item['startDate']}")
    if item.get("startDate") or item.get("endDate"):
        lines.append(f"End Date: {item.get('endDate') or 'Present'}")


def _listed(values) -> List:
    # drafts come from the model or hand edits, so lists may hold anything
    if isinstance(values, (list, tuple)):
        return [v for v in values if v is not None and v != ""]
    return [values] if values else []


def _joined(values) -> str:
    return ", ".join(str(v) for v in _listed(values))


def _bullets(lines: List[str], label: str, values) -> None:
    values = _listed(values)
    if values:
        lines.append(f"{label}:")
        lines.extend(f"  - {v}" for v in values)


def _section(lines: List[str], title: str, items, render, separated: bool = True) -> None:
    items = [i for i in (items if isinstance(items, list) else []) if isinstance(i, dict)]
    if not items:
        return
    lines.append(f"\n{title}")
    for index, item in enumerate(items):
        if index and separated:
            lines.append("---")
        render(lines, item)


def _work(lines, job):
    for key, label in (("name", "Company"), ("position", "Position")):
        if job.get(key):
            lines.append(f"{label}: {job[key]}")
    _dated(lines, job)
    if job.get("summary"):
        lines.append(f"Summary: {job['summary']}")
    _bullets(lines, "Highlights", job.get("highlights"))


def _education(lines, edu):
    for key, label in (("institution", "Institution"), ("area", "Area"),
                       ("studyType", "Degree"), ("score", "GPA/Score")):
        if edu.get(key):
            lines.append(f"{label}: {edu[key]}")
    _dated(lines, edu)
    if edu.get("courses"):
        lines.append(f"Courses: {_joined(edu['courses'])}")


def _skill(lines, skill):
    if skill.get("name"):
        lines.append(f"Category: {skill['name']}")
    if skill.get("level"):
        lines.append(f"Level: {skill['level']}")
    if skill.get("keywords"):
        lines.append(f"Skills: {_joined(skill['keywords'])}")


def _project(lines, project):
    if project.get("name"):
        lines.append(f"Project: {project['name']}")
    if project.get("description"):
        lines.append(f"Description: {project['description']}")
    _bullets(lines, "Highlights", project.get("highlights"))
    if project.get("keywords"):
        lines.append(f"Technologies: {_joined(project['keywords'])}")


def _language(lines, lang):
    fluency = f" ({lang['fluency']})" if lang.get("fluency") else ""
    lines.append(f"{lang.get('language', '')}{fluency}")


def _certificate(lines, cert):
    for key, label in (("name", "Certificate"), ("issuer", "Issuer"), ("date", "Date")):
        if cert.get(key):
            lines.append(f"{label}: {cert[key]}")


def cv_to_text(cv_json: Dict) -> str:
    """Flatten a JSON Resume document into the plain text an ATS would parse."""
    cv_json = cv_json if isinstance(cv_json, dict) else {}
    lines: List[str] = []
    basics = cv_json.get("basics")
    basics = basics if isinstance(basics, dict) else {}
    for key, label in (("name", "Name"), ("label", "Title"), ("email", "Email"),
                       ("phone", "Phone"), ("url", "Website")):
        if basics.get(key):
            lines.append(f"{label}: {basics[key]}")
    location = basics.get("location")
    location = location if isinstance(location, dict) else {}
    parts = [location.get(k) for k in ("address", "city", "region", "postalCode", "countryCode")]
    if any(parts):
        lines.append(f"Location: {_joined(parts)}")
    if basics.get("summary"):
        lines.append(f"\nSummary:\n{basics['summary']}")

    _section(lines, "WORK EXPERIENCE", cv_json.get("work"), _work)
    _section(lines, "EDUCATION", cv_json.get("education"), _education)
    _section(lines, "SKILLS", cv_json.get("skills"), _skill, separated=False)
    _section(lines, "PROJECTS", cv_json.get("projects"), _project)
    _section(lines, "LANGUAGES", cv_json.get("languages"), _language, separated=False)
    _section(lines, "CERTIFICATES", cv_json.get("certificates"), _certificate)
    return "\n".join(lines).strip()
