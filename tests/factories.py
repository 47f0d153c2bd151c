import json

from domain.errors import RenderError
from infra.pdf.renderer import PdfRenderer


JOB_TEXT = (
    "Senior Backend Engineer. We need Python, FastAPI and PostgreSQL experience. "
    "Kubernetes is a plus. Please state your salary expectation and earliest start date."
)

MASTER_CV = {
    "basics": {"name": "Jane Doe", "label": "Backend Engineer", "email": "jane@example.com",
               "location": {"city": "Berlin"}},
    "work": [{"name": "Acme", "position": "Engineer", "startDate": "2020-01",
              "highlights": ["Built APIs in Python"]}],
    "skills": [{"name": "Backend", "keywords": ["Python", "FastAPI"]}],
}


def ats_payload(**overrides):
    payload = {
        "atsScore": 78,
        "scoreBreakdown": {"technicalSkills": 80, "experienceRelevance": 75,
                           "additionalSkills": 70, "formatting": 90},
        "matchedKeywords": ["Python", "FastAPI"],
        "missingKeywords": [{"keyword": "Kubernetes", "priority": "high", "context": "Listed as a plus"}],
        "matchedSkills": ["Python", "FastAPI"],
        "missingSkills": [{"skill": "PostgreSQL", "priority": "medium", "context": "Required database"}],
        "formattingIssues": [],
        "recommendations": ["Add PostgreSQL experience", "Use a standard summary header"],
    }
    payload.update(overrides)
    return payload


def tailoring_payload(letter="Dear Hiring Manager,\n\nI am applying.\n\nKind regards", name="Jane Doe",
                      required_inputs=None):
    cv = json.loads(json.dumps(MASTER_CV))
    cv["basics"]["name"] = name
    return {"tailoredCvJson": cv, "coverLetterText": letter, "requiredInputs": required_inputs or []}


class FakeLlm:
    """Stands in for chat_completion; replies are strings, dicts, exceptions or callables."""

    def __init__(self):
        self.replies = []
        self.calls = []

    def queue(self, *replies):
        self.replies.extend(replies)
        return self

    async def __call__(self, messages, *, json_mode=False):
        self.calls.append({"messages": messages, "json_mode": json_mode})
        reply = self.replies.pop(0)
        if callable(reply):
            reply = reply()
        if isinstance(reply, Exception):
            raise reply
        return reply if isinstance(reply, str) else json.dumps(reply)

    def prompt(self, index=-1):
        return "\n".join(m["content"] for m in self.calls[index]["messages"])


class FakeRenderer(PdfRenderer):
    """Renders the real templates but writes a stub PDF instead of running WeasyPrint."""

    def __init__(self, files):
        super().__init__(files)
        self.fail = False
        self.rendered = []
        # called once, before the next write
        self.on_write = None

    def _write(self, html, filename_prefix, label):
        if self.on_write:
            hook, self.on_write = self.on_write, None
            hook()
        if self.fail:
            raise RenderError(f"{label} PDF generation failed: boom")
        self.files.ensure_dir()
        filename = f"{filename_prefix}_{len(self.rendered) + 1}.pdf"
        with open(self.files.get_path(filename), "wb") as fh:
            fh.write(b"%PDF-1.4 stub")
        self.rendered.append((label, html))
        return filename


