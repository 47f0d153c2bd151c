import logging
import os
import re
import time
from typing import Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from domain.errors import RenderError
from infra.repositories.files_repository import FilesRepository

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "templates")
THEMES = ("modern", "classic")


def sanitize(value: Optional[str]) -> str:
    cleaned = re.sub(r"_+", "_", re.sub(r"[^a-zA-Z0-9_-]", "_", value or "")).strip("_")
    return cleaned or "Unknown"


def document_prefix(kind: str, cv_json: Dict, company_name: str, job_title: str, language: str) -> str:
    basics = (cv_json or {}).get("basics")
    applicant = sanitize(str((basics if isinstance(basics, dict) else {}).get("name") or "Applicant"))
    return f"{kind}_{applicant}_{sanitize(company_name)}_{sanitize(job_title)}_{language}"


class PdfRenderer:
    def __init__(self, files: Optional[FilesRepository] = None):
        self.files = files or FilesRepository()
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(["html"]),
        )

    def render_cv(self, cv_json: Dict, filename_prefix: str, theme: str = "modern") -> str:
        resume = dict(cv_json or {})
        basics = resume.get("basics")
        resume["basics"] = {"name": "Applicant", **(basics if isinstance(basics, dict) else {})}
        for section in ("work", "education", "skills", "projects", "languages"):
            if not isinstance(resume.get(section), list):
                resume[section] = []
        html = self.env.get_template("cv.html").render(resume=resume, theme=self._theme(theme))
        return self._write(html, filename_prefix, "CV")

    def render_cover_letter(self, text: str, filename_prefix: str, theme: str = "modern") -> str:
        paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text or "") if p.strip()]
        html = self.env.get_template("cover_letter.html").render(
            paragraphs=paragraphs, theme=self._theme(theme))
        return self._write(html, filename_prefix, "Cover letter")

    def _theme(self, theme: Optional[str]) -> str:
        return theme if theme in THEMES else THEMES[0]

    def _write(self, html: str, filename_prefix: str, label: str) -> str:
        from weasyprint import HTML

        self.files.ensure_dir()
        filename = f"{filename_prefix}_{int(time.time() * 1000)}.pdf"
        try:
            HTML(string=html).write_pdf(self.files.get_path(filename))
        except Exception as exc:
            raise RenderError(f"{label} PDF generation failed: {exc}") from exc
        logger.info("%s PDF written to %s", label, filename)
        return filename
