ATS_SYSTEM = "You are an expert ATS (Applicant Tracking System) analyzer returning only valid JSON."

ATS_ANALYSIS_PROMPT = """
Analyze the CV below for ATS compatibility and, when a Job Description is provided, for its match against it.

Scoring:
- "atsScore" (0-100) is the overall resume matching percentage.
- "scoreBreakdown" scores four categories from 0 to 100 each:
  technicalSkills (weighted 40%), experienceRelevance (30%), additionalSkills (20%), formatting (10%).
- "skillMatchPercentage" (0-100) measures the overlap of required skills only. It is NOT a recombination of the breakdown.

Keywords and skills:
- List every job-description keyword found in the CV in "matchedKeywords".
- List missing keywords in "missingKeywords" as objects {"keyword", "priority": "high"|"medium"|"low", "context"},
  where context says why the keyword matters for the role.
- Do the same for skills in "matchedSkills" / "missingSkills" ({"skill", "priority", "context"}).

Also report "formattingIssues" that confuse ATS parsers (tables, graphics, non-standard headers),
prioritized "recommendations", and optionally "sectionScores" (section name -> 0-100) and
"gapAnalysis" with "strongAlignments" and "keyGaps" arrays.

Rules:
- Base every judgment ONLY on the CV and the Job Description given here.
- Do not invent experience that the CV does not contain.
- Every score MUST be a number between 0 and 100.

Return ONLY strict JSON:
{
  "atsScore": <number>,
  "scoreBreakdown": {"technicalSkills": <number>, "experienceRelevance": <number>, "additionalSkills": <number>, "formatting": <number>},
  "matchedKeywords": [<string>],
  "missingKeywords": [{"keyword": <string>, "priority": "high"|"medium"|"low", "context": <string>}],
  "matchedSkills": [<string>],
  "missingSkills": [{"skill": <string>, "priority": "high"|"medium"|"low", "context": <string>}],
  "formattingIssues": [<string>],
  "recommendations": [<string>],
  "sectionScores": {<section>: <number>},
  "skillMatchPercentage": <number>,
  "gapAnalysis": {"strongAlignments": [<string>], "keyGaps": [<string>]}
}
"""

ATS_NO_JOB_NOTE = (
    "No job description provided. Perform a general ATS compatibility analysis focusing on structure, "
    "formatting and keyword optimization best practices; treat the missing lists as industry-standard gaps."
)


TAILORING_SYSTEM = "You are an expert career advisor and document writer returning only valid JSON."

TAILORING_PROMPT = """
Tailor the Base CV (JSON Resume schema) to the Target Job Description and write a cover letter.
Everything you write MUST be in {language_name}.

A. Tailored CV
- Emphasize the experience and skills from the Base CV that match the job; reorder items by relevance.
- Keep facts intact. Do not invent skills, employers or dates.
- Output a complete JSON Resume object (basics, work, education, skills, projects, languages, ...).
  Use only standard JSON Resume keys.

B. Cover letter
- Start with the sender block taken from basics (name, address, city and postal code, phone, email), then today's date: {today}.
- Address the hiring manager, name the role "{job_title}" at "{company_name}", highlight 2-3 matching qualifications
  in 3-4 paragraphs and close professionally.
- ONLY when the job explicitly asks for information that is absent from the CV (for example salary expectation or
  earliest start date) insert a placeholder [[ASK_USER:<Field Name>]]. Never use placeholders for data in the CV.
- For each placeholder add an entry to "requiredInputs" with its exact name and the kind of value the user must
  provide: "text", "number", "date" or "textarea".

Return ONLY strict JSON with exactly these keys:
{{
  "tailoredCvJson": {{"basics": {{...}}, "work": [...], "skills": [...]}},
  "coverLetterText": "<the complete letter as one string>",
  "requiredInputs": [{{"name": "Earliest Start Date", "type": "date"}}]
}}
"""


CHAT_SYSTEM = "You are a helpful assistant that answers questions about one job posting."

CHAT_PROMPT = """
Answer the user's question based ONLY on the job description below. Do not use external knowledge
or make assumptions beyond what is stated in it. If the job description does not contain enough
information to answer, say so.
"""
