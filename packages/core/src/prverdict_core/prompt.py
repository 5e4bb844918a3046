"""Prompt construction for the single review call."""

from __future__ import annotations

from prverdict_core.models import ChangedFile, PullRequestInfo

DEFAULT_MAX_CHARS_PER_FILE = 20000

_JSON_SHAPE = """{
  "overall_score": 1-10,
  "recommendation": "POSITIVE" | "NEGATIVE" | "NEEDS_CHANGES",
  "summary": "single concise paragraph",
  "detailed_findings": [
    {
      "category": "QUALITY" | "SECURITY" | "FUNCTIONALITY" | "MAINTAINABILITY",
      "severity": "HIGH" | "MEDIUM" | "LOW",
      "file": "relative/path/of/the/file",
      "line": 123,
      "issue": "short explanation of the problem",
      "suggestion": "precise fix or best-practice snippet"
    }
  ],
  "positive_aspects": ["bullet sentence"],
  "areas_for_improvement": ["bullet sentence"]
}"""


def _file_section(file: ChangedFile, max_chars: int) -> str:
    patch = file.patch
    if not patch:
        patch = "(no diff: file renamed)" if file.status == "renamed" else "(no diff available)"
    elif len(patch) > max_chars:
        patch = patch[:max_chars] + "\n... [diff truncated]"
    return f"""FILE: {file.filename}
ADDITIONS: {file.additions}
DELETIONS: {file.deletions}

<PATCH>
{patch}
</PATCH>"""


def build_review_prompt(
    files: list[ChangedFile],
    pull_request: PullRequestInfo,
    role: str,
    max_chars_per_file: int = DEFAULT_MAX_CHARS_PER_FILE,
) -> str:
    """Build the one prompt sent to the completion provider.

    The role comes from the stack detector; the PR title and description are
    embedded verbatim. The requested JSON shape mirrors ``StructuredReview``.
    """
    files_content = "\n---\n".join(_file_section(f, max_chars_per_file) for f in files)

    return f"""You are a **{role}**.

Review the following pull request and return a **single JSON object** that strictly matches the schema below.
Focus on code quality, potential bugs, security vulnerabilities, maintainability and performance.

======================== PR ========================
- **Title:** {pull_request.title}
- **Description:** {pull_request.body}

=================== CHANGED FILES ==================
{files_content}

=================== JSON SCHEMA ====================
{_JSON_SHAPE}

Rules:
1. Return only valid JSON: no markdown fences, no comments, no text before or after the object.
2. "line" is optional; omit it when the finding is not tied to a single line. Use [] for empty lists.
3. Be honest; do not inflate the score or soften real problems.
4. If a patch is too large to analyse in full, sample the most critical hunks.

Output now:"""
