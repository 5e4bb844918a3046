"""Markdown rendering of a StructuredReview."""

from __future__ import annotations

import re

from prverdict_core.models import Recommendation, ReviewFinding, StructuredReview

GLYPHS: dict[Recommendation, str] = {
    Recommendation.POSITIVE: "✅",
    Recommendation.NEGATIVE: "❌",
    Recommendation.NEEDS_CHANGES: "⚠️",
}

FOOTER = (
    "---\n"
    "*🤖 Generated by prverdict AI code review*  \n"
    "*⚠️ Please perform a manual review regardless of this recommendation*\n"
)

_HEADING_RE = re.compile(r"^## (\S+) AI Code Review Report$", re.MULTILINE)
_RATING_RE = re.compile(r"^### Rating: (\d+)/10", re.MULTILINE)


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _format_finding(f: ReviewFinding) -> str:
    location = f" (line {f.line})" if f.line else ""
    return (
        f"**{f.severity}** · {f.category}{location}\n"
        f"- Issue: {f.issue}\n"
        f"- Suggestion: {f.suggestion}"
    )


def _format_findings(findings: list[ReviewFinding]) -> str:
    by_file: dict[str, list[ReviewFinding]] = {}
    for f in findings:
        by_file.setdefault(f.file, []).append(f)

    blocks = []
    for path, items in by_file.items():
        body = "\n\n".join(_format_finding(f) for f in items)
        blocks.append(f"#### `{path}`\n\n{body}")
    return "\n\n".join(blocks)


def format_review_comment(review: StructuredReview) -> str:
    """Render the review as the Markdown body posted on the pull request.

    Optional sections are left out entirely when their list is empty.
    """
    sections = [
        f"## {GLYPHS[review.recommendation]} AI Code Review Report",
        f"### Rating: {review.overall_score}/10  \n**Recommendation:** {review.recommendation.value}",
        f"### Summary\n{review.summary}",
    ]
    if review.positive_aspects:
        sections.append(f"### ✨ Positive Aspects\n{_bullets(review.positive_aspects)}")
    if review.findings:
        sections.append(f"### 🔍 Findings\n\n{_format_findings(review.findings)}")
    if review.areas_for_improvement:
        sections.append(f"### 📈 Areas for Improvement\n{_bullets(review.areas_for_improvement)}")
    sections.append(FOOTER)
    return "\n\n".join(sections)


def parse_report_verdict(markdown: str) -> tuple[Recommendation | None, int | None]:
    """Recover (recommendation, score) from a rendered report via the glyph table."""
    recommendation = None
    heading = _HEADING_RE.search(markdown)
    if heading:
        for rec, glyph in GLYPHS.items():
            if glyph == heading.group(1):
                recommendation = rec
                break
    rating = _RATING_RE.search(markdown)
    score = int(rating.group(1)) if rating else None
    return recommendation, score
