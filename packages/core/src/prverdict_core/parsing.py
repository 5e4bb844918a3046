"""Turn the model's raw text into a validated StructuredReview."""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from prverdict_core.models import Recommendation, StructuredReview

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "The AI did not return valid JSON. Manual review required."


def fallback_review() -> StructuredReview:
    """Degraded verdict used whenever the model's answer cannot be trusted."""
    return StructuredReview(
        overall_score=5,
        recommendation=Recommendation.NEEDS_CHANGES,
        summary=FALLBACK_SUMMARY,
        findings=[],
        positive_aspects=[],
        areas_for_improvement=["Manual review required"],
    )


def extract_json_object(text: str) -> str | None:
    """Return the span from the first '{' to the last '}', or None."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return text[start : end + 1]


def parse_review_response(raw: str) -> StructuredReview:
    """Parse and validate the model's answer.

    Prose or markdown fences around the object are tolerated. Anything that
    fails to parse or validate yields ``fallback_review()`` so a bad reply
    never fails the run.
    """
    candidate = extract_json_object(raw or "")
    if candidate is None:
        logger.warning("No JSON object found in model response: %s", (raw or "")[:200])
        return fallback_review()

    try:
        return StructuredReview.model_validate(json.loads(candidate))
    except json.JSONDecodeError as e:
        logger.warning("Model response is not valid JSON (%s): %s", e, raw[:200])
    except RecursionError:
        logger.warning("Model response is nested too deeply to decode (%d chars)", len(candidate))
    except ValidationError as e:
        logger.warning("Model response failed schema validation: %d error(s)", e.error_count())
        logger.debug("Validation errors: %s", e)
    return fallback_review()
