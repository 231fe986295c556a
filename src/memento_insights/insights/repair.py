"""Decode, validate and lightly repair model output into InsightContent.

Decoding is two explicit steps: a strict parse of the whole text, then a
parse of the span between the first '{' and the last '}'. Anything that
survives decoding but lacks summary, description or themes is rejected.
Theme and annotation counts are checked softly (logged, never rejected).
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from memento_insights.errors import InsightError, InsightErrorCode
from memento_insights.models import InsightContent

logger = logging.getLogger(__name__)

DIAGNOSTIC_PREFIX_CHARS = 100


def _preview(text: str) -> str:
    return text[:DIAGNOSTIC_PREFIX_CHARS]


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


class ResponsePayloadRepairer:
    """Turns raw completion text into a validated InsightContent."""

    def __init__(self, min_themes: int = 4, max_themes: int = 5):
        self.min_themes = min_themes
        self.max_themes = max_themes

    @staticmethod
    def decode_strict(text: str) -> dict | None:
        """Parse the whole text as a JSON object."""
        try:
            parsed = json.loads(text.strip())
        except (json.JSONDecodeError, TypeError):
            return None
        return parsed if isinstance(parsed, dict) else None

    @staticmethod
    def extract_braced_object(text: str) -> dict | None:
        """Parse the substring between the first '{' and the last '}'."""
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            return None
        try:
            parsed = json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            return None
        return parsed if isinstance(parsed, dict) else None

    def decode(self, text: str) -> dict:
        payload = self.decode_strict(text)
        if payload is not None:
            return payload

        payload = self.extract_braced_object(text)
        if payload is not None:
            logger.info("Recovered JSON object from surrounding text")
            return payload

        logger.error(f"Failed to parse completion: {_preview(text)!r}")
        raise InsightError(
            InsightErrorCode.INVALID_RESPONSE,
            diagnostic=f"unparsable completion: {_preview(text)}",
        )

    def repair(self, text: str) -> InsightContent:
        """Decode text and coerce it into the canonical insight shape.

        Raises:
            InsightError: INVALID_RESPONSE when the text cannot be decoded or
                is missing a required field
        """
        if not text or not text.strip():
            raise InsightError(InsightErrorCode.INVALID_RESPONSE, diagnostic="empty completion")

        payload = self.decode(text)

        missing = [
            field for field in ("summary", "description")
            if not isinstance(payload.get(field), str) or not payload[field].strip()
        ]
        raw_themes = payload.get("themes")
        if not isinstance(raw_themes, list) or not raw_themes:
            missing.append("themes")
        if missing:
            raise InsightError(
                InsightErrorCode.INVALID_RESPONSE,
                diagnostic=f"missing fields: {', '.join(missing)}",
            )

        themes = [theme for theme in (self._repair_theme(t) for t in raw_themes) if theme]
        if not themes:
            raise InsightError(InsightErrorCode.INVALID_RESPONSE, diagnostic="no usable themes")
        if not self.min_themes <= len(themes) <= self.max_themes:
            logger.warning(
                f"Expected {self.min_themes}-{self.max_themes} themes, got {len(themes)}"
            )

        annotations = self._repair_annotations(payload.get("annotations"))

        try:
            return InsightContent.model_validate({
                "summary": payload["summary"],
                "description": payload["description"],
                "annotations": annotations,
                "themes": themes,
            })
        except ValidationError as e:
            raise InsightError(
                InsightErrorCode.INVALID_RESPONSE,
                diagnostic=f"{e.error_count()} validation error(s)",
            ) from e

    def _repair_theme(self, raw: Any) -> dict | None:
        if not isinstance(raw, dict) or not _text(raw.get("name")).strip():
            logger.warning("Dropping malformed theme")
            return None

        sources = raw.get("source_entries")
        if not isinstance(sources, list):
            sources = []

        source_entries = []
        for source in sources:
            if isinstance(source, str):
                source_entries.append({"date": "", "title": source})
            elif isinstance(source, dict):
                source_entries.append({
                    "date": _text(source.get("date")),
                    "title": _text(source.get("title")),
                })

        return {
            "name": _text(raw["name"]),
            "icon": _text(raw.get("icon")),
            "explanation": _text(raw.get("explanation")),
            "frequency": _text(raw.get("frequency")),
            "source_entries": source_entries,
        }

    def _repair_annotations(self, raw: Any) -> list[dict]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring non-list annotations")
            return []

        annotations = []
        for item in raw:
            if (
                isinstance(item, dict)
                and isinstance(item.get("date"), str)
                and isinstance(item.get("summary"), str)
            ):
                annotations.append({"date": item["date"], "summary": item["summary"]})
            else:
                logger.warning("Dropping malformed annotation")
        return annotations
