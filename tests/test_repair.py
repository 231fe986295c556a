"""Tests for ResponsePayloadRepairer"""

import json
import logging

import pytest

from conftest import make_insight_payload
from memento_insights.errors import InsightError, InsightErrorCode
from memento_insights.insights.repair import ResponsePayloadRepairer


@pytest.fixture
def repairer():
    return ResponsePayloadRepairer()


class TestDecodeSteps:
    """The two decoding steps in isolation"""

    def test_decode_strict_object(self):
        assert ResponsePayloadRepairer.decode_strict(' {"a": 1} ') == {"a": 1}

    def test_decode_strict_rejects_prose(self):
        assert ResponsePayloadRepairer.decode_strict('Here: {"a": 1}') is None

    def test_decode_strict_rejects_non_object(self):
        assert ResponsePayloadRepairer.decode_strict("[1, 2]") is None

    def test_extract_braced_object(self):
        text = 'Here you go: {"a": {"b": 2}} Thanks!'
        assert ResponsePayloadRepairer.extract_braced_object(text) == {"a": {"b": 2}}

    def test_extract_without_braces(self):
        assert ResponsePayloadRepairer.extract_braced_object("no json here") is None

    def test_extract_invalid_span(self):
        assert ResponsePayloadRepairer.extract_braced_object("{ not: json }") is None


class TestRepair:

    def test_clean_payload(self, repairer):
        content = repairer.repair(json.dumps(make_insight_payload()))

        assert len(content.themes) == 4
        assert len(content.annotations) == 3

    def test_prose_wrapped_payload(self, repairer):
        text = f"Here you go: {json.dumps(make_insight_payload())} Thanks!"

        content = repairer.repair(text)

        assert content.summary.startswith("You balanced")

    def test_markdown_fenced_payload(self, repairer):
        text = f"```json\n{json.dumps(make_insight_payload())}\n```"

        assert repairer.repair(text).themes

    def test_unparsable_has_bounded_diagnostic(self, repairer):
        text = "I'm sorry, " + "x" * 500

        with pytest.raises(InsightError) as exc_info:
            repairer.repair(text)

        error = exc_info.value
        assert error.code == InsightErrorCode.INVALID_RESPONSE
        assert error.status_code == 500
        assert len(error.diagnostic) < len(text)
        assert "x" * 101 not in error.diagnostic

    @pytest.mark.parametrize("field", ["summary", "description", "themes"])
    def test_missing_required_field(self, repairer, field):
        payload = make_insight_payload()
        del payload[field]

        with pytest.raises(InsightError) as exc_info:
            repairer.repair(json.dumps(payload))

        assert exc_info.value.code == InsightErrorCode.INVALID_RESPONSE

    def test_empty_themes_rejected(self, repairer):
        payload = make_insight_payload()
        payload["themes"] = []

        with pytest.raises(InsightError):
            repairer.repair(json.dumps(payload))

    @pytest.mark.parametrize("count", [3, 6])
    def test_theme_count_outside_range_warns(self, repairer, caplog, count):
        with caplog.at_level(logging.WARNING):
            content = repairer.repair(json.dumps(make_insight_payload(theme_count=count)))

        assert len(content.themes) == count
        assert "Expected 4-5 themes" in caplog.text

    def test_missing_annotations_defaults_to_empty(self, repairer):
        content = repairer.repair(json.dumps(make_insight_payload(annotations=False)))

        assert content.annotations == []

    def test_string_source_entries_repaired(self, repairer):
        payload = make_insight_payload()
        payload["themes"][0]["source_entries"] = ["Monday thoughts", {"date": "2025-10-21", "title": "Tuesday"}]

        content = repairer.repair(json.dumps(payload))

        sources = content.themes[0].source_entries
        assert sources[0].date == ""
        assert sources[0].title == "Monday thoughts"
        assert sources[1].title == "Tuesday"

    def test_malformed_theme_dropped(self, repairer):
        payload = make_insight_payload(theme_count=5)
        payload["themes"].append("not a theme")
        payload["themes"].append({"icon": "x"})

        content = repairer.repair(json.dumps(payload))

        assert len(content.themes) == 5

    def test_malformed_annotation_dropped(self, repairer):
        payload = make_insight_payload()
        payload["annotations"].append({"date": "2025-10-25"})

        content = repairer.repair(json.dumps(payload))

        assert len(content.annotations) == 3

    def test_numeric_frequency_coerced(self, repairer):
        payload = make_insight_payload()
        payload["themes"][0]["frequency"] = 3

        content = repairer.repair(json.dumps(payload))

        assert content.themes[0].frequency == "3"

    def test_empty_text(self, repairer):
        with pytest.raises(InsightError) as exc_info:
            repairer.repair("")

        assert exc_info.value.code == InsightErrorCode.INVALID_RESPONSE
