"""Prompt construction for theme summary insights."""

import json

from memento_insights.models import JournalEntry
from memento_insights.utils.timestamps import format_entry_date

# gpt-4o-mini list prices, USD per 1M tokens
INPUT_COST_PER_MILLION = 0.15
OUTPUT_COST_PER_MILLION = 0.60

SYSTEM_PROMPT = """You are a journaling companion who helps people notice their emotional patterns. Write warmly and plainly, without clinical vocabulary or hedging.

Principles:
- Ground every observation in concrete details from the entries
- Acknowledge difficulty and growth honestly, without forced positivity
- Use active voice and second person ("you")
- Never diagnose, prescribe or give therapeutic advice

Output:
- Return one valid JSON object and nothing else
- No markdown fences or commentary
- Follow the requested structure exactly
- Keep the whole response under 800 tokens"""

OUTPUT_SCHEMA = {
    "summary": "One sentence capturing the main emotional thread (max 140 characters)",
    "description": (
        "A 150-180 word paragraph about the person's emotional landscape, recurring "
        "patterns and signs of growth or tension. Speak directly to them. Do not quote "
        "entry titles or literal dates; use relative time phrases such as "
        "'earlier this week' or 'lately'."
    ),
    "annotations": [
        {
            "date": "YYYY-MM-DD",
            "summary": "2-3 sentences on why this day mattered emotionally",
        }
    ],
    "themes": [
        {
            "name": "2-4 word specific theme name",
            "icon": "single emoji",
            "explanation": "One sentence (max 60 words) on why this theme matters",
            "frequency": "Phrase with an actual count, e.g. '3 times this week'",
            "source_entries": [{"date": "YYYY-MM-DD", "title": "exact entry title"}],
        }
    ],
}

REQUIREMENTS = """Requirements:
1. Identify 4-5 themes, no fewer and no more
2. Theme names must be specific ("Presentation anxiety", not "work stress")
3. source_entries must be objects with both date and title, never bare strings
4. Include 3-5 annotations for the most significant dates
5. frequency must contain a real number ("3 times", not "several times")
6. The description must not mention entry titles or calendar dates"""


def prepare_entries(entries: list[JournalEntry], max_content_length: int = 500) -> list[dict]:
    """Reduce entries to the fields sent upstream, truncating content."""
    return [
        {
            "date": format_entry_date(entry.date),
            "title": entry.title or "Untitled",
            "content": entry.content[:max_content_length],
            "word_count": entry.word_count,
            "mood": entry.mood or "neutral",
        }
        for entry in entries
    ]


def build_user_prompt(entries: list[JournalEntry], max_content_length: int = 500) -> str:
    payload = {"entries": prepare_entries(entries, max_content_length)}
    return (
        "Generate an insight from these journal entries using exactly this JSON structure:\n\n"
        f"{json.dumps(OUTPUT_SCHEMA, indent=2, ensure_ascii=False)}\n\n"
        f"{REQUIREMENTS}\n\n"
        "Journal entries to analyze:\n"
        f"{json.dumps(payload, ensure_ascii=False)}"
    )


def estimate_cost(prompt_tokens: int, completion_tokens: int) -> float:
    """Approximate USD cost of one completion."""
    return (
        prompt_tokens / 1_000_000 * INPUT_COST_PER_MILLION
        + completion_tokens / 1_000_000 * OUTPUT_COST_PER_MILLION
    )
