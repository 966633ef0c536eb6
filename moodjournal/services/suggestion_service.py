"""
Wellness suggestion for a journal entry.

Tiers, first non-empty wins:
    1. fresh text generation from the hosted model
    2. a suggestion that helped on a very similar past entry
    3. the first coping strategy from the user's pattern summary
    4. keyword match on the entry text, else a generic suggestion
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from moodjournal.core.config import settings
from moodjournal.schemas.mood import UserPatternSummary
from moodjournal.schemas.similarity import SimilarEntry
from moodjournal.services.inference_client import InferenceClient

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    "Based on this journal entry, suggest one helpful wellness activity:\n\n"
    'Journal: "{text}"\n\n'
    "Suggestion:"
)
GENERATION_PARAMETERS = {
    "max_length": 150,
    "temperature": 0.7,
    "do_sample": True,
    "pad_token_id": 50256,
}

# Lines containing any of these are prompt echo, not a suggestion.
PROMPT_ECHO_MARKERS = ("journal entry", "suggestion:", "based on")
MIN_SUGGESTION_LINE_LENGTH = 10
_QUOTE_CHARS = "\"'*-"
_TERMINAL_PUNCTUATION = (".", "!", "?")

SIMILAR_SUGGESTION_THRESHOLD = 0.6
SIMILAR_SUGGESTION_PREFIX = "Previously, you found this helpful: "

# Checked in order against the lowercased entry text (substring match).
KEYWORD_SUGGESTIONS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (
        ("stress", "anxious", "worry"),
        "Try a 5-minute breathing exercise: breathe in for 4 counts, hold for 4, breathe out for 6. "
        "This can help calm your nervous system.",
    ),
    (
        ("sad", "down", "depressed"),
        "Consider taking a short walk outside or doing something creative like drawing or listening "
        "to your favorite music.",
    ),
    (
        ("tired", "exhausted", "sleep"),
        "Focus on getting quality rest tonight. Try creating a calming bedtime routine without screens "
        "for the last hour before sleep.",
    ),
    (
        ("angry", "frustrated", "mad"),
        "Try some physical activity to release tension, like stretching, going for a walk, or doing "
        "jumping jacks for 2 minutes.",
    ),
    (
        ("lonely", "alone"),
        "Reach out to a friend or family member, even if just to say hello. Consider joining a "
        "community activity or volunteering.",
    ),
    (
        ("happy", "good", "great"),
        "Celebrate this positive moment! Consider writing down three things you're grateful for today.",
    ),
)

GENERIC_SUGGESTIONS: List[str] = [
    "Take a few minutes to practice mindfulness by focusing on your breathing and being present in the moment.",
    "Try journaling about three things you're grateful for today, no matter how small they might seem.",
    "Consider doing some light physical activity like stretching or taking a short walk to boost your mood.",
    "Reach out to someone you care about and let them know you're thinking of them.",
    "Practice self-compassion by treating yourself with the same kindness you'd show a good friend.",
]


def build_prompt(text: str) -> str:
    return PROMPT_TEMPLATE.format(text=text)


def clean_generated_suggestion(generated: str, prompt: str) -> str:
    """Reduce a raw generation to one tidy sentence, or ``""`` if nothing usable remains."""
    suggestion = (generated or "").replace(prompt, "", 1).strip()

    candidates: List[str] = []
    for line in suggestion.split("\n"):
        line = line.strip()
        if not line:
            continue
        lowered = line.lower()
        if any(marker in lowered for marker in PROMPT_ECHO_MARKERS):
            continue
        if len(line) < MIN_SUGGESTION_LINE_LENGTH:
            continue
        line = line.strip(_QUOTE_CHARS).strip()
        if line:
            candidates.append(line)

    if not candidates:
        return ""

    first = candidates[0]
    if not first.endswith(_TERMINAL_PUNCTUATION):
        first += "."
    return first[0].upper() + first[1:]


def _generated_text(payload: Any) -> Optional[str]:
    if isinstance(payload, list) and payload:
        payload = payload[0]
    if isinstance(payload, dict) and isinstance(payload.get("generated_text"), str):
        return payload["generated_text"]
    return None


def keyword_suggestion(text: str) -> str:
    """Deterministic last resort; never empty.

    Without a keyword hit the generic suggestion is picked by
    ``len(text) % len(GENERIC_SUGGESTIONS)``, so the same text always gets
    the same suggestion.
    """
    lowered = (text or "").lower()
    for keywords, suggestion in KEYWORD_SUGGESTIONS:
        if any(keyword in lowered for keyword in keywords):
            return suggestion
    return GENERIC_SUGGESTIONS[len(text or "") % len(GENERIC_SUGGESTIONS)]


def similar_entry_suggestion(similar_entries: Sequence[SimilarEntry]) -> Optional[str]:
    ordered = sorted(similar_entries, key=lambda s: s.similarity, reverse=True)
    for similar in ordered:
        if similar.similarity <= SIMILAR_SUGGESTION_THRESHOLD:
            break
        prior = similar.mood_analysis.suggestion if similar.mood_analysis else ""
        if prior:
            return f"{SIMILAR_SUGGESTION_PREFIX}{prior}"
    return None


class SuggestionGenerator:
    def __init__(self, inference: Optional[InferenceClient] = None, *, model: Optional[str] = None) -> None:
        self.inference = inference or InferenceClient()
        self.model = model or settings.GENERATION_MODEL

    async def generate(self, text: str) -> str:
        """Tier 1 only: a cleaned model generation, or ``""``."""
        prompt = build_prompt(text)
        response = await self.inference.post(self.model, prompt, GENERATION_PARAMETERS)
        if not response.ok:
            return ""
        generated = _generated_text(response.payload)
        if generated is None:
            logger.warning("[Suggestion] generation response had no generated_text")
            return ""
        return clean_generated_suggestion(generated, prompt)

    async def suggest(
        self,
        text: str,
        similar_entries: Sequence[SimilarEntry] = (),
        patterns: Optional[UserPatternSummary] = None,
    ) -> str:
        generated = await self.generate(text)
        if generated:
            logger.info("[Suggestion] using generated suggestion")
            return generated

        reused = similar_entry_suggestion(similar_entries)
        if reused:
            logger.info("[Suggestion] reusing suggestion from a similar entry")
            return reused

        if patterns is not None and patterns.coping_strategies:
            logger.info("[Suggestion] using pattern coping strategy")
            return patterns.coping_strategies[0]

        logger.info("[Suggestion] using keyword fallback")
        return keyword_suggestion(text)
