# -*- coding: utf-8 -*-
"""
Context Enhancement
===================

Personalises a validated question for the student persona: adds a short
real-world or story framing built from the student's interests, plus a
learning-style hint. Choices are derived from the question text, so the same
input is always enhanced the same way.
"""

from __future__ import annotations

import hashlib
from typing import Any

from .models import LearningStyle, Persona

STORY_INDICATORS = (
    "has",
    "have",
    "bought",
    "sold",
    "gave",
    "shared",
    "collected",
    "apples",
    "toys",
    "books",
    "cookies",
    "students",
    "friends",
)

STYLE_HINTS: dict[LearningStyle, str] = {
    LearningStyle.VISUAL: "Try drawing a diagram or number line.",
    LearningStyle.AUDITORY: "Try saying each step out loud.",
    LearningStyle.KINESTHETIC: "Try using counters or objects to act it out.",
    LearningStyle.READING_WRITING: "Try writing each step in words.",
}


def _stable_index(text: str, size: int) -> int:
    digest = hashlib.md5(text.encode("utf-8")).hexdigest()
    return int(digest[:8], 16) % size


def has_story_context(text: str) -> bool:
    words = set(text.lower().replace("?", " ").replace(".", " ").split())
    return any(indicator in words for indicator in STORY_INDICATORS)


def select_context_type(grade: int, text: str) -> str:
    # Younger students get stories, older students real-world framing
    if grade <= 4:
        return "story" if _stable_index(text, 2) == 0 else "real-world"
    return "real-world" if _stable_index(text, 5) else "story"


def enhance_question(question_text: str, grade: int, persona: Persona) -> dict[str, Any]:
    """
    Return the enhanced text and a summary of the personalisation.

    Keys: enhanced_text, context_type, interest, learning_style_hint,
    cultural_context, engagement_score
    """
    hint = STYLE_HINTS.get(persona.learning_style, "")

    if has_story_context(question_text) or not persona.interests:
        return {
            "enhanced_text": question_text,
            "context_type": "none",
            "interest": None,
            "learning_style_hint": hint,
            "cultural_context": persona.cultural_context,
            "engagement_score": 0.5,
        }

    interest = persona.interests[_stable_index(question_text, len(persona.interests))]
    context_type = select_context_type(grade, question_text)

    if context_type == "story":
        enhanced = f"While enjoying {interest}, a student wonders: {question_text}"
    else:
        enhanced = f"In a {interest} project in {persona.cultural_context}: {question_text}"

    engagement = 0.6 + (0.2 if context_type == "story" and grade <= 4 else 0.1)
    if persona.motivators:
        engagement += 0.1

    return {
        "enhanced_text": enhanced,
        "context_type": context_type,
        "interest": interest,
        "learning_style_hint": hint,
        "cultural_context": persona.cultural_context,
        "engagement_score": round(min(1.0, engagement), 3),
    }


__all__ = ["enhance_question", "has_story_context", "select_context_type"]
