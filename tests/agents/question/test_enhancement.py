from __future__ import annotations

from src.agents.question.enhancement import enhance_question, has_story_context, select_context_type
from src.agents.question.models import LearningStyle, Persona


def test_story_detection():
    assert has_story_context("Aroha has 5 apples. How many are left?")
    assert not has_story_context("What is 12 + 7?")


def test_existing_story_is_left_alone():
    persona = Persona(interests=["rugby"])
    text = "Tama bought 3 books. How many books does he have?"
    result = enhance_question(text, 5, persona)
    assert result["enhanced_text"] == text
    assert result["context_type"] == "none"
    assert result["interest"] is None


def test_no_interests_means_no_framing():
    result = enhance_question("What is 12 + 7?", 5, Persona())
    assert result["enhanced_text"] == "What is 12 + 7?"
    assert result["engagement_score"] == 0.5


def test_interest_framing_is_deterministic():
    persona = Persona(
        learning_style=LearningStyle.KINESTHETIC,
        interests=["rugby", "kapa haka", "baking"],
        motivators=["badges"],
        cultural_context="Aotearoa",
    )
    first = enhance_question("What is 12 + 7?", 6, persona)
    second = enhance_question("What is 12 + 7?", 6, persona)

    assert first == second
    assert first["interest"] in persona.interests
    assert first["context_type"] in {"story", "real-world"}
    assert first["enhanced_text"].endswith("What is 12 + 7?")
    assert first["interest"] in first["enhanced_text"]
    assert first["cultural_context"] == "Aotearoa"
    assert first["learning_style_hint"] == "Try using counters or objects to act it out."
    assert 0.0 <= first["engagement_score"] <= 1.0


def test_context_type_choices_by_grade():
    young = {select_context_type(3, f"question {i}") for i in range(30)}
    assert young <= {"story", "real-world"}
    older = [select_context_type(8, f"question {i}") for i in range(30)]
    assert older.count("real-world") > older.count("story")
