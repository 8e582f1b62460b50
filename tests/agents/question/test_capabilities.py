from __future__ import annotations

import threading

import pytest
from pydantic import ValidationError

from src.agents.question.capabilities import (
    InMemoryPersonaStore,
    LanguageModelCapability,
    PersonaStore,
)
from src.agents.question.models import LearningStyle, Persona


def test_persona_store_get_put():
    store = InMemoryPersonaStore()
    persona = Persona(learning_style=LearningStyle.AUDITORY, interests=["music"])

    assert store.get("student-1") is None
    store.put("student-1", persona)
    assert store.get("student-1") == persona
    assert isinstance(store, PersonaStore)


def test_persona_store_concurrent_writes():
    store = InMemoryPersonaStore()

    def write(i: int) -> None:
        for j in range(50):
            store.put(f"student-{i}-{j}", Persona())

    threads = [threading.Thread(target=write, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 400


def test_fake_model_satisfies_language_model_protocol(fake_model):
    assert isinstance(fake_model, LanguageModelCapability)


def test_persona_limits():
    with pytest.raises(ValidationError):
        Persona(interests=["a", "b", "c", "d", "e", "f"])
    with pytest.raises(ValidationError):
        Persona(motivators=["a", "b", "c", "d"])
    assert Persona(interests=[" rugby ", ""]).interests == ("rugby",)


def test_request_fingerprint_ignores_case_and_count(request_factory):
    a = request_factory(subject="Mathematics", count=1)
    b = request_factory(subject="mathematics ", count=5)

    assert a.fingerprint() == b.fingerprint() == "mathematics|addition||5|medium|addition"
    assert a.fingerprint() != request_factory(grade=6).fingerprint()


def test_request_is_frozen(request_factory):
    request = request_factory()
    with pytest.raises(ValidationError):
        request.grade = 7
