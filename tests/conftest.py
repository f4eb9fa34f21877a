"""
Pytest configuration and fixtures
"""
import asyncio
import json
from types import SimpleNamespace

import pytest

from tripgenius.services import generate_itinerary as generator

SAMPLE_ITINERARY = {
    "summary": "Three sunny days of beaches and seafood in Goa.",
    "itinerary": [
        {
            "day": 1,
            "date": "2025-05-03",
            "morning": "Swim at Baga Beach",
            "afternoon": "Seafood lunch at a beach shack",
            "evening": "Sunset at Chapora Fort",
        },
        {
            "day": 2,
            "date": "2025-05-04",
            "morning": "Old Goa churches",
            "afternoon": "Spice plantation tour",
            "evening": "Night market at Arpora",
        },
    ],
    "estimatedBudget": "Around INR 40,000 for two",
    "tips": "Carry sunscreen and book shacks early.",
}


@pytest.fixture
def prefs_payload():
    return {
        "destination": "Goa, India",
        "startDate": "2025-05-03",
        "days": 2,
        "budget": "Medium",
        "travelers": 2,
        "interests": "Beaches, Food",
        "pace": "Relaxed",
        "mustInclude": "Chapora Fort",
        "avoid": "",
        "notes": "",
    }


class FakeModels:
    def __init__(self, text=None, exc=None, parsed=None, delay=0):
        self.text = json.dumps(SAMPLE_ITINERARY) if text is None else text
        self.exc = exc
        self.parsed = parsed
        self.delay = delay
        self.calls = []

    async def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(parsed=self.parsed, text=self.text, candidates=None)


@pytest.fixture
def fake_gemini(monkeypatch):
    """Replace the Gemini client with an in-memory fake; returns its models namespace."""
    models = FakeModels()
    client = SimpleNamespace(aio=SimpleNamespace(models=models))
    monkeypatch.setattr(generator, "get_gemini_client", lambda: client)
    return models


@pytest.fixture(autouse=True)
def state_file(tmp_path, monkeypatch):
    path = tmp_path / "state" / "last_itinerary_input.json"
    monkeypatch.setenv("TRIPGENIUS_STATE_FILE", str(path))
    return path


@pytest.fixture
def sample_itinerary():
    return json.loads(json.dumps(SAMPLE_ITINERARY))
