import asyncio
from types import SimpleNamespace

import pytest

from tripgenius.services.common import parse_json_response
from tripgenius.services.generate_itinerary import build_prompt, generate_itinerary_action
from tripgenius.utils.plan_schema import Itinerary, TripPreferences


def test_prompt_interpolates_preferences(prefs_payload):
    prompt = build_prompt(TripPreferences.model_validate(prefs_payload))
    assert "Destination: Goa, India\n" in prompt
    assert "Start Date: 2025-05-03\n" in prompt
    assert "Days: 2\n" in prompt
    assert "Budget: Medium\n" in prompt
    assert "Interests: Beaches, Food\n" in prompt
    assert "Pace: Relaxed\n" in prompt
    assert "Must Include: Chapora Fort\n" in prompt
    assert prompt.startswith("You are an expert travel agent.")


def test_prompt_leaves_missing_optionals_empty():
    prefs = TripPreferences.model_validate(
        {"destination": "Kyoto", "startDate": "2025-11-10", "interests": "Culture"}
    )
    prompt = build_prompt(prefs)
    assert "Must Include: \n" in prompt
    assert "Avoid: \n" in prompt
    assert "Notes: \n" in prompt
    assert "None" not in prompt


def test_action_returns_itinerary(fake_gemini, prefs_payload):
    result = asyncio.run(generate_itinerary_action(prefs_payload))
    assert isinstance(result, Itinerary)
    assert [d.day for d in result.itinerary] == [1, 2]
    assert len(fake_gemini.calls) == 1
    call = fake_gemini.calls[0]
    assert "Destination: Goa, India" in call["contents"]
    assert call["config"].response_mime_type == "application/json"


def test_action_uses_parsed_schema_when_available(fake_gemini, prefs_payload):
    fake_gemini.parsed = Itinerary(summary="parsed", itinerary=[], estimatedBudget="$0", tips="none")
    fake_gemini.text = ""
    result = asyncio.run(generate_itinerary_action(prefs_payload))
    assert result.summary == "parsed"


def test_action_maps_remote_failure_to_error(fake_gemini, prefs_payload):
    fake_gemini.exc = RuntimeError("quota exceeded")
    result = asyncio.run(generate_itinerary_action(prefs_payload))
    assert result == {"error": "Failed to generate itinerary: quota exceeded"}
    assert len(fake_gemini.calls) == 1


def test_action_unknown_error_message(fake_gemini, prefs_payload):
    fake_gemini.exc = RuntimeError()
    result = asyncio.run(generate_itinerary_action(prefs_payload))
    assert result == {"error": "Failed to generate itinerary: An unknown error occurred."}


def test_action_rejects_invalid_preferences(fake_gemini, prefs_payload):
    prefs_payload["destination"] = ""
    result = asyncio.run(generate_itinerary_action(prefs_payload))
    assert result["error"].startswith("Failed to generate itinerary: destination: Destination is required.")
    assert fake_gemini.calls == []


def test_action_rejects_output_not_matching_schema(fake_gemini, prefs_payload):
    fake_gemini.text = '{"summary": "only a summary"}'
    result = asyncio.run(generate_itinerary_action(prefs_payload))
    assert "error" in result
    assert "itinerary" in result["error"]


def test_action_rejects_non_json_output(fake_gemini, prefs_payload):
    fake_gemini.text = "Sorry, I can't help with that."
    result = asyncio.run(generate_itinerary_action(prefs_payload))
    assert "non-JSON" in result["error"]


def test_parse_json_response_strips_surrounding_text():
    resp = SimpleNamespace(parsed=None, candidates=None, text='```json\n{"a": 1}\n```')
    assert parse_json_response(resp) == {"a": 1}


def test_parse_json_response_joins_candidate_parts():
    parts = [SimpleNamespace(text='{"a": '), SimpleNamespace(text="2}")]
    resp = SimpleNamespace(parsed=None, text=None, candidates=[SimpleNamespace(content=SimpleNamespace(parts=parts))])
    assert parse_json_response(resp) == {"a": 2}


def test_parse_json_response_empty():
    with pytest.raises(ValueError):
        parse_json_response(SimpleNamespace(parsed=None, candidates=None, text="  "))


def test_action_reports_timeout(fake_gemini, prefs_payload, monkeypatch):
    monkeypatch.setenv("GENERATION_TIMEOUT_SEC", "0.05")
    fake_gemini.delay = 1
    result = asyncio.run(generate_itinerary_action(prefs_payload))
    assert result == {"error": "Failed to generate itinerary: Generation timed out after 0.05s"}
    assert len(fake_gemini.calls) == 1
