"""Personalized itinerary generation.

- build_prompt: interpolate a preferences record into the travel-agent prompt
- generate_personalized_itinerary: one schema-constrained Gemini call
- generate_itinerary_action: boundary used by the API and CLI; never raises
"""
import asyncio
import logging
from typing import Any, Dict, Mapping, Union

from google import genai
from pydantic import ValidationError

from tripgenius.services.common import MODEL, generation_timeout, get_gemini_client, parse_json_response
from tripgenius.utils.plan_schema import Itinerary, TripPreferences

logger = logging.getLogger("tripgenius.generator")

ERROR_PREFIX = "Failed to generate itinerary: "
UNKNOWN_ERROR = "An unknown error occurred."

PROMPT_TEMPLATE = """You are an expert travel agent. Generate a personalized travel itinerary based on the following user preferences:

Destination: {destination}
Start Date: {startDate}
Days: {days}
Budget: {budget}
Travelers: {travelers}
Interests: {interests}
Pace: {pace}
Must Include: {mustInclude}
Avoid: {avoid}
Notes: {notes}

Create a detailed itinerary including a summary, daily plans (morning, afternoon, evening activities with date in YYYY-MM-DD format), estimated budget, and helpful tips. The output should be well structured and easy to read.

Make sure that activities selected match the interests specified.
If mustInclude is specified, make sure to include them in the itinerary.
If avoid is specified, make sure to avoid the things that the user wants to avoid.
Take into account the pace, and make sure that if the pace is relaxed, activities are not crammed together. If the pace is intense, pack the itinerary with activities.

Ensure the output is well formatted.
"""


def build_prompt(prefs: TripPreferences) -> str:
    values = prefs.model_dump(mode="json")
    # Missing optional fields render as empty text
    return PROMPT_TEMPLATE.format(**{k: "" if v is None else v for k, v in values.items()})


async def generate_personalized_itinerary(prefs: TripPreferences) -> Itinerary:
    prompt = build_prompt(prefs)
    client = get_gemini_client()
    logger.info("Generating %d-day itinerary for %s with %s", prefs.days, prefs.destination, MODEL)
    resp = await asyncio.wait_for(
        client.aio.models.generate_content(
            model=MODEL,
            contents=prompt,
            config=genai.types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=Itinerary,
            ),
        ),
        timeout=generation_timeout(),
    )
    return Itinerary.model_validate(parse_json_response(resp))


def describe_validation_error(err: ValidationError) -> str:
    messages = []
    for e in err.errors():
        field = ".".join(str(p) for p in e.get("loc", ()))
        msg = str(e.get("msg", "")).removeprefix("Value error, ")
        messages.append(f"{field}: {msg}" if field else msg)
    return "; ".join(messages)


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, ValidationError):
        return describe_validation_error(exc)
    if isinstance(exc, asyncio.TimeoutError):
        return f"Generation timed out after {generation_timeout():g}s"
    return str(exc)


async def generate_itinerary_action(
    payload: Union[Mapping[str, Any], TripPreferences],
) -> Union[Itinerary, Dict[str, str]]:
    """Validate `payload`, generate, and return the itinerary or {"error": ...}."""
    try:
        prefs = payload if isinstance(payload, TripPreferences) else TripPreferences.model_validate(payload)
        return await generate_personalized_itinerary(prefs)
    except Exception as e:
        logger.exception("Itinerary generation failed")
        message = _error_message(e) or UNKNOWN_ERROR
        return {"error": ERROR_PREFIX + message}
