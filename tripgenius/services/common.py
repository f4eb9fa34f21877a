import json
import logging
import os
from functools import lru_cache
from typing import Any, Dict

from dotenv import load_dotenv
from google import genai

load_dotenv()

# quiet noisy logs
logging.getLogger("google.genai").setLevel(logging.ERROR)
logging.getLogger("google_genai").setLevel(logging.ERROR)

MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")


def generation_timeout() -> float:
    try:
        return float(os.getenv("GENERATION_TIMEOUT_SEC", "120"))
    except ValueError:
        return 120.0


@lru_cache(maxsize=1)
def get_gemini_client() -> genai.Client:
    """Return the process-wide Gemini client.

    The SDK reads GEMINI_API_KEY / GOOGLE_API_KEY (or the Vertex AI settings when
    GOOGLE_GENAI_USE_VERTEXAI is set) from the environment.
    """
    return genai.Client()


def api_key_configured() -> bool:
    return bool(
        os.getenv("GEMINI_API_KEY")
        or os.getenv("GOOGLE_API_KEY")
        or os.getenv("GOOGLE_GENAI_USE_VERTEXAI")
    )


def extract_all_text(resp) -> str:
    texts = []
    candidates = getattr(resp, "candidates", None) or []
    for cand in candidates:
        content = getattr(cand, "content", None)
        parts = getattr(content, "parts", None) if content is not None else None
        if parts:
            for p in parts:
                t = getattr(p, "text", None)
                if t:
                    texts.append(t)
    if texts:
        return "".join(texts)
    # Ensure we always return a string, even if resp.text is None or non-string
    fallback = getattr(resp, "text", "")
    if fallback is None:
        return ""
    return fallback if isinstance(fallback, str) else str(fallback)


def parse_json_response(resp) -> Dict[str, Any]:
    # Try parsed schema first if available
    parsed = getattr(resp, "parsed", None)
    if parsed is not None:
        if hasattr(parsed, "model_dump"):
            return parsed.model_dump(mode="json")
        if isinstance(parsed, dict):
            return parsed
    # Fallback: extract text and parse JSON object
    stripped = extract_all_text(resp).strip()
    if not stripped:
        raise ValueError("LLM returned empty response text")
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start != -1 and end != -1 and end > start:
        try:
            return json.loads(stripped[start:end + 1])
        except json.JSONDecodeError as e:
            raise ValueError(f"LLM returned malformed JSON object: {e} | Snippet: {stripped[:200]}") from e
    raise ValueError(f"LLM returned non-JSON content | Snippet: {stripped[:200]}")
