"""Shareable plan links.

A plan is the preferences form serialised to JSON and base64-encoded into the
`plan` query parameter, e.g. ``https://host/?plan=eyJkZXN0aW5hdGlvbiI6...``.
"""
import base64
import binascii
import json
from datetime import date, datetime
from typing import Any, Dict, Mapping, Union
from urllib.parse import quote, urlsplit, urlunsplit

from pydantic import BaseModel

PLAN_PARAM = "plan"


class SharedPlanError(ValueError):
    """Raised when a shared plan token cannot be decoded."""


def _json_default(o):
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    return str(o)


def encode_plan(values: Union[Mapping[str, Any], BaseModel]) -> str:
    if isinstance(values, BaseModel):
        values = values.model_dump(mode="json")
    raw = json.dumps(dict(values), ensure_ascii=False, separators=(",", ":"), default=_json_default)
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_plan(token: str) -> Dict[str, Any]:
    if not token or not token.strip():
        raise SharedPlanError("Shared plan is empty")
    # Query parsing turns '+' into ' '; btoa output is also sometimes unpadded or URL-safe
    cleaned = token.strip().replace(" ", "+").replace("-", "+").replace("_", "/")
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        raw = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SharedPlanError(f"Shared plan is not valid base64: {e}") from e
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        # btoa() encodes each UTF-16 code unit as a single Latin-1 byte
        text = raw.decode("latin-1")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SharedPlanError(f"Shared plan is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SharedPlanError("Shared plan must be a JSON object")
    return data


def build_share_url(base_url: str, values: Union[Mapping[str, Any], BaseModel]) -> str:
    parts = urlsplit(base_url)
    query = f"{PLAN_PARAM}={quote(encode_plan(values), safe='')}"
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", query, ""))


def load_shared_plan(token: str) -> Dict[str, Any]:
    """Decode a shared plan into form values ready to repopulate the planner.

    A startDate saved as a browser timestamp is passed through untouched; the page
    converts it to the visitor's local calendar date.
    """
    return decode_plan(token)


def should_auto_generate(values: Mapping[str, Any]) -> bool:
    return bool(str(values.get("destination") or "").strip())
