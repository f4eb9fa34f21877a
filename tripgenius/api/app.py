import logging
import os
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict

import orjson
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, ORJSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from tripgenius import __version__
from tripgenius.services.common import MODEL, api_key_configured
from tripgenius.services.generate_itinerary import (
    ERROR_PREFIX,
    describe_validation_error,
    generate_itinerary_action,
)
from tripgenius.services.share_link import (
    PLAN_PARAM,
    SharedPlanError,
    build_share_url,
    load_shared_plan,
    should_auto_generate,
)
from tripgenius.utils.plan_schema import (
    BUDGETS,
    DEFAULT_PREFERENCES,
    INTERESTS,
    PACES,
    Itinerary,
    TripPreferences,
)
from tripgenius.utils.render import SLOTS, format_long_date

PACKAGE_DIR = Path(__file__).resolve().parent.parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"
STATIC_DIR = PACKAGE_DIR / "static"


# Response class that uses orjson for faster JSON serialization
class ORJSONResponse(ORJSONResponse):
    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        return orjson.dumps(content, option=orjson.OPT_NON_STR_KEYS)


# Request logging middleware
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"

        logger.info(
            "%s %s %s %s %s",
            request.method,
            request.url.path,
            response.status_code,
            f"{process_time:.2f}ms",
            request.client.host if request.client else "unknown",
        )
        return response


# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("tripgenius.api")

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["long_date"] = format_long_date


# Application lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting TripGenius (model=%s)...", MODEL)
    if not api_key_configured():
        logger.warning("No Gemini API key configured; generation requests will fail")
    try:
        yield
    finally:
        logger.info("Shutting down TripGenius...")


app = FastAPI(
    title="TripGenius",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Process-Time"],
    max_age=600,  # 10 minutes
)

app.add_middleware(
    GZipMiddleware,
    minimum_size=1024,  # Only compress responses larger than 1KB
    compresslevel=6,
)

app.add_middleware(LoggingMiddleware)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


def _validate_prefs(body: Dict[str, Any]) -> TripPreferences:
    try:
        return TripPreferences.model_validate(body)
    except ValidationError as ve:
        msg = describe_validation_error(ve)
        logger.warning("Rejected preferences: %s", msg)
        raise HTTPException(status_code=400, detail=ERROR_PREFIX + msg)


async def _generate(body: Dict[str, Any]) -> Itinerary:
    prefs = _validate_prefs(body)
    result = await generate_itinerary_action(prefs)
    if isinstance(result, dict):
        raise HTTPException(status_code=502, detail=result["error"])
    return result


@app.get("/", response_class=HTMLResponse)
async def planner_page(request: Request):
    """Planner form. A `plan` query parameter pre-fills it and triggers generation."""
    initial: Dict[str, Any] = {}
    plan_error = None
    token = request.query_params.get(PLAN_PARAM)
    if token:
        try:
            initial = load_shared_plan(token)
        except SharedPlanError as e:
            logger.warning("Failed to parse plan from URL: %s", e)
            plan_error = "The shared plan link is invalid or corrupted."
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "initial_plan": {**DEFAULT_PREFERENCES, **initial} if initial else None,
            "auto_generate": should_auto_generate(initial),
            "plan_error": plan_error,
            "defaults": DEFAULT_PREFERENCES,
            "interests": INTERESTS,
            "budgets": BUDGETS,
            "paces": PACES,
        },
    )


@app.get("/health")
async def health() -> Dict[str, Any]:
    import platform
    import psutil
    from datetime import datetime, timezone

    return {
        "status": "ok",
        "service": "TripGenius",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "model": MODEL,
        "api_key_configured": api_key_configured(),
        "system": {
            "platform": platform.system(),
            "python_version": platform.python_version(),
            "cpu_count": psutil.cpu_count(),
            "memory_percent": psutil.virtual_memory().percent,
        },
    }


@app.post("/api/itinerary")
async def itinerary_endpoint(body: Dict[str, Any]):
    itinerary = await _generate(body)
    return itinerary.model_dump(mode="json")


@app.post("/itinerary/view", response_class=HTMLResponse)
async def itinerary_view_endpoint(request: Request, body: Dict[str, Any]):
    """Same as /api/itinerary but returns the rendered itinerary cards."""
    itinerary = await _generate(body)
    return templates.TemplateResponse(
        request,
        "_itinerary.html",
        {"destination": str(body.get("destination") or "").strip(), "itinerary": itinerary, "slots": SLOTS},
    )


@app.post("/api/share")
async def share_endpoint(request: Request, body: Dict[str, Any]):
    base_url = str(request.base_url)
    return {"url": build_share_url(base_url, body)}
