"""Reimagine — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, the request router, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
The application is a stateless request router in front of a hosted
inference service:

- **Configuration** is loaded from ``REIMAGINE_*`` environment variables
  (see :mod:`reimagine.core.config`).
- **Inference** is delegated to :class:`~reimagine.core.gateway.InferenceGateway`,
  created once per application lifetime.
- **Orchestration** lives in :mod:`reimagine.api.workflows`; route handlers
  only parse input, call one pipeline, and shape the response.
- **The HTML page** is served as a raw ``HTMLResponse`` from
  ``templates/index.html``.
- **CORS** headers are merged into every response by an HTTP middleware,
  which also answers ``OPTIONS`` preflight requests for any path.

Endpoints
---------
========  ==========================  ==========================================
Method    Path                        Purpose
========  ==========================  ==========================================
OPTIONS   any                         Preflight: empty 200 with CORS headers
GET       ``/``                       Serve the main HTML page
POST      ``/api/analyze-image``      Classify + describe an uploaded image
POST      ``/api/generate-image``     Generate a PNG from a text prompt
POST      ``/api/transform-image``    Re-imagine an uploaded image as a PNG
any       anything else               JSON capability listing
========  ==========================  ==========================================

Usage
-----
CLI (installed entry point)::

    reimagine

Direct invocation::

    python -m reimagine.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from reimagine import __version__
from reimagine.api import workflows
from reimagine.api.errors import (
    MissingImageError,
    MissingPromptError,
    PipelineError,
    TemplateNotFoundError,
    register_exception_handlers,
)
from reimagine.api.models import AnalyzeResponse, CapabilityListing, GenerateRequest
from reimagine.api.prompt_builder import DEFAULT_STYLE, STYLES
from reimagine.core.config import ReimagineConfig, config
from reimagine.core.gateway import InferenceGateway

logger = logging.getLogger(__name__)

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

CAPABILITIES = CapabilityListing(
    message="AI Image Transformer API",
    endpoints=[
        "GET  / - HTML UI",
        "POST /api/analyze-image - Analyze image to text",
        "POST /api/generate-image - Generate image from text",
        "POST /api/transform-image - Complete workflow",
    ],
    styles=list(STYLES),
)

# ---------------------------------------------------------------------------
# Application lifecycle: inference gateway setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared :class:`InferenceGateway` and close it on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.gateway = InferenceGateway(config)
    if not config.has_credentials:
        logger.warning(
            "REIMAGINE_ACCOUNT_ID / REIMAGINE_API_TOKEN not set; "
            "inference endpoints will fail until they are configured."
        )
    logger.info("InferenceGateway initialised.")

    yield  # Application runs here.

    await app.state.gateway.aclose()
    logger.info("InferenceGateway closed on shutdown.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Reimagine",
    description="Image analysis and re-generation through hosted inference models.",
    version=__version__,
    lifespan=lifespan,
)

register_exception_handlers(app)


@app.exception_handler(StarletteHTTPException)
async def unmatched_method(request: Request, exc: StarletteHTTPException) -> Response:
    """Answer methods that no route accepts with the capability listing.

    The catch-all route below can only enumerate a fixed set of methods, so
    ``HEAD``, ``TRACE`` and custom verbs reach the router's 405 instead.
    """
    if exc.status_code == 405:
        return JSONResponse(content=CAPABILITIES.model_dump())
    return await http_exception_handler(request, exc)


@app.middleware("http")
async def cors_headers(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Answer preflight requests and merge the fixed CORS headers.

    ``OPTIONS`` on any path short-circuits with an empty 200.  Every other
    response, including error envelopes, gets the same header set.
    """
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


# ---------------------------------------------------------------------------
# Dependencies.
# ---------------------------------------------------------------------------


def get_gateway(request: Request) -> InferenceGateway:
    """Return the gateway created by :func:`lifespan`."""
    return request.app.state.gateway


def get_config() -> ReimagineConfig:
    """Return the active configuration (overridable in tests)."""
    return config


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/", response_class=HTMLResponse)
async def index(settings: ReimagineConfig = Depends(get_config)) -> HTMLResponse:
    """Serve the front end.

    The page is static: it posts to the API endpoints directly, so no
    server-side template rendering is needed.

    Raises:
        TemplateNotFoundError: 404 if ``index.html`` is not found.
    """
    index_path = settings.templates_dir / "index.html"
    if index_path.exists():
        return HTMLResponse(content=index_path.read_text(encoding="utf-8"))
    raise TemplateNotFoundError()


@app.post("/api/analyze-image", response_model=AnalyzeResponse)
async def analyze_image(
    image: UploadFile | None = File(default=None),
    gateway: InferenceGateway = Depends(get_gateway),
    settings: ReimagineConfig = Depends(get_config),
) -> AnalyzeResponse:
    """Classify an uploaded image and describe it.

    Args:
        image: Multipart ``image`` field.

    Returns:
        Classifier output, a description, and a prompt suggestion.

    Raises:
        MissingImageError: 400 if no ``image`` field was sent.
        PipelineError: 500 if any pipeline step fails.
    """
    if image is None:
        raise MissingImageError()

    logger.info(f"Analyzing image {image.filename!r}")
    try:
        image_bytes = await image.read()
        return await workflows.analyze_image(gateway, settings, image_bytes)
    except Exception as exc:
        logger.exception("Image analysis failed")
        raise PipelineError("Image analysis failed", details=str(exc)) from exc


@app.post("/api/generate-image")
async def generate_image(
    req: GenerateRequest | None = None,
    gateway: InferenceGateway = Depends(get_gateway),
    settings: ReimagineConfig = Depends(get_config),
) -> Response:
    """Generate a PNG from a text prompt and style.

    Args:
        req: JSON body ``{prompt, style?}``.

    Returns:
        Raw ``image/png`` bytes.

    Raises:
        MissingPromptError: 400 if ``prompt`` is missing or blank.
        PipelineError: 500 if generation fails.
    """
    prompt = req.prompt if req else None
    if not prompt or not prompt.strip():
        raise MissingPromptError()

    style = req.style or DEFAULT_STYLE
    logger.info(f"Generating image (style={style!r})")
    try:
        png = await workflows.generate_image(gateway, settings, prompt, style)
    except Exception as exc:
        logger.exception("Image generation failed")
        raise PipelineError("Image generation failed", details=str(exc)) from exc
    return Response(content=png, media_type="image/png")


@app.post("/api/transform-image")
async def transform_image(
    image: UploadFile | None = File(default=None),
    prompt: str | None = Form(default=None),
    style: str | None = Form(default=None),
    gateway: InferenceGateway = Depends(get_gateway),
    settings: ReimagineConfig = Depends(get_config),
) -> Response:
    """Re-imagine an uploaded image, optionally steered by user text.

    Args:
        image: Multipart ``image`` field (required).
        prompt: Optional free-text instruction appended to the description.
        style: Optional style key; defaults to ``realistic``.

    Returns:
        Raw ``image/png`` bytes.

    Raises:
        MissingImageError: 400 if no ``image`` field was sent.
        PipelineError: 500 if any pipeline step fails.
    """
    if image is None:
        raise MissingImageError()

    custom_prompt = prompt if prompt and prompt.strip() else ""
    style = style or DEFAULT_STYLE
    logger.info(f"Transforming image {image.filename!r} (style={style!r})")
    try:
        image_bytes = await image.read()
        png = await workflows.transform_image(
            gateway,
            settings,
            image_bytes,
            custom_prompt=custom_prompt,
            style=style,
        )
    except Exception as exc:
        logger.exception("Image transformation failed")
        raise PipelineError("Image transformation failed", details=str(exc)) from exc
    return Response(content=png, media_type="image/png")


# Registered last so every explicit route above takes precedence.
@app.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def capabilities(path: str) -> CapabilityListing:
    """Describe the API for any unmatched method or path."""
    return CAPABILITIES


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~reimagine.core.config.config`
    (``REIMAGINE_SERVER_HOST``, ``REIMAGINE_SERVER_PORT``,
    ``REIMAGINE_LOG_LEVEL``).  Defaults to ``0.0.0.0:8787``.

    This function is registered as the ``reimagine`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    uvicorn.run(
        "reimagine.api.main:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level,
        reload=False,
    )


if __name__ == "__main__":
    main()
