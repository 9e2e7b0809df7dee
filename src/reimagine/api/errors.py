"""Error taxonomy and JSON exception handlers for the Reimagine API.

Every error leaves the service as an :class:`~reimagine.api.models.ErrorResponse`
envelope::

    400  {"error": "No image provided"}
    400  {"error": "Prompt is required"}
    400  {"error": "Invalid request body", "details": "..."}
    500  {"error": "Image analysis failed", "details": "<message>"}

Client input errors carry no ``details``.  Pipeline failures always do;
transient (network) and permanent (bad model input) failures are not
distinguished.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from reimagine.api.models import ErrorResponse

logger = logging.getLogger(__name__)


class ReimagineError(Exception):
    """Base class for errors rendered as a JSON error envelope."""

    status_code: int = 500
    error: str = "Internal error"

    def __init__(self, error: str | None = None, details: str | None = None) -> None:
        if error is not None:
            self.error = error
        self.details = details
        super().__init__(self.error if details is None else f"{self.error}: {details}")

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.error, details=self.details)


class MissingImageError(ReimagineError):
    status_code = 400
    error = "No image provided"


class MissingPromptError(ReimagineError):
    status_code = 400
    error = "Prompt is required"


class InvalidRequestError(ReimagineError):
    status_code = 400
    error = "Invalid request body"


class TemplateNotFoundError(ReimagineError):
    status_code = 404
    error = "index.html not found"


class PipelineError(ReimagineError):
    """A pipeline step failed; wraps the original exception's message."""

    status_code = 500


async def _reimagine_error_handler(request: Request, exc: ReimagineError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Summarise pydantic's error list as "loc: msg" pairs.
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    logger.info(f"Rejected {request.method} {request.url.path}: {details}")
    return await _reimagine_error_handler(request, InvalidRequestError(details=details))


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on *app*."""
    app.add_exception_handler(ReimagineError, _reimagine_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
