"""Pydantic request and response models for the Reimagine API.

These models define the JSON schema for the API endpoints.  FastAPI uses
them for request validation, serialisation, and OpenAPI documentation.

Models
------
GenerateRequest
    Payload for ``POST /api/generate-image``.
Classification
    One ``{label, score}`` entry returned by the image classifier.
AnalyzeResponse
    Body returned by ``POST /api/analyze-image``.
ErrorResponse
    Error envelope shared by every endpoint.
CapabilityListing
    Default body for unmatched routes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class GenerateRequest(BaseModel):
    """Request body for the ``POST /api/generate-image`` endpoint.

    ``prompt`` is optional at the schema level so that a missing prompt is
    reported as a 400 ``MissingPrompt`` error rather than a schema failure.

    Attributes:
        prompt: Free-text description of the image to generate.
        style: Style key (``realistic``, ``artistic``, ``cartoon``,
            ``abstract``).  Missing, null and unknown keys fall back to
            ``realistic``.
    """

    prompt: str | None = Field(
        default=None,
        description="Text description of the image to generate.",
    )
    style: str | None = Field(
        default=None,
        description="Style key; missing, null or unknown values fall back to 'realistic'.",
    )


class Classification(BaseModel):
    """A single classifier prediction.

    Any extra fields the model returns are kept and echoed back in
    ``analysis``.
    """

    model_config = ConfigDict(extra="allow")

    label: str
    score: float


# Validates the classifier's raw list while preserving producer order.
classification_list = TypeAdapter(list[Classification])


class AnalyzeResponse(BaseModel):
    """Response body for ``POST /api/analyze-image``.

    Attributes:
        analysis: Classifier output, in the order the model returned it.
        description: Generated (or fallback) description of the image.
        prompt_suggestion: Ready-to-use generation prompt built from the
            description.
    """

    analysis: list[Classification]
    description: str
    prompt_suggestion: str


class ErrorResponse(BaseModel):
    """Error envelope.  ``details`` is omitted for client input errors."""

    error: str
    details: str | None = None


class CapabilityListing(BaseModel):
    """Default response describing the available endpoints."""

    message: str
    endpoints: list[str]
    styles: list[str]
