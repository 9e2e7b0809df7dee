"""Tests for reimagine.api.errors — error taxonomy."""

from __future__ import annotations

from reimagine.api.errors import (
    InvalidRequestError,
    MissingImageError,
    MissingPromptError,
    PipelineError,
    ReimagineError,
)


def test_client_errors_are_400_without_details():
    for cls, message in (
        (MissingImageError, "No image provided"),
        (MissingPromptError, "Prompt is required"),
    ):
        exc = cls()
        assert isinstance(exc, ReimagineError)
        assert exc.status_code == 400
        assert exc.to_response().model_dump(exclude_none=True) == {"error": message}


def test_invalid_request_carries_details():
    exc = InvalidRequestError(details="body.prompt: Input should be a valid string")
    assert exc.status_code == 400
    assert exc.to_response().details == "body.prompt: Input should be a valid string"


def test_pipeline_error_is_500_with_details():
    exc = PipelineError("Image transformation failed", details="synthesize exploded")
    assert exc.status_code == 500
    assert exc.to_response().model_dump() == {
        "error": "Image transformation failed",
        "details": "synthesize exploded",
    }
    assert str(exc) == "Image transformation failed: synthesize exploded"
