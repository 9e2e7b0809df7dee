"""Shared pytest fixtures for Reimagine tests."""

import io
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from reimagine.api.main import app, get_config, get_gateway
from reimagine.core.config import ReimagineConfig
from reimagine.core.gateway import GatewayError

SAMPLE_CLASSIFICATIONS = [
    {"label": "cat", "score": 0.9},
    {"label": "dog", "score": 0.5},
    {"label": "tree", "score": 0.3},
    {"label": "sky", "score": 0.1},
]

FAKE_PNG = b"\x89PNG\r\n\x1a\nfake-image-bytes"


class FakeGateway:
    """In-memory stand-in for InferenceGateway that records every call.

    Attributes:
        calls: ``(method, kwargs)`` tuples in call order.
        fail_on: Name of the method that should raise ``GatewayError``.
    """

    def __init__(self) -> None:
        self.classifications: list[dict] = list(SAMPLE_CLASSIFICATIONS)
        self.completion = "A forest scene"
        self.image = FAKE_PNG
        self.fail_on: str | None = None
        self.calls: list[tuple[str, dict]] = []

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append((method, kwargs))
        if self.fail_on == method:
            raise GatewayError(f"{method} exploded")

    def methods(self) -> list[str]:
        return [name for name, _ in self.calls]

    def last(self, method: str) -> dict:
        return [kwargs for name, kwargs in self.calls if name == method][-1]

    async def classify(self, image: bytes) -> list[dict]:
        self._record("classify", image=image)
        return self.classifications

    async def complete(self, prompt: str, max_tokens: int) -> str:
        self._record("complete", prompt=prompt, max_tokens=max_tokens)
        return self.completion

    async def synthesize(self, prompt: str, num_steps: int) -> bytes:
        self._record("synthesize", prompt=prompt, num_steps=num_steps)
        return self.image


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> ReimagineConfig:
    """Create a test configuration with a minimal index.html template.

    Args:
        temp_dir: Temporary directory from fixture

    Returns:
        ReimagineConfig instance for testing
    """
    templates_dir = temp_dir / "templates"
    templates_dir.mkdir()
    (templates_dir / "index.html").write_text(
        "<!DOCTYPE html><html><head><title>AI Image Transformer</title></head>"
        "<body></body></html>",
        encoding="utf-8",
    )

    return ReimagineConfig(
        _env_file=None,
        account_id="test-account",
        api_token="test-token",
        api_base_url="https://gateway.test/client/v4",
        templates_dir=templates_dir,
    )


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def test_client(
    fake_gateway: FakeGateway,
    test_config: ReimagineConfig,
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with the gateway and config overridden.

    The lifespan still runs, but routes resolve the gateway through
    ``get_gateway`` so the fake is used for every request.
    """
    app.dependency_overrides[get_gateway] = lambda: fake_gateway
    app.dependency_overrides[get_config] = lambda: test_config
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def png_bytes() -> bytes:
    """A small real PNG for multipart uploads."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(0, 128, 255)).save(buffer, format="PNG")
    return buffer.getvalue()
