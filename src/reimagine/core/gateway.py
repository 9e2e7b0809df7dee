"""Async client for the hosted inference models used by Reimagine.

This module provides :class:`InferenceGateway`, the single point of contact
with the Workers AI REST API.  Every substantive computation (image
classification, text completion, image synthesis) is delegated to a remote
model through :meth:`InferenceGateway.run`.

Key Responsibilities
--------------------
- **Model invocation**: ``POST {api_base_url}/accounts/{account_id}/ai/run/{model}``
  with a bearer token and a model-specific JSON payload.
- **Envelope unwrapping**: JSON responses arrive as
  ``{"success": bool, "result": ..., "errors": [...]}``; only ``result`` is
  returned to callers.  Binary responses (the image model) are returned as
  raw bytes.
- **Error normalisation**: transport errors, timeouts, non-2xx statuses and
  ``success: false`` envelopes all surface as :class:`GatewayError` with a
  human-readable message.
- **Bounded calls**: every request shares the client timeout configured by
  ``ReimagineConfig.request_timeout``.

Usage
-----
::

    from reimagine.core.config import config
    from reimagine.core.gateway import InferenceGateway

    gateway = InferenceGateway(config)
    labels = await gateway.classify(image_bytes)
    text = await gateway.complete("Describe a cat.", max_tokens=200)
    png = await gateway.synthesize("photorealistic cat", num_steps=20)
    await gateway.aclose()
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

import httpx

from reimagine.core.config import ReimagineConfig

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised for any failure surfaced by the inference gateway.

    Attributes:
        model_id: Identifier of the model being called, if known.
        status_code: Upstream HTTP status, if a response was received.
    """

    def __init__(
        self,
        message: str,
        *,
        model_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.model_id = model_id
        self.status_code = status_code


def _error_messages(payload: Any) -> str:
    """Join the ``errors[].message`` entries of a Workers AI envelope."""
    if not isinstance(payload, dict):
        return ""
    messages = []
    for err in payload.get("errors") or []:
        if isinstance(err, dict) and err.get("message"):
            messages.append(str(err["message"]))
        elif isinstance(err, str):
            messages.append(err)
    return "; ".join(messages)


class InferenceGateway:
    """Thin async wrapper around the Workers AI REST API.

    One instance is created per application lifetime and shared by all
    requests.  The underlying :class:`httpx.AsyncClient` pools connections
    but holds no per-request state.

    Attributes:
        _config (ReimagineConfig):
            Application configuration: credentials, model ids and timeout.
        _client (httpx.AsyncClient):
            HTTP client bound to the configured base URL.
    """

    def __init__(
        self,
        config: ReimagineConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialise the gateway.

        No network traffic happens here.  Missing credentials are reported
        lazily by :meth:`run`.

        Args:
            config: Application configuration instance.
            transport: Optional httpx transport, used by tests to stub the
                remote API.
        """
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.api_base_url.rstrip("/"),
            timeout=config.request_timeout,
            headers={"Authorization": f"Bearer {config.api_token}"},
            transport=transport,
        )

    # -- Generic invocation --------------------------------------------------

    async def run(self, model_id: str, payload: dict[str, Any]) -> Any:
        """Run a named model against a JSON payload.

        Args:
            model_id: Remote model identifier (e.g. ``@cf/microsoft/phi-2``).
            payload: Model-specific input object.

        Returns:
            The unwrapped ``result`` for JSON responses, or the raw response
            bytes for any other content type.

        Raises:
            GatewayError: On missing credentials, transport failure, timeout,
                non-2xx status, or an unsuccessful response envelope.
        """
        if not self._config.has_credentials:
            raise GatewayError(
                "Inference gateway credentials are not configured",
                model_id=model_id,
            )

        url = f"/accounts/{self._config.account_id}/ai/run/{model_id}"
        logger.debug(f"Calling {model_id}")

        try:
            response = await self._client.post(url, json=payload)
        except httpx.TimeoutException as exc:
            raise GatewayError(
                f"{model_id} timed out after {self._config.request_timeout:g}s",
                model_id=model_id,
            ) from exc
        except httpx.HTTPError as exc:
            raise GatewayError(
                f"{model_id} request failed: {exc}",
                model_id=model_id,
            ) from exc

        content_type = response.headers.get("content-type", "")
        is_json = "application/json" in content_type

        if response.is_error:
            message = ""
            if is_json:
                try:
                    message = _error_messages(response.json())
                except ValueError:
                    message = ""
            raise GatewayError(
                message or f"{model_id} returned HTTP {response.status_code}",
                model_id=model_id,
                status_code=response.status_code,
            )

        if not is_json:
            return response.content

        try:
            envelope = response.json()
        except ValueError as exc:
            raise GatewayError(
                f"{model_id} returned malformed JSON",
                model_id=model_id,
                status_code=response.status_code,
            ) from exc

        if isinstance(envelope, dict) and "result" in envelope:
            if envelope.get("success") is False:
                raise GatewayError(
                    _error_messages(envelope) or f"{model_id} reported failure",
                    model_id=model_id,
                    status_code=response.status_code,
                )
            return envelope["result"]
        return envelope

    # -- Model-specific helpers ----------------------------------------------

    async def classify(self, image: bytes) -> list[dict[str, Any]]:
        """Classify an image.

        Returns:
            The classifier's ``[{label, score}, ...]`` list in producer order.
        """
        model_id = self._config.classifier_model
        result = await self.run(model_id, {"image": list(image)})
        if not isinstance(result, list):
            raise GatewayError(
                f"{model_id} returned an unexpected classification payload",
                model_id=model_id,
            )
        return result

    async def complete(self, prompt: str, max_tokens: int) -> str:
        """Run a single-turn text completion.

        Returns:
            The generated text, or an empty string when the model produced
            nothing.
        """
        result = await self.run(
            self._config.text_model,
            {
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": max_tokens,
            },
        )
        if isinstance(result, dict):
            return str(result.get("response") or "")
        return ""

    async def synthesize(self, prompt: str, num_steps: int) -> bytes:
        """Generate an image from a text prompt.

        The image model normally answers with ``image/png`` bytes.  Some
        deployments wrap the image as base64 in a JSON ``image`` field; both
        forms are accepted.

        Returns:
            Raw PNG bytes.
        """
        model_id = self._config.image_model
        result = await self.run(model_id, {"prompt": prompt, "num_steps": num_steps})

        if isinstance(result, dict) and isinstance(result.get("image"), str):
            try:
                result = base64.b64decode(result["image"], validate=True)
            except (binascii.Error, ValueError) as exc:
                raise GatewayError(
                    f"{model_id} returned an undecodable image",
                    model_id=model_id,
                ) from exc

        if not isinstance(result, bytes) or not result:
            raise GatewayError(f"{model_id} returned no image data", model_id=model_id)
        return result

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
