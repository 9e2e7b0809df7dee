"""Orchestration pipelines behind the three Reimagine endpoints.

Each pipeline is strictly linear: gateway calls are awaited one after
another (the second call depends on the first call's output), there are no
retries, and the first exception aborts the whole pipeline.  Route handlers
in :mod:`reimagine.api.main` convert that exception into a single 500 error
envelope, so no partial result ever reaches the client.

Pipelines
---------
analyze_image
    classify -> describe -> ``AnalyzeResponse``
generate_image
    style user prompt -> synthesize -> PNG bytes
transform_image
    classify -> describe (+ user instruction) -> style -> synthesize -> PNG bytes
"""

from __future__ import annotations

import logging

from reimagine.api import prompt_builder
from reimagine.api.models import AnalyzeResponse, Classification, classification_list
from reimagine.core.config import ReimagineConfig
from reimagine.core.gateway import InferenceGateway

logger = logging.getLogger(__name__)


async def _classify(gateway: InferenceGateway, image: bytes) -> list[Classification]:
    raw = await gateway.classify(image)
    return classification_list.validate_python(raw)


async def analyze_image(
    gateway: InferenceGateway,
    config: ReimagineConfig,
    image: bytes,
) -> AnalyzeResponse:
    """Classify *image* and describe it for later generation.

    Args:
        gateway: Inference gateway used for both model calls.
        config: Supplies the completion budget.
        image: Raw uploaded image bytes.

    Returns:
        The classifier output, a description, and a prompt suggestion.
    """
    analysis = await _classify(gateway, image)
    labels = prompt_builder.top_labels(analysis)
    logger.debug(f"Top labels: {labels!r}")

    generated = await gateway.complete(
        prompt_builder.analysis_instruction(labels),
        max_tokens=config.analysis_max_tokens,
    )
    description = generated.strip() or prompt_builder.analysis_fallback(labels)

    return AnalyzeResponse(
        analysis=analysis,
        description=description,
        prompt_suggestion=prompt_builder.prompt_suggestion(description),
    )


async def generate_image(
    gateway: InferenceGateway,
    config: ReimagineConfig,
    prompt: str,
    style: str,
) -> bytes:
    """Style *prompt* with the generate templates and synthesize an image."""
    styled = prompt_builder.compose(prompt, style, prompt_builder.GENERATE_STYLE_TEMPLATES)
    return await gateway.synthesize(
        prompt_builder.with_cache_buster(styled),
        num_steps=config.num_steps,
    )


async def transform_image(
    gateway: InferenceGateway,
    config: ReimagineConfig,
    image: bytes,
    custom_prompt: str = "",
    style: str = prompt_builder.DEFAULT_STYLE,
) -> bytes:
    """Re-imagine an uploaded image, optionally steered by user text.

    Args:
        gateway: Inference gateway used for all three model calls.
        config: Supplies the completion budget and step count.
        image: Raw uploaded image bytes.
        custom_prompt: Optional user instruction (e.g. ``"add mountains"``).
        style: Style key for the transform template set.

    Returns:
        PNG bytes of the newly synthesized image.
    """
    analysis = await _classify(gateway, image)
    labels = prompt_builder.top_labels(analysis)
    logger.debug(f"Top labels: {labels!r}")

    generated = await gateway.complete(
        prompt_builder.transform_instruction(labels, custom_prompt),
        max_tokens=config.transform_max_tokens,
    )
    base_description = generated.strip() or prompt_builder.transform_fallback(labels)
    description = prompt_builder.merge_description(base_description, custom_prompt)

    styled = prompt_builder.compose(description, style, prompt_builder.TRANSFORM_STYLE_TEMPLATES)
    return await gateway.synthesize(
        prompt_builder.with_cache_buster(styled),
        num_steps=config.num_steps,
    )
