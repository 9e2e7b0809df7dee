"""Prompt composition for the Reimagine pipelines.

Every text sent to the remote models is assembled here.  The module is
pure: no I/O, no shared state.

Style Templates
---------------
Two template sets steer the image model.  The *generate* set is used by
``POST /api/generate-image``, where the prompt is user text; the
*transform* set is shorter because its input is already a full description
produced by the text model::

    style       generate                                         transform
    realistic   photorealistic {prompt}, high detail, 4k         photorealistic {prompt}, high detail
    artistic    artistic painting of {prompt}, creative, ...     artistic {prompt}, painting style
    cartoon     cartoon style {prompt}, animated, colorful       cartoon {prompt}, animated style
    abstract    abstract interpretation of {prompt}, modern art  abstract {prompt}, modern art

Lookups never fail: an unknown style key uses the ``realistic`` entry.

Cache Busting
-------------
The image model may memoise results keyed on exact prompt text, so the
pipelines append a ``timestamp:<ms>`` suffix to every synthesis prompt via
:func:`with_cache_buster`.  The suffix carries no meaning for the model.

Usage
-----
::

    labels = top_labels(classifications)            # "cat, dog, tree"
    styled = compose("a cat", "cartoon")            # "cartoon style a cat, ..."
    final = with_cache_buster(styled)               # "... timestamp:1700000000000"
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from time import time_ns

from reimagine.api.models import Classification

DEFAULT_STYLE = "realistic"

GENERATE_STYLE_TEMPLATES: dict[str, str] = {
    "realistic": "photorealistic {prompt}, high detail, 4k",
    "artistic": "artistic painting of {prompt}, creative, masterpiece",
    "cartoon": "cartoon style {prompt}, animated, colorful",
    "abstract": "abstract interpretation of {prompt}, modern art",
}

TRANSFORM_STYLE_TEMPLATES: dict[str, str] = {
    "realistic": "photorealistic {prompt}, high detail",
    "artistic": "artistic {prompt}, painting style",
    "cartoon": "cartoon {prompt}, animated style",
    "abstract": "abstract {prompt}, modern art",
}

STYLES: tuple[str, ...] = tuple(GENERATE_STYLE_TEMPLATES)

TOP_LABEL_COUNT = 3


def compose(
    base_text: str,
    style: str,
    templates: Mapping[str, str] = GENERATE_STYLE_TEMPLATES,
) -> str:
    """Apply a style template to *base_text*.

    Args:
        base_text: The scene description to style.
        style: Style key.  Unknown keys (including ``""``) use ``realistic``.
        templates: Template set, either :data:`GENERATE_STYLE_TEMPLATES` or
            :data:`TRANSFORM_STYLE_TEMPLATES`.

    Returns:
        The styled prompt.
    """
    template = templates.get(style, templates[DEFAULT_STYLE])
    return template.format(prompt=base_text)


def top_labels(classifications: Iterable[Classification], limit: int = TOP_LABEL_COUNT) -> str:
    """Join the first *limit* labels with ``", "``.

    Producer order is kept as-is; the list is assumed to already be sorted
    by descending confidence.
    """
    labels: list[str] = []
    for item in classifications:
        if len(labels) >= limit:
            break
        labels.append(item.label)
    return ", ".join(labels)


def analysis_instruction(labels: str) -> str:
    """Instruction asking the text model for a detailed generation-ready description."""
    return (
        f"Describe this image in detail for AI image generation. "
        f"The image contains: {labels}. "
        f"Provide a comprehensive description including objects, colors, "
        f"style, lighting, and composition."
    )


def transform_instruction(labels: str, custom_prompt: str = "") -> str:
    """Instruction for the transform pipeline, optionally carrying user text."""
    instruction = f"Describe this image for AI generation. Content: {labels}."
    if custom_prompt:
        instruction += f" Also: {custom_prompt}"
    return instruction


def analysis_fallback(labels: str) -> str:
    return f"An image featuring {labels}"


def transform_fallback(labels: str) -> str:
    return f"An image with {labels}"


def merge_description(base: str, custom_prompt: str = "") -> str:
    """Append the user's instruction to a description.

    Returns *base* unchanged when *custom_prompt* is empty so no trailing
    ``". "`` is introduced.
    """
    if custom_prompt:
        return f"{base}. {custom_prompt}"
    return base


def prompt_suggestion(description: str) -> str:
    return f"Create a new image: {description}"


def with_cache_buster(prompt: str, token: str | int | None = None) -> str:
    """Append the cache-busting suffix to a synthesis prompt.

    Args:
        prompt: The styled prompt.
        token: Value to embed.  Defaults to the current wall-clock time in
            milliseconds.

    Returns:
        ``"<prompt> timestamp:<token>"``.
    """
    if token is None:
        token = time_ns() // 1_000_000
    return f"{prompt} timestamp:{token}"
