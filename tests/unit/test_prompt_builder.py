"""Tests for reimagine.api.prompt_builder — prompt composition.

Tests cover:
- Style template lookup and the ``realistic`` fallback.
- Top-label selection and ordering.
- Description instructions and fallbacks.
- Custom-prompt merging.
- Cache-busting suffix.
"""

from __future__ import annotations

import pytest

from reimagine.api.models import Classification
from reimagine.api.prompt_builder import (
    GENERATE_STYLE_TEMPLATES,
    STYLES,
    TRANSFORM_STYLE_TEMPLATES,
    analysis_fallback,
    analysis_instruction,
    compose,
    merge_description,
    prompt_suggestion,
    top_labels,
    transform_fallback,
    transform_instruction,
    with_cache_buster,
)


def _classifications(*pairs: tuple[str, float]) -> list[Classification]:
    return [Classification(label=label, score=score) for label, score in pairs]


class TestCompose:
    """Test style template application."""

    def test_generate_templates(self):
        assert compose("a cat", "realistic") == "photorealistic a cat, high detail, 4k"
        assert compose("a cat", "artistic") == "artistic painting of a cat, creative, masterpiece"
        assert compose("a cat", "cartoon") == "cartoon style a cat, animated, colorful"
        assert compose("a cat", "abstract") == "abstract interpretation of a cat, modern art"

    def test_transform_templates(self):
        t = TRANSFORM_STYLE_TEMPLATES
        assert compose("a cat", "realistic", t) == "photorealistic a cat, high detail"
        assert compose("a cat", "artistic", t) == "artistic a cat, painting style"
        assert compose("a cat", "cartoon", t) == "cartoon a cat, animated style"
        assert compose("a cat", "abstract", t) == "abstract a cat, modern art"

    @pytest.mark.parametrize("style", ["", "Realistic", "vaporwave", "none", "__class__"])
    @pytest.mark.parametrize("templates", [GENERATE_STYLE_TEMPLATES, TRANSFORM_STYLE_TEMPLATES])
    def test_unknown_style_matches_realistic(self, style, templates):
        """Any style outside the known set behaves exactly like 'realistic'."""
        assert compose("a forest", style, templates) == compose("a forest", "realistic", templates)

    def test_braces_in_text_are_not_formatted(self):
        """User text is substituted, never interpreted as a template."""
        assert compose("{prompt} {0}", "cartoon") == "cartoon style {prompt} {0}, animated, colorful"

    def test_template_sets_cover_the_same_styles(self):
        assert set(GENERATE_STYLE_TEMPLATES) == set(TRANSFORM_STYLE_TEMPLATES) == set(STYLES)
        assert STYLES == ("realistic", "artistic", "cartoon", "abstract")


class TestTopLabels:
    """Test top-label selection."""

    def test_first_three_in_order(self):
        items = _classifications(("cat", 0.9), ("dog", 0.5), ("tree", 0.3), ("sky", 0.1))
        assert top_labels(items) == "cat, dog, tree"

    def test_producer_order_is_not_resorted(self):
        items = _classifications(("low", 0.1), ("high", 0.9))
        assert top_labels(items) == "low, high"

    def test_fewer_than_three(self):
        assert top_labels(_classifications(("cat", 0.9))) == "cat"

    def test_empty(self):
        assert top_labels([]) == ""

    def test_custom_limit(self):
        items = _classifications(("a", 0.4), ("b", 0.3), ("c", 0.2))
        assert top_labels(items, limit=2) == "a, b"


class TestInstructions:
    """Test text-model instructions and fallbacks."""

    def test_analysis_instruction_embeds_labels(self):
        text = analysis_instruction("cat, dog, tree")
        assert text.startswith("Describe this image in detail for AI image generation.")
        assert "The image contains: cat, dog, tree." in text
        assert "lighting, and composition" in text

    def test_transform_instruction_without_custom(self):
        assert (
            transform_instruction("cat, dog")
            == "Describe this image for AI generation. Content: cat, dog."
        )

    def test_transform_instruction_with_custom(self):
        assert transform_instruction("cat", "add mountains") == (
            "Describe this image for AI generation. Content: cat. Also: add mountains"
        )

    def test_fallbacks(self):
        assert analysis_fallback("cat, dog") == "An image featuring cat, dog"
        assert transform_fallback("cat, dog") == "An image with cat, dog"

    def test_prompt_suggestion(self):
        assert prompt_suggestion("A cat") == "Create a new image: A cat"


class TestMergeDescription:
    """Test custom-prompt merging."""

    def test_with_custom_prompt(self):
        assert merge_description("A forest scene", "add mountains") == (
            "A forest scene. add mountains"
        )

    def test_without_custom_prompt(self):
        """No trailing '. ' is introduced when the custom prompt is empty."""
        assert merge_description("A forest scene", "") == "A forest scene"
        assert merge_description("A forest scene") == "A forest scene"


class TestCacheBuster:
    """Test the cache-busting suffix."""

    def test_explicit_token(self):
        assert with_cache_buster("a cat", token=123) == "a cat timestamp:123"

    def test_default_token_is_millisecond_timestamp(self, monkeypatch):
        monkeypatch.setattr(
            "reimagine.api.prompt_builder.time_ns", lambda: 1_700_000_000_123_456_789
        )
        assert with_cache_buster("a cat") == "a cat timestamp:1700000000123"

    def test_prompt_is_preserved_as_prefix(self):
        styled = compose("a cat", "abstract")
        assert with_cache_buster(styled).startswith(styled + " timestamp:")
