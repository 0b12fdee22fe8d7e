"""
Tests for prompt templates.

This module tests:
- Type-specific prompt selection
- Conditional sections (target URL, social context, style reference)
- Style-reference rendering
- Pillar extension prompt
"""

import pytest

from app.core.exceptions import ContentValidationError
from app.services.prompts import (
    PromptFields,
    build_extension_prompt,
    build_prompts,
    count_words,
    render_style_reference,
)
from tests.fakes import make_result


# ========================================
# build_prompts
# ========================================

@pytest.mark.parametrize(
    "content_type, marker",
    [
        ("pillar", "AT LEAST 1500 words"),
        ("support", "**Key Takeaways**"),
        ("meta", "Meta description (140-155 characters)"),
        ("social", "LinkedIn posts"),
    ],
)
def test_build_prompts_selects_template(content_type, marker):
    """Each content type gets its own user prompt."""
    prompts = build_prompts(content_type, PromptFields(primary_keyword="desk booking"))

    assert marker in prompts.user
    assert '"desk booking"' in prompts.user
    assert prompts.system


def test_build_prompts_rejects_unknown_type():
    """Unknown types are a validation error."""
    with pytest.raises(ContentValidationError, match="video"):
        build_prompts("video", PromptFields(primary_keyword="desk booking"))


def test_build_prompts_rejects_all_wildcard():
    """'all' is a search wildcard, not a generatable type."""
    with pytest.raises(ContentValidationError):
        build_prompts("all", PromptFields(primary_keyword="desk booking"))


def test_target_url_only_when_present():
    """The URL line appears only when a target URL is given."""
    without = build_prompts("pillar", PromptFields(primary_keyword="desk booking"))
    with_url = build_prompts(
        "pillar",
        PromptFields(primary_keyword="desk booking", target_url="https://example.com/desks"),
    )

    assert "Reference this URL" not in without.user
    assert "Reference this URL when relevant: https://example.com/desks" in with_url.user


def test_social_context_only_for_social():
    """Additional context is rendered for social posts."""
    fields = PromptFields(primary_keyword="desk booking", social_context="Launch week")

    social = build_prompts("social", fields)
    pillar = build_prompts("pillar", fields)

    assert "ADDITIONAL CONTEXT:\nLaunch week" in social.user
    assert "Launch week" not in pillar.user


def test_related_keywords_interpolated():
    prompts = build_prompts(
        "meta",
        PromptFields(primary_keyword="desk booking", related_keywords="hot desking, hoteling"),
    )

    assert "TARGET KEYWORDS: hot desking, hoteling" in prompts.user


def test_style_reference_adds_system_instruction():
    """With a style reference, the system prompt tells the model to use it."""
    plain = build_prompts("support", PromptFields(primary_keyword="desk booking"))
    styled = build_prompts(
        "support",
        PromptFields(primary_keyword="desk booking", style_reference="\n\n**YOUR STYLE REFERENCE**"),
    )

    assert "IMPORTANT" not in plain.system
    assert "IMPORTANT: Use the provided examples" in styled.system
    assert "**YOUR STYLE REFERENCE**" in styled.user


# ========================================
# render_style_reference
# ========================================

def test_render_style_reference_empty():
    assert render_style_reference([], "desk booking") == ""


def test_render_style_reference_blocks():
    """Each exemplar is rendered as a numbered, labelled block."""
    exemplars = [
        make_result(title="Hot Desking 101", keywords=["hot desking", "hybrid"]),
        make_result(title="Room Booking", content_type="support", keywords=[]),
    ]

    text = render_style_reference(exemplars, "desk booking")

    assert text.startswith("\n\n**YOUR STYLE REFERENCE")
    assert "**Example 1 (pillar):**\nTitle: Hot Desking 101" in text
    assert "Keywords: hot desking, hybrid" in text
    assert "**Example 2 (support):**\nTitle: Room Booking" in text
    assert "Keywords: None" in text
    assert text.endswith('creating new content about "desk booking".')


# ========================================
# Extension prompt / word count
# ========================================

def test_count_words():
    assert count_words("") == 0
    assert count_words("one two\nthree\t four  ") == 4


def test_build_extension_prompt():
    """Extension prompt asks only for new material, sized by the shortfall."""
    existing = " ".join(["word"] * 1000)

    prompts = build_extension_prompt("desk booking", existing, 1500)

    assert "expanding and enhancing existing content" in prompts.system
    assert "approximately 500 words" in prompts.user
    assert "minimum of 1500 words" in prompts.user
    assert "provide ONLY the new content to add" in prompts.user
    assert existing in prompts.user
