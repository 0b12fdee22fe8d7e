"""
Prompt Templates

Type-specific system/user prompt pairs for content generation, the
style-reference block built from similar library items, and the follow-up
prompt used to extend short pillar articles.

All functions here are pure: they take fields and return strings.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Protocol, Sequence

from app.core.exceptions import ContentValidationError
from app.models.content import ContentType


@dataclass(frozen=True)
class PromptPair:
    """System and user messages for one chat-completion call."""

    system: str
    user: str


@dataclass(frozen=True)
class PromptFields:
    """Caller-supplied fields interpolated into the templates."""

    primary_keyword: str
    related_keywords: str = ""
    target_url: Optional[str] = None
    social_context: Optional[str] = None
    style_reference: str = ""


class Exemplar(Protocol):
    content_type: str
    title: str
    excerpt: str
    keywords: Sequence[str]


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split()) if text else 0


def _lines(*parts: Optional[str]) -> str:
    """Join parts with newlines, skipping absent (None) sections."""
    return "\n".join(p for p in parts if p is not None)


# ========================================
# Style Reference
# ========================================

def render_exemplar(index: int, exemplar: Exemplar) -> str:
    keywords = ", ".join(exemplar.keywords) if exemplar.keywords else "None"
    return (
        f"\n**Example {index + 1} ({exemplar.content_type}):**\n"
        f"Title: {exemplar.title}\n"
        f"Content: {exemplar.excerpt}\n"
        f"Keywords: {keywords}\n"
    )


def render_style_reference(exemplars: Iterable[Exemplar], primary_keyword: str) -> str:
    """
    Render library items as a style-reference block for the user prompt.

    Returns an empty string when there are no exemplars.
    """
    blocks = [render_exemplar(i, e) for i, e in enumerate(exemplars)]
    if not blocks:
        return ""

    examples = "\n".join(blocks)
    return (
        "\n\n**YOUR STYLE REFERENCE - Use these examples from your content library "
        f"as style and structure guidance:**{examples}\n\n"
        "Maintain consistency with the voice, tone, and structure patterns shown in "
        f'these examples while creating new content about "{primary_keyword}".'
    )


# ========================================
# Type-Specific Templates
# ========================================

def _pillar(f: PromptFields) -> PromptPair:
    system = (
        "You are an expert content writer specializing in office space and asset "
        "management technology. Your writing is authoritative, well-researched, and "
        "valuable to professionals in the field. Create content that demonstrates "
        "expertise while maintaining engaging, readable style with concise headlines "
        "and comprehensive content. Focus on providing specific actionable insights "
        "and practical examples throughout."
    )
    if f.style_reference:
        system += (
            "\n\nIMPORTANT: Use the provided style references to maintain consistency "
            "with the established voice and approach."
        )

    user = _lines(
        f'Create an in-depth, expert guide about "{f.primary_keyword}" that is '
        f"AT LEAST 1500 words.{f.style_reference}",
        "",
        "TITLE REQUIREMENTS:",
        "- Create a concise, impactful title (maximum 60 characters)",
        "- Make it action-oriented and benefit-focused",
        "- Avoid long, complex phrases",
        "",
        "CONTENT STRUCTURE:",
        "1. Start with a compelling executive summary (2-3 short paragraphs)",
        "2. Create 6-8 major sections with clear H2 headings",
        "3. Include relevant H3 subheadings within each section",
        "4. End with actionable takeaways and next steps",
        "",
        "CONTENT REQUIREMENTS:",
        "- Provide concrete examples from the office space management industry",
        "- Include relevant statistics and research findings",
        "- Address ROI and cost-benefit considerations",
        f"- Naturally incorporate these keywords: {f.related_keywords}",
        f"- Reference this URL when relevant: {f.target_url}" if f.target_url else None,
        "",
        "Format in proper Markdown with clear H1, H2, H3 headings, lists, and emphasis. "
        "The content MUST be AT LEAST 1500 words.",
    )
    return PromptPair(system=system, user=user)


def _social(f: PromptFields) -> PromptPair:
    system = (
        "You are a social media content strategist for OfficeSpace Software. You "
        "create engaging LinkedIn posts that mirror the company's conversational yet "
        "professional tone, using creative formatting, relevant emojis, and compelling "
        "storytelling to drive engagement."
    )
    if f.style_reference:
        system += (
            "\n\nIMPORTANT: Use the provided style references to maintain consistency "
            "with successful social posts."
        )

    user = _lines(
        f'Create 2-3 engaging LinkedIn posts about "{f.primary_keyword}" following '
        f"OfficeSpace Software's distinctive social media style.{f.style_reference}",
        "",
        "LENGTH REQUIREMENTS:",
        "- Create posts that are 60-120 words (similar to successful examples)",
        "- Include multiple paragraphs with clear narrative flow",
        "- Add descriptive details and specific scenarios",
        "- Expand on benefits and outcomes, not just features",
        "",
        "FORMATTING REQUIREMENTS:",
        "- Start with an engaging emoji that relates to the content",
        "- Use conversational, friendly language with personality",
        "- Include creative formatting (italics, em dashes, bullet points with emoji)",
        "- Use \U0001F539 for bullet points when listing features/benefits",
        '- Include vivid imagery and "imagine" scenarios',
        "- End with a short, punchy conclusion or CTA",
        "",
        "CONTENT REQUIREMENTS:",
        f"- Naturally incorporate these keywords: {f.related_keywords}",
        "- Focus on employee benefits and workplace transformation",
        f"- Reference or link to: {f.target_url}" if f.target_url else None,
        f"\nADDITIONAL CONTEXT:\n{f.social_context}" if f.social_context else None,
    )
    return PromptPair(system=system, user=user)


def _meta(f: PromptFields) -> PromptPair:
    system = (
        "You are an SEO specialist with expertise in technical SEO for B2B SaaS "
        "websites. You create optimized meta tags that improve search visibility while "
        "accurately representing page content."
    )
    if f.style_reference:
        system += (
            "\n\nIMPORTANT: Use the provided examples to understand successful meta "
            "tag patterns."
        )

    user = _lines(
        f'Create optimized meta tags for a page about "{f.primary_keyword}".'
        f"{f.style_reference}",
        "",
        "Based on best SEO practices for B2B SaaS websites, create:",
        "1. Title tag (50-60 characters) that balances keyword usage with compelling copy",
        "2. Meta description (140-155 characters) that includes a value proposition "
        "and call-to-action",
        "3. 5 primary keywords in order of priority",
        "4. 5 secondary long-tail keywords",
        "5. Complete Open Graph tags",
        "6. Twitter card tags",
        "7. Suggested H1 heading for the page",
        "",
        f"TARGET KEYWORDS: {f.related_keywords}",
        f"TARGET URL: {f.target_url}" if f.target_url else None,
    )
    return PromptPair(system=system, user=user)


def _support(f: PromptFields) -> PromptPair:
    system = (
        "You are a workplace technology expert writing for OfficeSpace Software. Your "
        "writing is conversational yet authoritative, data-driven, and "
        "solution-focused. You explain complex concepts in accessible terms while "
        "maintaining credibility through specific statistics and real-world examples."
    )
    if f.style_reference:
        system += (
            "\n\nIMPORTANT: Use the provided examples to maintain the established "
            "voice and structure."
        )

    user = _lines(
        f'Create an in-depth support guide about "{f.primary_keyword}" using '
        f"OfficeSpace Software's distinctive voice and structure.{f.style_reference}",
        "",
        "TONE & STYLE REQUIREMENTS:",
        '- Conversational yet professional (use phrases like "now what?" or '
        '"here\'s the thing")',
        "- Lead with compelling statistics and industry insights",
        "- Problem-solution narrative structure",
        "- Technical concepts explained in accessible language",
        "",
        "DOCUMENT STRUCTURE:",
        "1. **Key Takeaways** section with 4-5 bullet points highlighting main insights",
        "2. **Problem Context** section with industry context and challenges",
        "3. **Why Traditional Approaches Fall Short** explaining current pain points",
        "4. **OfficeSpace Solution** section detailing how the software addresses challenges",
        "5. **How It Works** with specific examples and outcomes",
        "6. **Real-World Benefits** for different user types",
        "7. **Getting Started** with clear next steps",
        "",
        "CONTENT REQUIREMENTS:",
        "- Include specific percentages, statistics, and data points throughout",
        f"- Naturally incorporate these keywords: {f.related_keywords}",
        f"- Reference this URL when relevant: {f.target_url}" if f.target_url else None,
    )
    return PromptPair(system=system, user=user)


_TEMPLATES: Dict[ContentType, Callable[[PromptFields], PromptPair]] = {
    ContentType.PILLAR: _pillar,
    ContentType.SUPPORT: _support,
    ContentType.META: _meta,
    ContentType.SOCIAL: _social,
}


def build_prompts(content_type: str, fields: PromptFields) -> PromptPair:
    """
    Build the system/user prompt pair for a content type.

    Raises:
        ContentValidationError: If content_type is not a recognised type
    """
    try:
        template = _TEMPLATES[ContentType(content_type)]
    except ValueError:
        raise ContentValidationError(f"Invalid content type: {content_type}") from None

    return template(fields)


# ========================================
# Pillar Extension
# ========================================

EXTENSION_SYSTEM_PROMPT = (
    "You are an expert content writer specializing in expanding and enhancing "
    "existing content with specific, detailed examples, case studies, and actionable "
    "insights. Your additions are seamlessly integrated, matching the tone and style "
    "of the original content while adding significant value."
)


def build_extension_prompt(primary_keyword: str, existing: str, min_words: int) -> PromptPair:
    """
    Build the follow-up prompt asking for only the material needed to reach
    ``min_words``.
    """
    additional_words_needed = max(min_words - count_words(existing), 0)

    user = (
        f'I have the following content about "{primary_keyword}" but it needs to be '
        f"expanded by approximately {additional_words_needed} words to reach a minimum "
        f"of {min_words} words.\n\n"
        "Please analyze this content and provide ADDITIONAL sections, detailed examples, "
        "case studies, statistics, and deeper explanations that would enhance it. Focus "
        "on adding specific, actionable value, not just words.\n\n"
        f"EXISTING CONTENT:\n{existing}\n\n"
        "Please provide ONLY the new content to add, formatted in Markdown. I will "
        "integrate it with the existing content. Include at least one new major section "
        "(H2) with subsections (H3) that wasn't covered in the original content."
    )
    return PromptPair(system=EXTENSION_SYSTEM_PROMPT, user=user)
