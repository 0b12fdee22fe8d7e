"""
Response Normaliser

Model responses arrive in several shapes: plain Markdown, a JSON object
carrying named content fields, a list of such objects, or a JSON object
wrapped in a ```json code block. This module turns any of those into one
of three variants so callers never have to sniff optional fields:

- StructuredContent: recognised content fields, each coerced to a list
- PlainOutput: non-empty free text
- RawUnrecognized: anything else (kept for debugging)

Every variant exposes ``as_text()``.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


STRUCTURED_FIELDS = ("pillarContent", "supportContent", "socialMediaPosts", "emailSeries")

_JSON_BLOCK = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL)


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    body: str


@dataclass(frozen=True)
class StructuredContent:
    """Named content fields recognised in a JSON response."""

    pillar_content: List[str] = field(default_factory=list)
    support_content: List[str] = field(default_factory=list)
    social_media_posts: List[str] = field(default_factory=list)
    email_series: List[EmailMessage] = field(default_factory=list)

    kind = "structured"

    def as_text(self) -> str:
        parts: List[str] = []
        parts.extend(self.pillar_content)
        parts.extend(self.support_content)
        parts.extend(self.social_media_posts)
        for email in self.email_series:
            parts.append(f"**Subject:** {email.subject}\n\n{email.body}".strip())
        return "\n\n".join(p for p in parts if p.strip())


@dataclass(frozen=True)
class PlainOutput:
    """Free-text model output."""

    text: str

    kind = "plain"

    def as_text(self) -> str:
        return self.text


@dataclass(frozen=True)
class RawUnrecognized:
    """Output that matched no known shape."""

    raw: Any

    kind = "unrecognized"

    def as_text(self) -> str:
        return ""


GenerationOutput = Union[StructuredContent, PlainOutput, RawUnrecognized]


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _as_strings(value: Any) -> List[str]:
    return [str(v) for v in _as_list(value) if v is not None and str(v).strip()]


def _as_emails(value: Any) -> List[EmailMessage]:
    emails = []
    for entry in _as_list(value):
        if isinstance(entry, dict):
            emails.append(
                EmailMessage(
                    subject=str(entry.get("subject", "")),
                    body=str(entry.get("body", "")),
                )
            )
        elif entry:
            emails.append(EmailMessage(subject="", body=str(entry)))
    return emails


def _from_mapping(data: Dict[str, Any]) -> Optional[StructuredContent]:
    if not any(key in data for key in STRUCTURED_FIELDS):
        return None

    return StructuredContent(
        pillar_content=_as_strings(data.get("pillarContent")),
        support_content=_as_strings(data.get("supportContent")),
        social_media_posts=_as_strings(data.get("socialMediaPosts")),
        email_series=_as_emails(data.get("emailSeries")),
    )


def _from_parsed(data: Any) -> Optional[StructuredContent]:
    if isinstance(data, dict):
        return _from_mapping(data)

    if isinstance(data, list) and data and all(isinstance(d, dict) for d in data):
        merged: Dict[str, List[Any]] = {}
        for entry in data:
            for key in STRUCTURED_FIELDS:
                if key in entry:
                    merged.setdefault(key, []).extend(_as_list(entry[key]))
        return _from_mapping(merged) if merged else None

    return None


def _parse_json_text(text: str) -> Any:
    match = _JSON_BLOCK.search(text)
    candidate = match.group(1) if match else text.strip()

    if not candidate or candidate[0] not in "{[":
        return None

    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        return None


def normalize_generation_output(raw: Any) -> GenerationOutput:
    """
    Classify a raw model response.

    Args:
        raw: Response text, or an already-decoded JSON value

    Returns:
        StructuredContent, PlainOutput or RawUnrecognized
    """
    if isinstance(raw, str):
        parsed = _parse_json_text(raw)
        if parsed is not None:
            structured = _from_parsed(parsed)
            if structured is not None and structured.as_text():
                return structured

        if raw.strip():
            return PlainOutput(text=raw.strip())

        return RawUnrecognized(raw=raw)

    structured = _from_parsed(raw)
    if structured is not None and structured.as_text():
        return structured

    return RawUnrecognized(raw=raw)
