"""Gemini-backed paper insights: prompt, relay call, and section scraping."""

from __future__ import annotations

import json
import logging
import os
import re
from json import JSONDecodeError
from typing import Any

import requests

from models import InsightSections, PaperMetadata

DEFAULT_RELAY_URL = "http://localhost:3001/api/gemini"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0

# Bump when the line-scanning rules below change; fixture tests pin each version.
HEURISTIC_PARSER_VERSION = 1

LOGGER = logging.getLogger(__name__)

PROMPT_TEMPLATE = """Analyze this research paper and provide a detailed breakdown.

Paper Details:
Title: {title}
Authors: {authors}
Year: {year}
Journal: {journal}
Abstract: {abstract}

Please provide:
1. TL;DR: A brief 1-2 sentence summary
2. Detailed Summary: An expanded explanation of the paper's main contributions
3. Key Points: List the main takeaways and findings
4. Questions: 3 thought-provoking questions about the research
5. Visualization Suggestions: Ideas for charts or graphs

Format your response with clear headers for each section (TL;DR:, Detailed Summary:, etc.)"""

STRUCTURED_SUFFIX = """

Respond ONLY with valid JSON following the schema below. No prose, no markdown.
{
  "tldr": "",
  "detailed": "",
  "keyPoints": [""],
  "questions": [""],
  "visualSuggestions": [""]
}"""

# Scanned in order; the first phrase found in a line decides its section.
_SECTION_TRIGGERS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("tl;dr", "tldr"), "tldr"),
    (("detailed summary",), "detailed"),
    (("key points",), "key_points"),
    (("questions",), "questions"),
    (("visualization",), "visual_suggestions"),
)

_QUESTION_MARKER = re.compile(r"^(?:-|\d+\.)")

_STRUCTURED_KEYS: frozenset[str] = frozenset({
    "tldr",
    "detailed",
    "keyPoints",
    "questions",
    "visualSuggestions",
})


class InsightsError(RuntimeError):
    """Raised when the relay call fails or returns no usable text."""


def build_prompt(paper: PaperMetadata, structured: bool = False) -> str:
    """Interpolate the paper fields into the fixed analysis prompt."""
    prompt = PROMPT_TEMPLATE.format(
        title=paper.title,
        authors=paper.authors,
        year=paper.year,
        journal=paper.journal,
        abstract=paper.abstract,
    )
    return prompt + STRUCTURED_SUFFIX if structured else prompt


def build_request_body(paper: PaperMetadata, structured: bool = False) -> dict[str, Any]:
    body: dict[str, Any] = {"contents": [{"parts": [{"text": build_prompt(paper, structured)}]}]}
    if structured:
        body["generationConfig"] = {"responseMimeType": "application/json"}
    return body


def fetch_insights(
    paper: PaperMetadata,
    relay_url: str | None = None,
    structured: bool | None = None,
) -> InsightSections:
    """Ask the relay for insights about ``paper`` and split the reply into sections.

    With ``structured`` on, the model is asked for JSON and the heuristic
    scanner is only used when that JSON cannot be read. ``structured``
    defaults to the INSIGHTS_STRUCTURED_OUTPUT environment flag. The relay's
    model must support JSON mode; a model that rejects it fails the call
    like any other upstream error.
    """
    if structured is None:
        structured = os.getenv("INSIGHTS_STRUCTURED_OUTPUT", "false").lower() in {"1", "true", "yes"}

    url = relay_url or os.getenv("RELAY_URL", DEFAULT_RELAY_URL)
    timeout = float(os.getenv("REQUEST_TIMEOUT_SECONDS", str(DEFAULT_REQUEST_TIMEOUT_SECONDS)))
    LOGGER.info("Requesting insights for paper: %s", paper.title)

    try:
        response = requests.post(
            url,
            headers={"Content-Type": "application/json"},
            json=build_request_body(paper, structured),
            timeout=timeout,
        )
    except requests.RequestException as exc:
        raise InsightsError("Gemini API error") from exc

    if not response.ok:
        LOGGER.warning("Relay responded with status=%s", response.status_code)
        raise InsightsError("Gemini API error")

    try:
        data = response.json()
    except ValueError as exc:
        raise InsightsError("Gemini API error") from exc

    text = extract_text(data)
    if not text:
        LOGGER.error("Invalid or empty response from Gemini API")
        raise InsightsError("Failed to get response from AI")

    LOGGER.debug("Extracted text (%s chars)", len(text))

    if structured:
        sections = parse_structured_sections(text)
        if sections is not None:
            return sections
        LOGGER.warning("Structured reply was not usable JSON; falling back to heuristic parser")

    return parse_insight_sections(text)


def extract_text(data: Any) -> str | None:
    """Return ``candidates[0].content.parts[0].text`` or None when absent."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


def parse_insight_sections(text: str) -> InsightSections:
    """Split free-text model output into the five insight sections.

    Works line by line. A line containing a section phrase (case-insensitive)
    switches the active section and is otherwise discarded, including any
    text after the header on the same line. Remaining non-blank lines are
    routed by the active section:

    - tldr / detailed: trimmed line plus one space is appended;
    - key points / visualization suggestions: kept only if the raw line
      starts with "-", which is then removed;
    - questions: kept if the raw line starts with "-" or "<digits>.", and
      exactly one such marker is removed.

    Lines seen before any header are dropped.
    """
    sections = InsightSections()
    current: str | None = None

    for line in text.split("\n"):
        header = _match_header(line)
        if header is not None:
            current = header
            continue

        stripped = line.strip()
        if not stripped or current is None:
            continue

        if current == "tldr":
            sections.tldr += stripped + " "
        elif current == "detailed":
            sections.detailed += stripped + " "
        elif current == "key_points":
            if line.startswith("-"):
                sections.key_points.append(line[1:].strip())
        elif current == "questions":
            if _QUESTION_MARKER.match(line):
                sections.questions.append(_QUESTION_MARKER.sub("", line, count=1).strip())
        elif current == "visual_suggestions":
            if line.startswith("-"):
                sections.visual_suggestions.append(line[1:].strip())

    return sections


def _match_header(line: str) -> str | None:
    lowered = line.lower()
    for phrases, section in _SECTION_TRIGGERS:
        if any(phrase in lowered for phrase in phrases):
            return section
    return None


def parse_structured_sections(text: str) -> InsightSections | None:
    """Read a JSON reply into sections, or return None if it is not usable."""
    parsed = _load_reply_object(text)
    if parsed is None:
        LOGGER.debug("Structured reply holds no JSON object")
        return None
    if not _STRUCTURED_KEYS.issubset(parsed.keys()):
        LOGGER.debug("Structured reply missing keys: %s", sorted(_STRUCTURED_KEYS - parsed.keys()))
        return None

    return InsightSections(
        tldr=_as_text(parsed.get("tldr")),
        detailed=_as_text(parsed.get("detailed")),
        key_points=_as_text_list(parsed.get("keyPoints")),
        questions=_as_text_list(parsed.get("questions")),
        visual_suggestions=_as_text_list(parsed.get("visualSuggestions")),
    )


def _load_reply_object(text: str) -> dict[str, Any] | None:
    """Return the insights object from a JSON-mode reply.

    Gemini sometimes wraps JSON-mode output in a ```json fence or a sentence,
    so each "{" is tried as the start of an object until one decodes.
    """
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            candidate, _ = decoder.raw_decode(text, start)
        except JSONDecodeError:
            candidate = None
        if isinstance(candidate, dict):
            return candidate
        start = text.find("{", start + 1)
    return None


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _as_text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]
