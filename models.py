"""Shared typed models for paper insights, charts and speech."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping, Sequence, Union


@dataclass(frozen=True, slots=True)
class PaperMetadata:
    """Paper details supplied by the caller and interpolated into the prompt."""

    title: str
    authors: str
    year: str | int
    journal: str
    abstract: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PaperMetadata:
        return cls(
            title=_as_field(data.get("title")),
            authors=_as_field(data.get("authors")),
            year=data.get("year") if isinstance(data.get("year"), (str, int)) else "",
            journal=_as_field(data.get("journal")),
            abstract=_as_field(data.get("abstract")),
        )


@dataclass(slots=True)
class InsightSections:
    """The five buckets scraped out of one model reply."""

    tldr: str = ""
    detailed: str = ""
    key_points: list[str] = field(default_factory=list)
    questions: list[str] = field(default_factory=list)
    visual_suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tldr": self.tldr,
            "detailed": self.detailed,
            "keyPoints": list(self.key_points),
            "questions": list(self.questions),
            "visualSuggestions": list(self.visual_suggestions),
        }


@dataclass(frozen=True, slots=True)
class KeywordFrequencyChart:
    """Bar chart input: one count per keyword."""

    chart_type: ClassVar[str] = "keyword-frequency"

    keywords: Sequence[str]
    counts: Sequence[float]


@dataclass(frozen=True, slots=True)
class YearWiseChart:
    """Line chart input: one count per year bucket."""

    chart_type: ClassVar[str] = "year-wise"

    years: Sequence[str | int]
    counts: Sequence[float]


ChartSpec = Union[KeywordFrequencyChart, YearWiseChart]


def chart_spec_from_mapping(chart_type: str, data: Mapping[str, Any]) -> ChartSpec | None:
    """Build the chart spec matching ``chart_type``, or None for an unknown tag.

    Keyword and count sequences are taken as given; parallel lengths are the
    caller's responsibility.
    """
    if chart_type == KeywordFrequencyChart.chart_type:
        return KeywordFrequencyChart(
            keywords=list(data.get("keywords") or []),
            counts=list(data.get("counts") or []),
        )
    if chart_type == YearWiseChart.chart_type:
        return YearWiseChart(
            years=list(data.get("years") or []),
            counts=list(data.get("counts") or []),
        )
    return None


def _as_field(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
