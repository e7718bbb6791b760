"""Chart rendering for keyword-frequency and year-wise paper statistics.

A backend is picked once (plotly, then matplotlib) and handed to
ChartRenderer. Unknown chart types and a missing backend are silent no-ops.
"""

from __future__ import annotations

import importlib.util
import logging
import os
from collections import Counter
from typing import Any, Iterable, Mapping, Protocol, Sequence

from models import KeywordFrequencyChart, PaperMetadata, YearWiseChart, chart_spec_from_mapping

CHART_COLOR = "#2563eb"
KEYWORD_CHART_TITLE = "Keyword Frequency"
YEAR_SERIES_LABEL = "Papers per Year"

LOGGER = logging.getLogger(__name__)


class ChartBackend(Protocol):
    name: str

    def bar(self, categories: Sequence[Any], values: Sequence[float], *, title: str, target: str) -> None: ...

    def line(self, labels: Sequence[Any], values: Sequence[float], *, label: str, target: str) -> None: ...


class PlotlyBackend:
    """Writes interactive HTML charts with plotly."""

    name = "plotly"

    def __init__(self) -> None:
        import plotly.graph_objects as go  # noqa: PLC0415

        self._go = go

    def bar(self, categories: Sequence[Any], values: Sequence[float], *, title: str, target: str) -> None:
        trace = self._go.Bar(x=list(categories), y=list(values), marker={"color": CHART_COLOR})
        fig = self._go.Figure(data=[trace], layout={"title": {"text": title}})
        fig.write_html(target)

    def line(self, labels: Sequence[Any], values: Sequence[float], *, label: str, target: str) -> None:
        trace = self._go.Scatter(
            x=list(labels),
            y=list(values),
            mode="lines",
            name=label,
            line={"color": CHART_COLOR},
        )
        fig = self._go.Figure(data=[trace])
        fig.update_layout(showlegend=True)
        fig.write_html(target)


class MatplotlibBackend:
    """Writes static image charts with matplotlib (no GUI required)."""

    name = "matplotlib"

    def __init__(self) -> None:
        from matplotlib.figure import Figure  # noqa: PLC0415

        self._figure_cls = Figure

    def bar(self, categories: Sequence[Any], values: Sequence[float], *, title: str, target: str) -> None:
        fig = self._figure_cls()
        ax = fig.subplots()
        ax.bar([str(c) for c in categories], list(values), color=CHART_COLOR)
        ax.set_title(title)
        fig.savefig(target)

    def line(self, labels: Sequence[Any], values: Sequence[float], *, label: str, target: str) -> None:
        fig = self._figure_cls()
        ax = fig.subplots()
        ax.plot([str(lbl) for lbl in labels], list(values), color=CHART_COLOR, label=label)
        ax.legend()
        fig.savefig(target)


_BACKENDS: dict[str, type] = {
    "plotly": PlotlyBackend,
    "matplotlib": MatplotlibBackend,
}


def detect_chart_backend(preference: str | None = None) -> ChartBackend | None:
    """Return the first installed charting backend, or None.

    ``preference`` (or CHART_BACKEND) may name "plotly", "matplotlib" or
    "none"; otherwise plotly is tried before matplotlib.
    """
    choice = (preference or os.getenv("CHART_BACKEND", "")).strip().lower()
    if choice == "none":
        return None

    order = [choice] if choice in _BACKENDS else list(_BACKENDS)
    for name in order:
        if importlib.util.find_spec(name) is None:
            LOGGER.debug("Chart backend %s not installed", name)
            continue
        LOGGER.info("Using chart backend: %s", name)
        return _BACKENDS[name]()
    return None


class ChartRenderer:
    def __init__(self, backend: ChartBackend | None) -> None:
        self.backend = backend

    def render(self, chart_type: str, data: Mapping[str, Any], target: str) -> None:
        """Draw ``data`` as the chart named by ``chart_type`` into ``target``."""
        if self.backend is None:
            LOGGER.debug("No chart backend available; skipping %s", chart_type)
            return

        spec = chart_spec_from_mapping(chart_type, data)
        try:
            if isinstance(spec, KeywordFrequencyChart):
                self.backend.bar(spec.keywords, spec.counts, title=KEYWORD_CHART_TITLE, target=target)
            elif isinstance(spec, YearWiseChart):
                self.backend.line(spec.years, spec.counts, label=YEAR_SERIES_LABEL, target=target)
            else:
                LOGGER.debug("Unknown chart type %r; nothing rendered", chart_type)
        except ValueError as exc:
            # Mismatched array lengths are not validated; some backends reject them.
            LOGGER.debug("Chart %s not rendered by %s: %s", chart_type, self.backend.name, exc)


def render_visualization(chart_type: str, data: Mapping[str, Any], target: str) -> None:
    """Render with whichever backend is installed."""
    ChartRenderer(detect_chart_backend()).render(chart_type, data, target)


def year_wise_from_papers(papers: Iterable[PaperMetadata]) -> dict[str, list]:
    """Count papers per year, oldest first. Papers without a year are skipped."""
    counts = Counter(str(p.year).strip() for p in papers if str(p.year).strip())
    years = sorted(counts, key=_year_sort_key)
    return {"years": years, "counts": [counts[y] for y in years]}


def _year_sort_key(year: str) -> tuple[int, int, str]:
    # Numeric years first, in numeric order; anything else after, alphabetically.
    return (0, int(year), year) if year.isdigit() else (1, 0, year)


def keyword_frequency_from_papers(
    papers: Iterable[PaperMetadata],
    keywords: Sequence[str],
) -> dict[str, list]:
    """Count case-insensitive keyword occurrences across titles and abstracts."""
    texts = [f"{p.title} {p.abstract}".lower() for p in papers]
    return {
        "keywords": list(keywords),
        "counts": [sum(text.count(kw.lower()) for text in texts) if kw else 0 for kw in keywords],
    }
