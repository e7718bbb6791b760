"""CLI entrypoint for the paper insights assistant."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from charts import ChartRenderer, detect_chart_backend
from config import load_config
from insights import InsightsError, fetch_insights
from models import PaperMetadata
from relay import serve
from speech import Speaker, detect_speech_engine


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Gemini relay, paper insights, charts and speech")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("serve", help="Run the Gemini relay (GEMINI_API_KEY, PORT, RELAY_ALLOWED_ORIGINS)")

    insights = commands.add_parser("insights", help="Fetch sectioned insights for one paper")
    insights.add_argument("paper", type=Path, help="JSON file with title, authors, year, journal, abstract")
    insights.add_argument("--relay-url", default=None, help="Relay endpoint (default: RELAY_URL)")
    insights.add_argument(
        "--structured",
        action="store_true",
        default=None,
        help=(
            "Ask the model for JSON and fall back to the heading scanner. "
            "Needs a GEMINI_MODEL on the relay that supports JSON mode "
            "(e.g. gemini-1.5-flash); gemini-pro rejects it with a 400."
        ),
    )
    insights.add_argument("--speak", action="store_true", help="Read the TL;DR aloud")

    chart = commands.add_parser("chart", help="Render a chart from pre-aggregated data")
    chart.add_argument("type", help="keyword-frequency or year-wise")
    chart.add_argument("data", type=Path, help="JSON file with the chart data bundle")
    chart.add_argument("output", help="Output file (.html for plotly, image for matplotlib)")
    chart.add_argument("--backend", default=None, help="plotly, matplotlib or none (default: CHART_BACKEND)")

    speak = commands.add_parser("speak", help="Speak text aloud")
    speak.add_argument("text")

    return parser.parse_args(argv)


def run_insights(paper_path: Path, relay_url: str | None, structured: bool | None, speak: bool) -> int:
    paper = PaperMetadata.from_mapping(json.loads(paper_path.read_text(encoding="utf-8")))
    try:
        sections = fetch_insights(paper, relay_url=relay_url, structured=structured)
    except InsightsError as exc:
        logging.error("Insights request failed for %r: %s", paper.title, exc)
        return 1

    print(json.dumps(sections.to_dict(), indent=2, ensure_ascii=False))
    if speak and sections.tldr:
        Speaker(detect_speech_engine()).speak(sections.tldr)
    return 0


def run_chart(chart_type: str, data_path: Path, output: str, backend: str | None) -> int:
    data = json.loads(data_path.read_text(encoding="utf-8"))
    ChartRenderer(detect_chart_backend(backend)).render(chart_type, data, output)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Initialize config and dispatch the requested command."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args(argv)

    if args.command == "serve":
        serve(load_config())
        return 0
    if args.command == "insights":
        return run_insights(args.paper, args.relay_url, args.structured, args.speak)
    if args.command == "chart":
        return run_chart(args.type, args.data, args.output, args.backend)
    Speaker(detect_speech_engine()).speak(args.text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
