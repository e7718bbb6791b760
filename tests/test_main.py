"""Tests for the CLI dispatch in main.py."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

import main
from insights import InsightsError
from models import InsightSections, PaperMetadata

_PAPER_JSON = {
    "title": "A Paper",
    "authors": "A. Author",
    "year": 2024,
    "journal": "Journal",
    "abstract": "Abstract text.",
}


@pytest.fixture
def paper_file(tmp_path: Path) -> Path:
    path = tmp_path / "paper.json"
    path.write_text(json.dumps(_PAPER_JSON), encoding="utf-8")
    return path


def test_insights_prints_sections_json(paper_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    sections = InsightSections(tldr="Short. ", key_points=["A"])
    with patch("main.fetch_insights", return_value=sections) as mock_fetch:
        exit_code = main.main(["insights", str(paper_file)])

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out) == sections.to_dict()
    assert mock_fetch.call_args.args[0] == PaperMetadata.from_mapping(_PAPER_JSON)
    assert mock_fetch.call_args.kwargs["structured"] is None


def test_insights_failure_exits_nonzero(paper_file: Path) -> None:
    with patch("main.fetch_insights", side_effect=InsightsError("Gemini API error")):
        assert main.main(["insights", str(paper_file), "--structured"]) == 1


def test_insights_speak_reads_tldr(paper_file: Path) -> None:
    engine = MagicMock()
    with patch("main.fetch_insights", return_value=InsightSections(tldr="Short. ")), \
         patch("main.detect_speech_engine", return_value=engine):
        main.main(["insights", str(paper_file), "--speak"])

    engine.speak.assert_called_once_with("Short. ", "en-US")


def test_chart_command_renders(tmp_path: Path) -> None:
    data_path = tmp_path / "data.json"
    data_path.write_text(json.dumps({"keywords": ["a", "b"], "counts": [3, 5]}), encoding="utf-8")
    backend = MagicMock()

    with patch("main.detect_chart_backend", return_value=backend) as mock_detect:
        exit_code = main.main(["chart", "keyword-frequency", str(data_path), "out.html", "--backend", "plotly"])

    assert exit_code == 0
    mock_detect.assert_called_once_with("plotly")
    backend.bar.assert_called_once_with(["a", "b"], [3, 5], title="Keyword Frequency", target="out.html")


def test_speak_command() -> None:
    engine = MagicMock()
    with patch("main.detect_speech_engine", return_value=engine):
        assert main.main(["speak", "Hello"]) == 0

    engine.speak.assert_called_once_with("Hello", "en-US")


def test_serve_command_uses_loaded_config() -> None:
    config = MagicMock()
    with patch("main.load_config", return_value=config), patch("main.serve") as mock_serve:
        assert main.main(["serve"]) == 0

    mock_serve.assert_called_once_with(config)


def test_structured_help_names_json_mode_requirement(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit):
        main.parse_args(["insights", "--help"])

    assert "JSON mode" in capsys.readouterr().out
