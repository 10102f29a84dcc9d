import logging

import pytest
from click.testing import CliRunner

from appraiser.cli import cli
from appraiser.database.db import close_db


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    yield CliRunner()
    close_db()
    logger = logging.getLogger("appraiser")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


def test_detect_category(runner):
    result = runner.invoke(cli, ["detect-category", "Epson DLP Projector"])

    assert result.exit_code == 0
    assert "electronics" in result.output


def test_detect_category_uses_hint(runner):
    result = runner.invoke(cli, ["detect-category", "Mystery Box", "--hint", "Comic Books"])

    assert result.exit_code == 0
    assert "comics" in result.output


def test_analyze_without_providers_reports_failed(runner, tmp_path):
    result = runner.invoke(cli, ["analyze", "Vintage Brass Lamp", "--json"])

    assert result.exit_code == 0
    assert '"quality": "FAILED"' in result.output
    assert (tmp_path / "data" / "appraiser.db").exists()


def test_analyze_rejects_blank_name(runner):
    result = runner.invoke(cli, ["analyze", "  "])

    assert result.exit_code == 1
    assert "Invalid input" in result.output


def test_scorecard_without_data(runner):
    result = runner.invoke(cli, ["scorecard", "--week-start", "2026-03-04"])

    assert result.exit_code == 0
    assert "No benchmark data for week of 2026-03-02" in result.output
