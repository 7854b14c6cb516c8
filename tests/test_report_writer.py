import json

import pytest

from github_stats.domain.report import AggregateReport
from github_stats.infrastructure.report_writer import ReportWriter


def test_write_creates_directories_and_json(tmp_path) -> None:
    output = tmp_path / "generated" / "overview.json"
    report = AggregateReport(name="Mona", stars=1, forks=2, contributions=3, lines_changed=4, repos=5)

    written = ReportWriter(str(output)).write(report)

    assert written == str(output)
    data = json.loads(output.read_text(encoding="utf-8"))
    assert list(data) == ["name", "stars", "forks", "contributions", "lines_changed", "views", "repos"]
    assert data["views"] == 0
    assert data["repos"] == 5


def test_write_overwrites_previous_report(tmp_path) -> None:
    output = tmp_path / "overview.json"
    output.write_text("stale", encoding="utf-8")
    report = AggregateReport(name=None, stars=0, forks=0, contributions=7, lines_changed=0, repos=0)

    ReportWriter(str(output)).write(report)

    assert json.loads(output.read_text(encoding="utf-8"))["contributions"] == 7


def test_output_path_is_required() -> None:
    with pytest.raises(TypeError):
        ReportWriter()
