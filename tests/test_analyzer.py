"""Tests for the dependency-cruiser wrapper (subprocess is always patched)."""

import json
import logging
import subprocess
from typing import List

import pytest

from codemap_cli.analyzer import DependencyCruiser, report_file_provider
from codemap_cli.errors import AnalysisError


class FakeRun:
    """Stand-in for subprocess.run that records calls and replays outputs."""

    def __init__(self, outputs=None, failures=None):
        self.calls: List[dict] = []
        self.outputs = outputs or {}
        self.failures = failures or {}

    def __call__(self, cmd, **kwargs):
        self.calls.append({"cmd": list(cmd), **kwargs})
        key = "graphviz" if cmd[0] == "dot" else cmd[cmd.index("--output-type") + 1]
        failure = self.failures.get(key)
        if failure is not None:
            raise failure
        return subprocess.CompletedProcess(cmd, 0, stdout=self.outputs.get(key, ""), stderr="")


@pytest.fixture
def fake_run(monkeypatch):
    def install(**kwargs) -> FakeRun:
        fake = FakeRun(**kwargs)
        monkeypatch.setattr("codemap_cli.analyzer.subprocess.run", fake)
        return fake

    return install


class TestGenerateJson:
    def test_writes_report(self, scanner_config, fake_run, sample_report):
        fake = fake_run(outputs={"json": json.dumps(sample_report)})

        path = DependencyCruiser(scanner_config).generate_json()

        assert path == scanner_config.report_path
        assert json.loads(path.read_text(encoding="utf-8")) == sample_report
        call = fake.calls[0]
        assert call["cmd"] == ["npx", "dependency-cruiser", "--no-config", "--output-type", "json", "src"]
        assert call["cwd"] == str(scanner_config.project_root)

    def test_command_failure_is_fatal(self, scanner_config, fake_run):
        fake_run(failures={"json": subprocess.CalledProcessError(1, "npx", stderr="boom")})

        with pytest.raises(AnalysisError, match="status 1"):
            DependencyCruiser(scanner_config).generate_json()
        assert not scanner_config.report_path.exists()

    def test_missing_executable_is_fatal(self, scanner_config, fake_run):
        fake_run(failures={"json": FileNotFoundError("npx")})

        with pytest.raises(AnalysisError, match="Could not run"):
            DependencyCruiser(scanner_config).generate_json()

    def test_invalid_json_is_fatal(self, scanner_config, fake_run):
        fake_run(outputs={"json": "not json"})

        with pytest.raises(AnalysisError, match="invalid JSON"):
            DependencyCruiser(scanner_config).generate_json()


class TestOptionalArtifacts:
    def test_html_failure_only_warns(self, scanner_config, fake_run, caplog):
        fake_run(failures={"html": subprocess.CalledProcessError(2, "npx")})
        scanner_config.report_dir.mkdir(parents=True)

        with caplog.at_level(logging.WARNING, logger="codemap_cli"):
            assert DependencyCruiser(scanner_config).generate_html() is None

        assert "HTML report generation failed" in caplog.text

    def test_existing_html_is_kept(self, scanner_config, fake_run):
        fake = fake_run()
        scanner_config.report_dir.mkdir(parents=True)
        scanner_config.html_report_path.write_text("<html>old</html>")

        assert DependencyCruiser(scanner_config).generate_html() == scanner_config.html_report_path
        assert fake.calls == []

    def test_svg_pipes_dot_output(self, scanner_config, fake_run):
        fake = fake_run(outputs={"dot": "digraph {}", "graphviz": "<svg/>"})
        scanner_config.report_dir.mkdir(parents=True)

        DependencyCruiser(scanner_config).generate_svg()

        cruise, render = fake.calls
        assert cruise["cmd"][-2:] == ["dot", "src"]
        assert render["cmd"] == ["dot", "-T", "svg"]
        assert render["input"] == "digraph {}"
        assert scanner_config.svg_graph_path.read_text() == "<svg/>"

    def test_missing_graphviz_only_warns(self, scanner_config, fake_run, caplog):
        fake_run(outputs={"dot": "digraph {}"}, failures={"graphviz": FileNotFoundError("dot")})
        scanner_config.report_dir.mkdir(parents=True)

        with caplog.at_level(logging.WARNING, logger="codemap_cli"):
            assert DependencyCruiser(scanner_config).generate_svg() is None

        assert "SVG graph generation failed" in caplog.text
        assert not scanner_config.svg_graph_path.exists()


def test_analyze_returns_report_even_if_optional_steps_fail(scanner_config, fake_run, sample_report):
    fake_run(
        outputs={"json": json.dumps(sample_report)},
        failures={"html": OSError("no html"), "dot": OSError("no dot")},
    )

    assert DependencyCruiser(scanner_config).analyze() == sample_report


class TestReportFileProvider:
    def test_missing_report(self, scanner_config):
        assert report_file_provider(scanner_config.report_path)() is None

    def test_reads_report(self, scanner_config, sample_report):
        scanner_config.report_dir.mkdir(parents=True)
        scanner_config.report_path.write_text(json.dumps(sample_report), encoding="utf-8")

        assert report_file_provider(scanner_config.report_path)() == sample_report
