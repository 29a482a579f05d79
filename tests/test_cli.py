"""
Tests для CLI (typer) и AuditConfig.
"""

import json
import os

import pytest
from typer.testing import CliRunner

from compliance_audit import main
from compliance_audit.config import AuditConfig, get_default_config
from compliance_audit.core.models import CheckStatus
from compliance_audit.core.transcript import read_transcript

from conftest import FakeProbe

runner = CliRunner()


@pytest.fixture
def patched_audit(monkeypatch, example_registry, three_accounts):
    """CLI работает с example_registry и FakeProbe вместо реального хоста."""
    for name in ["COMPLIANCE_OUTPUT_DIR", "COMPLIANCE_REPORT_FORMAT", "COMPLIANCE_FAMILIES", "COMPLIANCE_PARALLEL"]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(main, "build_default_registry", lambda: example_registry)
    monkeypatch.setattr(
        main,
        "LinuxSystemProbe",
        lambda command_timeout_seconds: FakeProbe({"file_exists": False, "list_accounts": three_accounts}),
    )


class TestRunCommand:
    """compliance-audit run"""

    def test_run_writes_transcript_and_report(self, patched_audit, tmp_path):
        result = runner.invoke(main.app, ["run", "--output-dir", str(tmp_path), "--no-summary"])

        assert result.exit_code == 0, result.output
        report = tmp_path / "master_compliance_report.html"
        assert report.exists()
        html = report.read_text(encoding="utf-8")
        assert html.index("AC-1") < html.index("AC-2")

        transcript = read_transcript(tmp_path / "nist-800-53-ac.log")
        assert [(r.check_id, r.status) for r in transcript.results] == [
            ("AC-1", CheckStatus.FAIL),
            ("AC-2", CheckStatus.PASS),
        ]

    def test_run_json_report_suffix(self, patched_audit, tmp_path):
        result = runner.invoke(main.app, ["run", "--output-dir", str(tmp_path), "--format", "json", "--no-summary"])

        assert result.exit_code == 0, result.output
        data = json.loads((tmp_path / "master_compliance_report.json").read_text(encoding="utf-8"))
        assert [f["family"] for f in data["families"]] == ["AC"]

    def test_run_unknown_family_reported_unavailable(self, patched_audit, tmp_path):
        result = runner.invoke(main.app, [
            "run", "--output-dir", str(tmp_path), "--family", "ac", "--family", "zz", "--no-summary",
        ])

        assert result.exit_code == 0, result.output
        html = (tmp_path / "master_compliance_report.html").read_text(encoding="utf-8")
        assert "UNAVAILABLE" in html

    def test_unwritable_report_exits_1(self, patched_audit, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        result = runner.invoke(main.app, [
            "run", "--output-dir", str(tmp_path), "--output", str(blocker / "report.html"), "--no-summary",
        ])

        assert result.exit_code == 1

    def test_invalid_timeout_exits_2(self, patched_audit, tmp_path):
        result = runner.invoke(main.app, ["run", "--output-dir", str(tmp_path), "--timeout=0"])

        assert result.exit_code == 2

    @pytest.mark.parametrize("name, value", [
        ("COMPLIANCE_PROBE_TIMEOUT", "abc"),
        ("COMPLIANCE_REPORT_FORMAT", "pdf"),
    ])
    def test_invalid_environment_exits_2(self, patched_audit, monkeypatch, tmp_path, name, value):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv(name, value)

        for command in (["run", "--output-dir", str(tmp_path)], ["consolidate", "--log-dir", str(tmp_path)]):
            result = runner.invoke(main.app, command)

            assert result.exit_code == 2, result.output
            assert "Invalid configuration" in result.output

    def test_invalid_format_rejected(self, patched_audit, tmp_path):
        result = runner.invoke(main.app, ["run", "--output-dir", str(tmp_path), "--format", "pdf"])

        assert result.exit_code != 0
        assert not (tmp_path / "master_compliance_report.html").exists()


class TestOtherCommands:
    """consolidate и checks"""

    def test_consolidate_from_existing_transcripts(self, patched_audit, tmp_path):
        runner.invoke(main.app, ["run", "--output-dir", str(tmp_path), "--no-summary"])
        (tmp_path / "master_compliance_report.html").unlink()

        result = runner.invoke(main.app, ["consolidate", "--log-dir", str(tmp_path), "--format", "markdown"])

        assert result.exit_code == 0, result.output
        markdown = (tmp_path / "master_compliance_report.md").read_text(encoding="utf-8")
        assert "Access Control (AC)" in markdown
        assert markdown.index("AC-1") < markdown.index("AC-2")

    def test_checks_lists_catalog(self):
        result = runner.invoke(main.app, ["checks", "--family", "ia"])

        assert result.exit_code == 0, result.output
        assert "IA-5(1)" in result.output


class TestAuditConfig:
    """Тесты AuditConfig"""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        for name in ["COMPLIANCE_OUTPUT_DIR", "COMPLIANCE_REPORT_FORMAT", "COMPLIANCE_FAMILIES", "COMPLIANCE_PARALLEL"]:
            monkeypatch.delenv(name, raising=False)

        config = get_default_config()

        assert str(config.output_dir) == "/var/log/compliance-checks"
        assert config.report_filename == "master_compliance_report.html"
        assert config.report_format == "html"
        assert config.parallel_families is False
        assert config.families == []

    def test_env_file(self, monkeypatch, tmp_path):
        # load_dotenv пишет прямо в os.environ
        environ = {k: v for k, v in os.environ.items() if not k.startswith("COMPLIANCE_")}
        monkeypatch.setattr(os, "environ", environ)
        env_file = tmp_path / "audit.env"
        env_file.write_text(
            f"COMPLIANCE_OUTPUT_DIR={tmp_path / 'out'}\n"
            "COMPLIANCE_FAMILIES=ac, si\n"
            "COMPLIANCE_PARALLEL=true\n"
        )

        config = get_default_config(env_file)

        assert config.output_dir == tmp_path / "out"
        assert config.families == ["AC", "SI"]
        assert config.parallel_families is True

    @pytest.mark.parametrize("kwargs", [
        {"report_format": "pdf"},
        {"probe_timeout_seconds": 0},
        {"command_timeout_seconds": -1},
    ])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            AuditConfig(**kwargs)
