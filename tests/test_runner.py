"""
Unit tests для CheckRunner и FamilyRunner.
"""

import asyncio
import threading
import time

import pytest

from compliance_audit.core.exceptions import (
    FamilyError,
    InspectionError,
    PermissionDeniedError,
    ProbeTimeoutError,
)
from compliance_audit.core.models import CheckStatus, ProbeCall, ProbeGroup, CheckDefinition
from compliance_audit.core.registry import CheckRegistry
from compliance_audit.core.runner import CheckRunner, FamilyRunner
from compliance_audit.core.transcript import read_transcript

from conftest import FakeProbe, automated, manual_check


# ═══════════════════════════════════════════════════════
# CHECK RUNNER
# ═══════════════════════════════════════════════════════

class TestCheckRunner:
    """Тесты CheckRunner"""

    @pytest.fixture
    def runner(self):
        return CheckRunner(timeout_seconds=1.0)

    @pytest.mark.asyncio
    async def test_manual_review_never_invokes_probe(self, runner):
        probe = FakeProbe({"file_exists": True})
        definition = manual_check("AC-5", guidance="Review roles and responsibilities.")

        result = await runner.run(definition, probe)

        assert result.status is CheckStatus.MANUAL_REVIEW
        assert result.message == "Review roles and responsibilities."
        assert probe.calls == []

    @pytest.mark.asyncio
    async def test_expectation_true_is_pass(self, runner):
        probe = FakeProbe({"file_exists": True})
        definition = automated("AC-1", pass_message="Policy is documented.")

        result = await runner.run(definition, probe)

        assert result.status is CheckStatus.PASS
        assert result.message == "Policy is documented."
        assert result.check_id == "AC-1"
        assert result.family == "AC"
        assert probe.calls == [("file_exists", ("/etc/policy.txt",))]

    @pytest.mark.asyncio
    async def test_pass_without_message_gets_default(self, runner):
        result = await runner.run(automated("AC-1"), FakeProbe({"file_exists": True}))
        assert result.status is CheckStatus.PASS
        assert result.message

    @pytest.mark.asyncio
    async def test_expectation_false_is_fail_with_remediation(self, runner):
        definition = automated("AC-1", remediation="Create '/etc/policy.txt'.")

        result = await runner.run(definition, FakeProbe({"file_exists": False}))

        assert result.status is CheckStatus.FAIL
        assert result.message == "Create '/etc/policy.txt'."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        InspectionError("backend unreachable"),
        PermissionDeniedError("permission denied"),
        ProbeTimeoutError("timed out"),
    ])
    async def test_inspection_error_is_error(self, runner, error):
        result = await runner.run(automated("AC-1"), FakeProbe({"file_exists": error}))

        assert result.status is CheckStatus.ERROR
        assert str(error) in result.message

    @pytest.mark.asyncio
    async def test_unexpected_probe_exception_is_error(self, runner):
        result = await runner.run(automated("AC-1"), FakeProbe({"file_exists": RuntimeError("boom")}))

        assert result.status is CheckStatus.ERROR
        assert "RuntimeError" in result.message

    @pytest.mark.asyncio
    async def test_expectation_failure_is_error(self, runner):
        definition = automated(
            "IA-5",
            capability="read_config_value",
            args=("/etc/security/pwquality.conf", "minlen"),
            expectation=lambda value: int(value) >= 12,
        )

        result = await runner.run(definition, FakeProbe({"read_config_value": "twelve"}))

        assert result.status is CheckStatus.ERROR

    @pytest.mark.asyncio
    async def test_missing_capability_is_error(self, runner):
        definition = automated("AC-1", capability="registry_value", args=("HKLM",))

        result = await runner.run(definition, FakeProbe())

        assert result.status is CheckStatus.ERROR
        assert "registry_value" in result.message

    @pytest.mark.asyncio
    async def test_hanging_probe_times_out(self):
        runner = CheckRunner(timeout_seconds=0.1)

        def hang(path):
            time.sleep(0.5)
            return True

        start = time.perf_counter()
        result = await runner.run(automated("AU-8"), FakeProbe({"file_exists": hang}))

        assert result.status is CheckStatus.ERROR
        assert "timed out" in result.message
        assert time.perf_counter() - start < 0.5

    def test_hanging_probe_does_not_delay_loop_shutdown(self):
        release = threading.Event()

        def hang(path):
            release.wait(5)
            return True

        try:
            start = time.perf_counter()
            result = asyncio.run(CheckRunner(timeout_seconds=0.1).run(automated("AU-8"), FakeProbe({"file_exists": hang})))
            elapsed = time.perf_counter() - start
        finally:
            release.set()

        assert result.status is CheckStatus.ERROR
        assert elapsed < 2.0

    @pytest.mark.asyncio
    async def test_probe_without_privilege_interface_is_invoked(self, runner):
        class PlainProbe:
            def file_exists(self, path):
                return True

        result = await runner.run(automated("AC-1"), PlainProbe())

        assert result.status is CheckStatus.PASS

    @pytest.mark.asyncio
    async def test_failing_privilege_check_is_error(self, runner):
        class BrokenPrivilegeProbe(FakeProbe):
            def requires_privilege(self, call):
                raise RuntimeError("capability table missing")

        probe = BrokenPrivilegeProbe({"file_exists": True})

        result = await runner.run(automated("AC-1"), probe)

        assert result.status is CheckStatus.ERROR
        assert "capability table missing" in result.message
        assert probe.calls == []

    @pytest.mark.asyncio
    async def test_privileged_capability_without_privilege_is_error(self, runner):
        probe = FakeProbe(
            {"service_or_rule_active": True},
            privileged=False,
            privileged_capabilities=["service_or_rule_active"],
        )
        definition = automated("AC-4", capability="service_or_rule_active", args=("firewall:DROP",))

        result = await runner.run(definition, probe)

        assert result.status is CheckStatus.ERROR
        assert "privileges" in result.message
        assert probe.calls == []

    @pytest.mark.asyncio
    async def test_probe_group_passes_tuple(self, runner):
        definition = CheckDefinition(
            id="AC-6",
            family="AC",
            description="Checking least privilege enforcement",
            probe=ProbeGroup((
                ProbeCall("file_owner", ("/etc/shadow",)),
                ProbeCall("file_owner", ("/etc/passwd",)),
            )),
            expectation=lambda owners: all(o == "root" for o in owners),
            remediation="Restore root ownership.",
        )
        owners = {"/etc/shadow": "root", "/etc/passwd": "alice"}

        result = await runner.run(definition, FakeProbe({"file_owner": owners.get}))

        assert result.status is CheckStatus.FAIL


# ═══════════════════════════════════════════════════════
# FAMILY RUNNER
# ═══════════════════════════════════════════════════════

class TestFamilyRunner:
    """Тесты FamilyRunner"""

    @pytest.mark.asyncio
    async def test_failing_probe_does_not_stop_siblings(self):
        registry = CheckRegistry()
        for i in range(1, 6):
            registry.register("AC", automated(f"AC-{i}", args=(f"/etc/file-{i}",)))

        def exists(path):
            if path == "/etc/file-3":
                raise PermissionDeniedError("permission denied")
            return True

        report = await FamilyRunner(CheckRunner(1.0)).run_family("AC", registry, FakeProbe({"file_exists": exists}))

        assert len(report.results) == 5
        assert [r.status for r in report.results] == [
            CheckStatus.PASS, CheckStatus.PASS, CheckStatus.ERROR, CheckStatus.PASS, CheckStatus.PASS,
        ]
        assert report.completed

    @pytest.mark.asyncio
    async def test_empty_family_produces_empty_report(self):
        registry = CheckRegistry()
        registry.declare_family("SC")

        report = await FamilyRunner().run_family("SC", registry, FakeProbe())

        assert report.family == "SC"
        assert report.results == []
        assert report.completed
        assert not report.unavailable

    @pytest.mark.asyncio
    async def test_undeclared_family_raises(self):
        with pytest.raises(FamilyError):
            await FamilyRunner().run_family("ZZ", CheckRegistry(), FakeProbe())

    @pytest.mark.asyncio
    async def test_example_scenario(self, example_registry, three_accounts):
        probe = FakeProbe({"file_exists": False, "list_accounts": three_accounts})

        report = await FamilyRunner().run_family("AC", example_registry, probe)

        assert [(r.check_id, r.status) for r in report.results] == [
            ("AC-1", CheckStatus.FAIL),
            ("AC-2", CheckStatus.PASS),
        ]
        assert "not documented" in report.results[0].message.lower()

    @pytest.mark.asyncio
    async def test_transcript_written_and_readable(self, tmp_path, example_registry, three_accounts):
        probe = FakeProbe({"file_exists": False, "list_accounts": three_accounts})
        runner = FamilyRunner(log_dir=tmp_path)

        report = await runner.run_family("AC", example_registry, probe)

        path = runner.transcript_path("AC")
        content = path.read_text(encoding="utf-8")
        assert "Starting Access Control (AC) Compliance Checks" in content
        assert content.index("AC-1") < content.index("AC-2")
        assert "Access Control (AC) Compliance Checks Completed." in content

        restored = read_transcript(path)
        assert [(r.check_id, r.status, r.message) for r in restored.results] == [
            (r.check_id, r.status, r.message) for r in report.results
        ]
        assert restored.completed

    @pytest.mark.asyncio
    async def test_unwritable_log_dir_raises_family_error(self, tmp_path, example_registry):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")

        with pytest.raises(FamilyError):
            await FamilyRunner(log_dir=blocker / "logs").run_family("AC", example_registry, FakeProbe())

    @pytest.mark.asyncio
    async def test_cancellation_leaves_only_completed_results(self, tmp_path):
        registry = CheckRegistry()
        for i in range(1, 4):
            registry.register("AU", automated(f"AU-{i}", family="AU", args=(f"/f{i}",)))

        started = asyncio.Event()
        loop = asyncio.get_running_loop()

        def slow(path):
            if path == "/f2":
                loop.call_soon_threadsafe(started.set)
                time.sleep(0.3)
            return True

        runner = FamilyRunner(CheckRunner(5.0), log_dir=tmp_path)
        task = asyncio.create_task(runner.run_family("AU", registry, FakeProbe({"file_exists": slow})))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        restored = read_transcript(runner.transcript_path("AU"))
        assert [r.check_id for r in restored.results] == ["AU-1"]
        assert not restored.completed
