"""
Check and family runners.

CheckRunner turns one CheckDefinition into exactly one CheckResult and never
lets a probe failure escape. FamilyRunner runs a family in registration
order and writes its transcript.
"""

import asyncio
import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, List, Optional

from .exceptions import InspectionError
from .models import CheckDefinition, CheckResult, CheckStatus, FamilyReport, family_key
from .registry import CheckRegistry
from .transcript import NullSink, TranscriptSink, transcript_filename

logger = logging.getLogger(__name__)


def run_in_daemon_thread(func: Callable[..., Any], *args: Any) -> "asyncio.Future":
    """
    Выполнить блокирующий вызов в daemon-потоке.

    Результат доставляется во future текущего loop. В отличие от
    asyncio.to_thread, поток не принадлежит default executor, поэтому
    зависший вызов не задерживает завершение asyncio.run().
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def deliver(setter: Callable[[Any], None], value: Any) -> None:
        # Future уже отменён по таймауту
        if not future.done():
            setter(value)

    def target() -> None:
        try:
            value = func(*args)
        except Exception as e:
            outcome = (future.set_exception, e)
        else:
            outcome = (future.set_result, value)
        try:
            loop.call_soon_threadsafe(deliver, *outcome)
        except RuntimeError:
            logger.debug(f"Discarding late result of {func!r}: event loop is closed")

    threading.Thread(target=target, name="probe-call", daemon=True).start()
    return future


class CheckRunner:
    """
    Выполнение одной проверки.

    Предоставляет:
    - Timeout на каждый вызов probe
    - Изоляцию ошибок (ERROR вместо исключения)
    - Логирование
    """

    def __init__(self, timeout_seconds: float = 10.0):
        """
        Args:
            timeout_seconds: Таймаут одного вызова probe (по умолчанию 10 секунд)
        """
        self.timeout_seconds = timeout_seconds

    async def run(self, definition: CheckDefinition, probe: Any) -> CheckResult:
        """
        Выполнить проверку против probe.

        Returns:
            CheckResult (PASS, FAIL, MANUAL_REVIEW или ERROR)
        """
        start_time = time.perf_counter()

        def result(status: CheckStatus, message: str) -> CheckResult:
            return CheckResult(
                check_id=definition.id,
                family=definition.family,
                status=status,
                message=message,
                description=definition.description,
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )

        if definition.is_manual:
            logger.debug(f"{definition.id}: manual review required")
            return result(CheckStatus.MANUAL_REVIEW, definition.remediation)

        try:
            blocked = self._blocked_calls(definition, probe)
        except Exception as e:
            logger.error(f"{definition.id}: privilege check failed: {e}", exc_info=True)
            return result(
                CheckStatus.ERROR,
                f"Cannot determine required privileges: {type(e).__name__}: {e}",
            )
        if blocked:
            capabilities = ", ".join(str(call) for call in blocked)
            logger.warning(f"{definition.id}: skipped, requires elevated privileges ({capabilities})")
            return result(
                CheckStatus.ERROR,
                f"Insufficient privileges to evaluate {capabilities}; re-run as root/administrator.",
            )

        try:
            value = await asyncio.wait_for(
                run_in_daemon_thread(definition.probe.invoke, probe),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"{definition.id} timed out after {self.timeout_seconds}s")
            return result(
                CheckStatus.ERROR,
                f"Inspection timed out after {self.timeout_seconds}s: {definition.probe}",
            )
        except InspectionError as e:
            logger.warning(f"{definition.id}: inspection failed: {e}")
            return result(CheckStatus.ERROR, f"Inspection failed ({type(e).__name__}): {e}")
        except Exception as e:
            logger.error(f"{definition.id}: probe raised {type(e).__name__}: {e}", exc_info=True)
            return result(CheckStatus.ERROR, f"Probe error: {type(e).__name__}: {e}")

        try:
            satisfied = bool(definition.expectation(value))
        except Exception as e:
            logger.error(f"{definition.id}: cannot evaluate probe result {value!r}: {e}", exc_info=True)
            return result(CheckStatus.ERROR, f"Cannot evaluate probe result: {type(e).__name__}: {e}")

        if satisfied:
            return result(CheckStatus.PASS, definition.pass_message or f"{definition.id} requirement is met.")
        return result(CheckStatus.FAIL, definition.remediation)

    @staticmethod
    def _blocked_calls(definition: CheckDefinition, probe: Any) -> List[Any]:
        """Вызовы, для которых у probe нет нужных прав (probe без can_invoke не ограничен)."""
        can_invoke = getattr(probe, "can_invoke", None)
        if can_invoke is None:
            return []
        return [call for call in definition.probe.calls if not can_invoke(call)]


class FamilyRunner:
    """Последовательное выполнение всех проверок семейства."""

    def __init__(self, check_runner: Optional[CheckRunner] = None, log_dir: Optional[Path] = None):
        """
        Args:
            check_runner: Runner для отдельных проверок
            log_dir: Директория для transcript (None = без записи на диск)
        """
        self.check_runner = check_runner or CheckRunner()
        self.log_dir = Path(log_dir) if log_dir is not None else None

    def transcript_path(self, family: Any) -> Optional[Path]:
        if self.log_dir is None:
            return None
        return self.log_dir / transcript_filename(family)

    def _open_sink(self, family: str):
        path = self.transcript_path(family)
        if path is None:
            return NullSink(family)
        return TranscriptSink(path, family)

    async def run_family(self, family: Any, registry: CheckRegistry, probe: Any) -> FamilyReport:
        """
        Запустить семейство в порядке регистрации.

        Raises:
            FamilyError: семейство не объявлено или transcript не открывается
        """
        key = family_key(family)
        checks = registry.family_checks(key)
        report = FamilyReport(family=key)

        logger.info(f"Starting {report.title}: {len(checks)} checks")
        start_time = time.perf_counter()

        with self._open_sink(key) as sink:
            try:
                for i, definition in enumerate(checks, 1):
                    check_result = await self.check_runner.run(definition, probe)
                    report.results.append(check_result)
                    sink.record(check_result)
                    logger.info(
                        f"  [{i}/{len(checks)}] {definition.id}: {check_result.status.label}"
                    )
            except asyncio.CancelledError:
                logger.warning(f"{report.title} cancelled after {len(report.results)}/{len(checks)} checks")
                raise
            report.completed = True
            sink.finish()

        duration = time.perf_counter() - start_time
        logger.info(
            f"Completed {report.title}: "
            f"pass={report.count(CheckStatus.PASS)}, "
            f"fail={report.count(CheckStatus.FAIL)}, "
            f"manual={report.count(CheckStatus.MANUAL_REVIEW)}, "
            f"error={report.count(CheckStatus.ERROR)}, "
            f"duration={duration:.2f}s"
        )
        return report
