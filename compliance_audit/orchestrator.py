"""
Audit orchestrator for family execution.

Features:
- Sequential or parallel execution of families
- Family-level failures turned into "unavailable" reports
- Results ordered by declared family order, never by completion order
"""

import asyncio
import logging
from typing import Any, Iterable, List, Optional

from .config import AuditConfig
from .core.exceptions import FamilyError
from .core.models import FamilyReport, family_key
from .core.registry import CheckRegistry
from .core.runner import CheckRunner, FamilyRunner

logger = logging.getLogger(__name__)


class AuditOrchestrator:
    """Оркестратор для управления выполнением семейств."""

    def __init__(self, registry: CheckRegistry, probe: Any, config: Optional[AuditConfig] = None,
                 family_runner: Optional[FamilyRunner] = None):
        """
        Args:
            registry: Каталог проверок
            probe: SystemProbe инспектируемой системы
            config: Конфигурация аудита
            family_runner: Runner семейств (по умолчанию строится из config)
        """
        self.registry = registry
        self.probe = probe
        self.config = config or AuditConfig()
        self.family_runner = family_runner or FamilyRunner(
            CheckRunner(timeout_seconds=self.config.probe_timeout_seconds),
            log_dir=self.config.output_dir,
        )

    def select_families(self, families: Optional[Iterable[Any]] = None) -> List[str]:
        """Семейства для запуска: явно заданные, из конфига или все."""
        requested = list(families) if families else list(self.config.families)
        if not requested:
            return list(self.registry.all_families())
        return [family_key(f) for f in requested]

    async def run_family_safe(self, family: str) -> FamilyReport:
        """Запустить семейство; любая ошибка оркестрации даёт unavailable report."""
        try:
            return await self.family_runner.run_family(family, self.registry, self.probe)
        except FamilyError as e:
            logger.error(f"Family {family} unavailable: {e.reason}")
            return FamilyReport.unavailable_for(family, e.reason)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Family {family} failed: {e}", exc_info=True)
            return FamilyReport.unavailable_for(family, f"{type(e).__name__}: {e}")

    async def run_families_sequential(self, families: List[str]) -> List[FamilyReport]:
        """
        Запустить семейства последовательно.

        Returns:
            Список FamilyReport в порядке запуска
        """
        if not families:
            return []

        logger.info(f"Running {len(families)} families sequentially...")
        reports = []
        for i, family in enumerate(families, 1):
            logger.info(f"[{i}/{len(families)}] Family {family}")
            reports.append(await self.run_family_safe(family))
        return reports

    async def run_families_parallel(self, families: List[str]) -> List[FamilyReport]:
        """
        Запустить семейства параллельно.

        Семейства не разделяют изменяемого состояния; порядок итогового
        списка восстанавливает sort_reports().
        """
        if not families:
            return []

        logger.info(f"Running {len(families)} families in parallel...")
        tasks = [self.run_family_safe(family) for family in families]
        return list(await asyncio.gather(*tasks))

    def sort_reports(self, reports: Iterable[FamilyReport], families: List[str]) -> List[FamilyReport]:
        """Упорядочить отчёты по порядку объявления семейств."""
        requested = {family: i for i, family in enumerate(families)}

        def order(report: FamilyReport):
            if self.registry.has_family(report.family):
                return (0, self.registry.family_order(report.family))
            return (1, requested.get(report.family, len(requested)))

        return sorted(reports, key=order)

    async def run(self, families: Optional[Iterable[Any]] = None,
                  parallel: Optional[bool] = None) -> List[FamilyReport]:
        """
        Запустить аудит.

        Args:
            families: Семейства для запуска (None = из конфига или все)
            parallel: Параллельный запуск (None = из конфига)

        Returns:
            FamilyReport в порядке объявления семейств
        """
        selected = self.select_families(families)
        if parallel is None:
            parallel = self.config.parallel_families

        if parallel:
            reports = await self.run_families_parallel(selected)
        else:
            reports = await self.run_families_sequential(selected)

        return self.sort_reports(reports, selected)


async def run_audit(registry: CheckRegistry, probe: Any, config: AuditConfig,
                    families: Optional[Iterable[Any]] = None,
                    parallel: Optional[bool] = None) -> List[FamilyReport]:
    """
    Удобная функция для запуска аудита с оркестратором.

    Returns:
        Список FamilyReport в порядке объявления семейств
    """
    orchestrator = AuditOrchestrator(registry, probe, config)
    return await orchestrator.run(families=families, parallel=parallel)
