"""
Configuration for compliance audit.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

REPORT_FORMATS = ("html", "markdown", "json")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip().upper() for item in raw.split(",") if item.strip()]


@dataclass
class AuditConfig:
    """Конфигурация аудита."""

    # === Paths ===
    output_dir: Path = field(default_factory=lambda: Path(os.getenv("COMPLIANCE_OUTPUT_DIR", "/var/log/compliance-checks")))
    report_filename: str = field(default_factory=lambda: os.getenv("COMPLIANCE_REPORT_FILE", "master_compliance_report.html"))

    # === Report Settings ===
    report_format: str = field(default_factory=lambda: os.getenv("COMPLIANCE_REPORT_FORMAT", "html").lower())

    # === Execution Settings ===
    probe_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("COMPLIANCE_PROBE_TIMEOUT", "10")))
    command_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("COMPLIANCE_COMMAND_TIMEOUT", "8")))
    parallel_families: bool = field(default_factory=lambda: _env_bool("COMPLIANCE_PARALLEL"))

    # Пусто = все семейства каталога
    families: List[str] = field(default_factory=lambda: _env_list("COMPLIANCE_FAMILIES"))

    def __post_init__(self):
        """Validate configuration."""
        self.output_dir = Path(self.output_dir)
        self.report_format = self.report_format.lower()
        self.families = [f.strip().upper() for f in self.families if f.strip()]

        if self.report_format not in REPORT_FORMATS:
            raise ValueError(
                f"Unsupported report format '{self.report_format}', expected one of {REPORT_FORMATS}"
            )
        if self.probe_timeout_seconds <= 0:
            raise ValueError("probe_timeout_seconds must be positive")
        if self.command_timeout_seconds <= 0:
            raise ValueError("command_timeout_seconds must be positive")

    @property
    def report_path(self) -> Path:
        return self.output_dir / self.report_filename


def get_default_config(env_file: Optional[Path] = None) -> AuditConfig:
    """Получить конфигурацию по умолчанию (с учётом .env файла)."""
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    return AuditConfig()
