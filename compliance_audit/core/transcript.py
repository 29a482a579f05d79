"""
Per-family transcript (log sink).

FamilyRunner writes one line-oriented text file per family; the report
aggregator can rebuild FamilyReports from these files when families were run
as separate invocations.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from .exceptions import FamilyError
from .models import CheckResult, CheckStatus, FamilyReport, family_key, family_title

logger = logging.getLogger(__name__)

HEADER_PREFIX = "# compliance-audit transcript family="
MESSAGE_INDENT = "    "

_ENTRY = re.compile(
    r"^(?P<ts>\S+) \| (?P<status>PASS|FAIL|MANUAL_REVIEW|ERROR) \| (?P<id>[^|]+?) \| (?P<desc>.*)$"
)


def transcript_filename(family: str) -> str:
    return f"nist-800-53-{family_key(family).lower()}.log"


class TranscriptSink:
    """
    Запись transcript одного семейства.

    Используется как context manager: файл открывается в __enter__ и
    гарантированно закрывается в __exit__, даже если выполнение прервано.
    """

    def __init__(self, path: Path, family: str):
        self.path = Path(path)
        self.family = family_key(family)
        self._fh: Optional[TextIO] = None

    def __enter__(self) -> "TranscriptSink":
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self.path, "w", encoding="utf-8")
        except OSError as e:
            raise FamilyError(self.family, f"cannot open transcript {self.path}: {e}") from e
        self._write(f"{HEADER_PREFIX}{self.family}")
        self._write(f"Starting {family_title(self.family)} Compliance Checks")
        return self

    def record(self, result: CheckResult) -> None:
        self._write(
            f"{result.timestamp.isoformat(timespec='seconds')} | {result.status.name} | "
            f"{result.check_id} | {' '.join(result.description.split())}"
        )
        for line in (result.message or "").splitlines() or [""]:
            self._write(f"{MESSAGE_INDENT}{line}")

    def finish(self) -> None:
        self._write(f"{family_title(self.family)} Compliance Checks Completed.")

    def _write(self, line: str) -> None:
        if self._fh is None:
            raise RuntimeError("TranscriptSink is not open")
        self._fh.write(line + "\n")

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._fh is not None:
            self._fh.flush()
            self._fh.close()
            self._fh = None


class NullSink:
    """Sink без записи на диск (in-process запуск без transcript)."""

    def __init__(self, family: str = ""):
        self.family = family_key(family)
        self.results: List[CheckResult] = []

    def __enter__(self) -> "NullSink":
        return self

    def record(self, result: CheckResult) -> None:
        self.results.append(result)

    def finish(self) -> None:
        pass

    def __exit__(self, exc_type, exc, tb) -> None:
        pass


def read_transcript(path: Path, family: Optional[str] = None) -> FamilyReport:
    """
    Восстановить FamilyReport из transcript.

    Raises:
        FamilyError: файл отсутствует, не читается или не является transcript
    """
    path = Path(path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise FamilyError(family_key(family or path.stem), f"transcript unavailable: {e}") from e

    if not lines or not lines[0].startswith(HEADER_PREFIX):
        raise FamilyError(family_key(family or path.stem), f"{path} is not a compliance transcript")

    key = family_key(lines[0][len(HEADER_PREFIX):])
    report = FamilyReport(family=key)
    completed_marker = f"{family_title(key)} Compliance Checks Completed."

    entry = None
    message_lines: List[str] = []

    def flush():
        if entry is not None:
            report.results.append(_result_from_entry(entry, key, message_lines))

    for line in lines[1:]:
        if line.startswith(MESSAGE_INDENT) and entry is not None:
            message_lines.append(line[len(MESSAGE_INDENT):])
            continue
        match = _ENTRY.match(line)
        if match:
            flush()
            entry, message_lines = match, []
        elif line == completed_marker:
            report.completed = True

    flush()
    logger.debug(f"Read {len(report.results)} results for {key} from {path}")
    return report


def _result_from_entry(entry: re.Match, family: str, message_lines: List[str]) -> CheckResult:
    try:
        timestamp = datetime.fromisoformat(entry.group("ts"))
    except ValueError:
        timestamp = datetime.now()
    return CheckResult(
        check_id=entry.group("id").strip(),
        family=family,
        status=CheckStatus[entry.group("status").strip()],
        message="\n".join(message_lines).strip(),
        description=entry.group("desc"),
        timestamp=timestamp,
    )
