"""
Read-only SystemProbe for Linux hosts.

Files are inspected directly; services, firewall rules, time sync and audit
rules are queried through read-only commands run with a timeout.
"""

import logging
import os
import re
import shutil
import subprocess
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Sequence

from ..core.exceptions import (
    InspectionError,
    PermissionDeniedError,
    ProbeTimeoutError,
    UnsupportedPlatformError,
)
from ..core.models import ProbeCall
from .base import Account, SystemProbe

try:
    import pwd
except ImportError:  # pwd exists only on Unix
    pwd = None

logger = logging.getLogger(__name__)

# Дескрипторы service_or_rule_active, которым нужен root
PRIVILEGED_DESCRIPTORS: FrozenSet[str] = frozenset({"firewall", "audit-rules"})

_CONFIG_LINE = re.compile(r"^\s*(?P<key>[^\s=:#]+)\s*(?:=|:|\s)\s*(?P<value>.*?)\s*$")
_LASTLOG_DATE = "%a %b %d %H:%M:%S %z %Y"


class LinuxSystemProbe(SystemProbe):
    """SystemProbe для Linux: файлы, pwd, systemctl, iptables, auditctl."""

    name = "linux"

    def __init__(self, command_timeout_seconds: float = 10.0):
        self.command_timeout_seconds = command_timeout_seconds

    # === Privileges ===

    def is_privileged(self) -> bool:
        return hasattr(os, "geteuid") and os.geteuid() == 0

    def requires_privilege(self, call: ProbeCall) -> bool:
        if call.capability != "service_or_rule_active" or not call.args:
            return super().requires_privilege(call)
        kind, _, _ = str(call.args[0]).partition(":")
        return kind in PRIVILEGED_DESCRIPTORS

    # === Files ===

    def file_exists(self, path: str) -> bool:
        try:
            os.stat(path)
        except FileNotFoundError:
            return False
        except PermissionError as e:
            raise PermissionDeniedError(f"Cannot stat {path}: {e}", "file_exists") from e
        return True

    def file_contains(self, path: str, pattern: str) -> bool:
        regex = re.compile(pattern)
        for line in self._read_lines(path, "file_contains"):
            if regex.search(line):
                return True
        return False

    def read_config_value(self, scope: str, key: str) -> Optional[str]:
        """
        Прочитать значение `key` из конфигурационного файла `scope`.

        Поддерживаются строки вида `key=value`, `key = value`, `key value`
        и `key: value`; комментарии (#) пропускаются. Последнее вхождение
        побеждает. Отсутствующий файл означает, что ключ не задан.
        """
        value = None
        for line in self._read_lines(scope, "read_config_value"):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            match = _CONFIG_LINE.match(stripped)
            if match and match.group("key") == key:
                value = match.group("value")
        return value

    def file_owner(self, path: str) -> Optional[str]:
        if pwd is None:
            raise UnsupportedPlatformError("File ownership lookup requires a Unix host", "file_owner")
        try:
            uid = os.stat(path).st_uid
        except FileNotFoundError:
            return None
        except PermissionError as e:
            raise PermissionDeniedError(f"Cannot stat {path}: {e}", "file_owner") from e
        try:
            return pwd.getpwuid(uid).pw_name
        except KeyError:
            return str(uid)

    def file_age_days(self, path: str) -> Optional[float]:
        try:
            mtime = os.stat(path).st_mtime
        except FileNotFoundError:
            return None
        except PermissionError as e:
            raise PermissionDeniedError(f"Cannot stat {path}: {e}", "file_age_days") from e
        return max(0.0, (time.time() - mtime) / 86400)

    def disk_usage_percent(self, path: str) -> float:
        try:
            usage = shutil.disk_usage(path)
        except FileNotFoundError as e:
            raise InspectionError(f"Path does not exist: {path}", "disk_usage_percent") from e
        except PermissionError as e:
            raise PermissionDeniedError(f"Cannot read disk usage of {path}: {e}", "disk_usage_percent") from e
        if usage.total == 0:
            return 0.0
        return usage.used / usage.total * 100

    # === Tools and accounts ===

    def tool_present(self, name: str) -> bool:
        return shutil.which(name) is not None

    def list_accounts(self, filter: Optional[str] = None) -> Sequence[Account]:
        """
        Перечислить учётные записи из базы pwd.

        Args:
            filter: None/"all", "human" (root и uid >= 1000 с login shell)
                или "system"
        """
        if pwd is None:
            raise UnsupportedPlatformError("Account enumeration requires a Unix host", "list_accounts")

        last_logins = self._last_logins() if filter == "human" else {}
        accounts = []
        for entry in pwd.getpwall():
            account = Account(
                name=entry.pw_name,
                uid=entry.pw_uid,
                home=entry.pw_dir,
                shell=entry.pw_shell,
                inactive_days=last_logins.get(entry.pw_name),
            )
            if filter == "human" and (account.is_system or _is_nologin(account.shell)):
                continue
            if filter == "system" and not account.is_system:
                continue
            accounts.append(account)
        return accounts

    def _last_logins(self) -> Dict[str, Optional[int]]:
        """Дни с последнего входа по данным lastlog (пусто, если lastlog нет)."""
        if not self.tool_present("lastlog"):
            return {}
        output = self._run(["lastlog"], "list_accounts")
        now = datetime.now().astimezone()
        days: Dict[str, Optional[int]] = {}
        for line in output.splitlines()[1:]:
            parts = line.split()
            if not parts:
                continue
            if "**Never" in line:
                days[parts[0]] = None
                continue
            try:
                seen = datetime.strptime(" ".join(parts[-6:]), _LASTLOG_DATE)
            except ValueError:
                continue
            days[parts[0]] = (now - seen).days
        return days

    # === Services and rules ===

    def service_or_rule_active(self, descriptor: str) -> bool:
        """
        Проверить активность сервиса или правила.

        Descriptors:
            service:<unit>    systemd unit активен
            firewall:<target> в iptables есть правило или политика цепочки с target (DROP, ACCEPT...)
            ntp               время синхронизировано
            audit-rules       auditd загрузил хотя бы одно правило
        """
        kind, _, arg = descriptor.partition(":")

        if kind == "service":
            return self._run(["systemctl", "is-active", arg], "service_or_rule_active",
                             check=False).strip() == "active"

        if kind == "firewall":
            output = self._run(["iptables", "-L", "-n"], "service_or_rule_active")
            target = re.escape(arg)
            # Правило с target или политика цепочки по умолчанию
            pattern = rf"^(?:{target}\b|Chain \S+ \(policy {target}\b)"
            return re.search(pattern, output, re.MULTILINE) is not None

        if kind == "ntp":
            output = self._run(["timedatectl", "show", "-p", "NTPSynchronized", "--value"],
                               "service_or_rule_active")
            return output.strip() == "yes"

        if kind == "audit-rules":
            output = self._run(["auditctl", "-l"], "service_or_rule_active")
            return bool(output.strip()) and "No rules" not in output

        raise UnsupportedPlatformError(f"Unknown descriptor '{descriptor}'", "service_or_rule_active")

    # === Helpers ===

    def _read_lines(self, path: str, capability: str) -> List[str]:
        try:
            return Path(path).read_text(encoding="utf-8", errors="replace").splitlines()
        except FileNotFoundError:
            return []
        except PermissionError as e:
            raise PermissionDeniedError(f"Cannot read {path}: {e}", capability) from e
        except OSError as e:
            raise InspectionError(f"Cannot read {path}: {e}", capability) from e

    def _run(self, command: List[str], capability: str, check: bool = True) -> str:
        """Запустить read-only команду и вернуть stdout."""
        if shutil.which(command[0]) is None:
            raise UnsupportedPlatformError(f"'{command[0]}' is not installed", capability)

        logger.debug(f"Running: {' '.join(command)}")
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.command_timeout_seconds,
            )
        except subprocess.TimeoutExpired as e:
            raise ProbeTimeoutError(
                f"'{' '.join(command)}' timed out after {self.command_timeout_seconds}s", capability
            ) from e
        except OSError as e:
            raise InspectionError(f"Cannot run '{command[0]}': {e}", capability) from e

        if check and result.returncode != 0:
            stderr = result.stderr.strip()
            if "permission denied" in stderr.lower() or "must be root" in stderr.lower():
                raise PermissionDeniedError(f"'{command[0]}': {stderr}", capability)
            raise InspectionError(
                f"'{' '.join(command)}' exited with {result.returncode}: {stderr}", capability
            )
        return result.stdout


def _is_nologin(shell: str) -> bool:
    return shell.endswith(("nologin", "/false", "/sync"))
