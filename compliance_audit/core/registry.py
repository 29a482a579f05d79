"""
Registry of check definitions grouped by control family.
"""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from .exceptions import CheckDefinitionError, DuplicateCheckError, FamilyError
from .models import CheckDefinition, family_key

logger = logging.getLogger(__name__)


class CheckRegistry:
    """
    Упорядоченный набор проверок по семействам.

    Порядок объявления семейств и порядок регистрации проверок внутри
    семейства сохраняются и определяют порядок выполнения.
    """

    def __init__(self):
        self._families: Dict[str, List[CheckDefinition]] = {}

    def declare_family(self, family: Any) -> str:
        """Объявить семейство (может остаться без проверок)."""
        key = family_key(family)
        if not key:
            raise CheckDefinitionError("Family name must not be empty")
        self._families.setdefault(key, [])
        return key

    def register(self, family: Any, definition: CheckDefinition) -> CheckDefinition:
        """
        Добавить проверку в конец списка семейства.

        Raises:
            CheckDefinitionError: семейство не совпадает с definition.family
            DuplicateCheckError: id уже зарегистрирован в этом семействе
        """
        key = self.declare_family(family)
        if definition.family != key:
            raise CheckDefinitionError(
                f"{definition.id} belongs to family '{definition.family}', not '{key}'"
            )

        checks = self._families[key]
        if any(existing.id == definition.id for existing in checks):
            raise DuplicateCheckError(key, definition.id)

        checks.append(definition)
        logger.debug(f"Registered {definition.id} in {key}")
        return definition

    def register_all(self, family: Any, definitions: Iterable[CheckDefinition]) -> None:
        for definition in definitions:
            self.register(family, definition)

    def family_checks(self, family: Any) -> Tuple[CheckDefinition, ...]:
        key = family_key(family)
        if key not in self._families:
            raise FamilyError(key, "family is not declared in the check registry")
        return tuple(self._families[key])

    def all_families(self) -> Tuple[str, ...]:
        return tuple(self._families)

    def has_family(self, family: Any) -> bool:
        return family_key(family) in self._families

    def family_order(self, family: Any) -> int:
        """Позиция семейства в порядке объявления (для сортировки отчёта)."""
        key = family_key(family)
        try:
            return self.all_families().index(key)
        except ValueError:
            return len(self._families)

    def __iter__(self) -> Iterator[CheckDefinition]:
        for checks in self._families.values():
            yield from checks

    def __len__(self) -> int:
        return sum(len(checks) for checks in self._families.values())
