from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

from abtest_engine.models.schemas.experiment import ABTest


class TestRegistry:
    """Read-only mapping of page section keys to test definitions."""

    __test__ = False  # not a pytest class

    def __init__(self, tests: Mapping[str, ABTest]):
        self._tests: Mapping[str, ABTest] = MappingProxyType(dict(tests))

    def lookup_test(self, test_id: str) -> Optional[ABTest]:
        """Finds a test by its id. Registries are small, a scan is fine."""
        for test in self._tests.values():
            if test.test_id == test_id:
                return test
        return None

    def get(self, section: str) -> Optional[ABTest]:
        return self._tests.get(section)

    def sections(self) -> Tuple[str, ...]:
        return tuple(self._tests.keys())

    def tests(self) -> Iterator[ABTest]:
        return iter(self._tests.values())

    def to_dict(self) -> Dict[str, dict]:
        return {section: test.model_dump(mode="json") for section, test in self._tests.items()}

    def __len__(self) -> int:
        return len(self._tests)

    def __contains__(self, section: object) -> bool:
        return section in self._tests


def default_registry() -> TestRegistry:
    from abtest_engine.core.experiments import DEFAULT_TESTS

    return TestRegistry(DEFAULT_TESTS)
