"""Scenario and task definition dataclasses and the global scenario registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from gatewayload._internal.errors import ScenarioError

DEFAULT_PAUSE_SECONDS = 5.0


class AsyncScenarioMethod(Protocol):
    """Protocol for async scenario methods (tasks, setup, teardown).

    Matches unbound async methods with signature ``(self, client)``.
    Tasks return the response their check is evaluated against.
    """

    @property
    def __name__(self) -> str:
        """Function name."""
        ...

    async def __call__(self, instance: object, client: object) -> object:
        """Call the method."""
        ...


@dataclass
class TaskDefinition:
    """One request/check step of a scenario iteration.

    Attributes:
        name: Step name, also used as the request metric name.
        func: The unbound async method issuing the request.
        check_name: Name the status check is recorded under, None when
            the step records no automatic check.
        expected_status: HTTP status the step's response must have.
    """

    name: str
    func: AsyncScenarioMethod
    check_name: str | None = None
    expected_status: int | None = 200


@dataclass
class ScenarioDefinition:
    """Complete definition of a load test scenario.

    Created by the ``@scenario`` class decorator.

    Attributes:
        name: Human-readable name for this scenario.
        cls: The original class that was decorated.
        base_url: Base URL for all requests, or None to take it from the
            run configuration.
        default_headers: Headers applied to every request.
        tasks: Steps in declaration order; every iteration runs all of them.
        setup_func: Optional coroutine called once per virtual user before
            the first iteration.
        teardown_func: Optional coroutine called once per virtual user on
            shutdown.
        pause_seconds: Pause after each iteration.
    """

    name: str
    cls: type
    base_url: str | None = None
    default_headers: dict[str, str] = field(default_factory=dict)
    tasks: list[TaskDefinition] = field(default_factory=list)
    setup_func: AsyncScenarioMethod | None = None
    teardown_func: AsyncScenarioMethod | None = None
    pause_seconds: float = DEFAULT_PAUSE_SECONDS

    @property
    def check_names(self) -> list[str]:
        """Check names in the order they are evaluated."""
        return [t.check_name for t in self.tasks if t.check_name is not None]


def _class_key(cls: type) -> tuple[str, str]:
    return (cls.__module__, cls.__qualname__)


class ScenarioRegistry:
    """Registry of all discovered scenario definitions.

    Scenarios are registered automatically by the ``@scenario`` decorator.
    The registry is a module-level singleton.
    """

    def __init__(self) -> None:
        self._scenarios: dict[str, ScenarioDefinition] = {}

    def register(self, definition: ScenarioDefinition) -> None:
        """Register a scenario definition.

        Re-registering the same class (a scenario file loaded twice)
        replaces the earlier definition.

        Raises:
            ScenarioError: If a different scenario with the same name is
                already registered.
        """
        existing = self._scenarios.get(definition.name)
        if existing is not None and _class_key(existing.cls) != _class_key(definition.cls):
            msg = f"Scenario {definition.name!r} is already registered"
            raise ScenarioError(msg)
        self._scenarios[definition.name] = definition

    def get(self, name: str) -> ScenarioDefinition | None:
        """Look up a scenario by name, None if unknown."""
        return self._scenarios.get(name)

    def get_all(self) -> list[ScenarioDefinition]:
        """Return all registered scenarios."""
        return list(self._scenarios.values())

    def clear(self) -> None:
        """Remove all registered scenarios. Primarily for testing."""
        self._scenarios.clear()

    def __len__(self) -> int:
        return len(self._scenarios)


registry = ScenarioRegistry()
