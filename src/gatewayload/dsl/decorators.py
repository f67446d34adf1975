"""Decorators for defining load test scenarios."""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING

from gatewayload._internal.errors import ScenarioError
from gatewayload.dsl.scenario import (
    DEFAULT_PAUSE_SECONDS,
    AsyncScenarioMethod,
    ScenarioDefinition,
    TaskDefinition,
    registry,
)

if TYPE_CHECKING:
    from collections.abc import Callable

# Marker attribute names set on decorated methods.
_TASK_MARKER = "_gatewayload_task"
_TASK_NAME = "_gatewayload_task_name"
_TASK_CHECK = "_gatewayload_task_check"
_TASK_STATUS = "_gatewayload_task_status"
_SETUP_MARKER = "_gatewayload_setup"
_TEARDOWN_MARKER = "_gatewayload_teardown"


def _class_members(cls: type) -> dict[str, object]:
    """Return class attributes in declaration order, base classes first."""
    members: dict[str, object] = {}
    for klass in reversed(cls.__mro__[:-1]):
        for attr_name, attr in vars(klass).items():
            if not attr_name.startswith("__"):
                members[attr_name] = attr
    return members


def scenario(
    *,
    name: str,
    base_url: str | None = None,
    default_headers: dict[str, str] | None = None,
    pause: float = DEFAULT_PAUSE_SECONDS,
) -> Callable[[type], ScenarioDefinition]:
    """Decorate a class as a load test scenario.

    The decorator collects ``@task`` methods in the order they are declared
    in the class body, picks up the optional ``@setup`` and ``@teardown``
    hooks, builds a ``ScenarioDefinition`` and registers it in the global
    scenario registry. Each iteration runs every task once in that order,
    then pauses.

    Args:
        name: Human-readable name for this scenario.
        base_url: Base URL for all requests. None defers to the run
            configuration (``--base-url`` / ``GATEWAYLOAD_BASE_URL``).
        default_headers: Headers applied to every request.
        pause: Seconds to pause after each iteration.

    Returns:
        A class decorator that transforms the class into a
        ScenarioDefinition.

    Raises:
        ScenarioError: If the class has no ``@task`` methods, a decorated
            method is not a coroutine function, a hook is declared twice,
            or ``pause`` is negative.
    """
    if pause < 0:
        msg = f"Scenario pause must be >= 0, got {pause}"
        raise ScenarioError(msg)

    def decorator(cls: type) -> ScenarioDefinition:
        tasks: list[TaskDefinition] = []
        setup_func: AsyncScenarioMethod | None = None
        teardown_func: AsyncScenarioMethod | None = None

        for attr_name, attr in _class_members(cls).items():
            if not callable(attr):
                continue

            if getattr(attr, _TASK_MARKER, False):
                if not inspect.iscoroutinefunction(attr):
                    msg = f"Task method {cls.__name__}.{attr_name} must be an async function"
                    raise ScenarioError(msg)
                tasks.append(
                    TaskDefinition(
                        name=getattr(attr, _TASK_NAME),
                        func=attr,
                        check_name=getattr(attr, _TASK_CHECK),
                        expected_status=getattr(attr, _TASK_STATUS),
                    )
                )

            if getattr(attr, _SETUP_MARKER, False):
                if not inspect.iscoroutinefunction(attr):
                    msg = f"Setup method {cls.__name__}.{attr_name} must be an async function"
                    raise ScenarioError(msg)
                if setup_func is not None:
                    msg = f"Scenario {cls.__name__} has multiple @setup methods"
                    raise ScenarioError(msg)
                setup_func = attr

            if getattr(attr, _TEARDOWN_MARKER, False):
                if not inspect.iscoroutinefunction(attr):
                    msg = f"Teardown method {cls.__name__}.{attr_name} must be an async function"
                    raise ScenarioError(msg)
                if teardown_func is not None:
                    msg = f"Scenario {cls.__name__} has multiple @teardown methods"
                    raise ScenarioError(msg)
                teardown_func = attr

        if not tasks:
            msg = f"Scenario {cls.__name__} has no @task methods. At least one @task is required."
            raise ScenarioError(msg)

        definition = ScenarioDefinition(
            name=name,
            cls=cls,
            base_url=base_url,
            default_headers=dict(default_headers or {}),
            tasks=tasks,
            setup_func=setup_func,
            teardown_func=teardown_func,
            pause_seconds=pause,
        )

        registry.register(definition)
        return definition

    return decorator


def task(
    *,
    name: str | None = None,
    check: str | None = None,
    expect_status: int | None = 200,
) -> Callable[[AsyncScenarioMethod], AsyncScenarioMethod]:
    """Mark a method as one request/check step of the iteration.

    The method receives the virtual user's ``HttpClient`` and returns the
    response; the driver then records whether its status equals
    ``expect_status``. With ``expect_status=None`` no status check is
    recorded and the method is free to make its own ``client.check`` calls.

    Args:
        name: Step name. Defaults to the method name.
        check: Name the status check is recorded under. Defaults to
            ``"{name} status is {expect_status}"``.
        expect_status: Expected HTTP status code, or None to skip the
            automatic status check.

    Returns:
        A method decorator that tags the method with task metadata.

    Raises:
        ScenarioError: If expect_status is not a valid HTTP status code.
    """
    if expect_status is not None and not 100 <= expect_status <= 599:
        msg = f"expect_status must be a valid HTTP status (100-599), got {expect_status}"
        raise ScenarioError(msg)

    def decorator(func: AsyncScenarioMethod) -> AsyncScenarioMethod:
        task_name = name or func.__name__
        setattr(func, _TASK_MARKER, True)
        setattr(func, _TASK_NAME, task_name)
        check_name = None
        if expect_status is not None:
            check_name = check or f"{task_name} status is {expect_status}"
        setattr(func, _TASK_CHECK, check_name)
        setattr(func, _TASK_STATUS, expect_status)
        return func

    return decorator


def setup(func: AsyncScenarioMethod) -> AsyncScenarioMethod:
    """Mark a method as the scenario setup hook.

    Called once per virtual user before the first iteration.
    """
    setattr(func, _SETUP_MARKER, True)
    return func


def teardown(func: AsyncScenarioMethod) -> AsyncScenarioMethod:
    """Mark a method as the scenario teardown hook.

    Called once per virtual user during shutdown, even after a failure.
    """
    setattr(func, _TEARDOWN_MARKER, True)
    return func
