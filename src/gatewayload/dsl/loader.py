"""Scenario resolution: built-in scenarios and dynamic file loading."""

from __future__ import annotations

import importlib
import importlib.util
import sys
from pathlib import Path

from gatewayload._internal.errors import ScenarioError
from gatewayload.dsl.scenario import ScenarioDefinition

# Module holding the scenario run when no file is given.
BUILTIN_SCENARIO_MODULE = "gatewayload.scenarios.light_load"


def _definitions_in(module: object) -> list[ScenarioDefinition]:
    return [obj for obj in vars(module).values() if isinstance(obj, ScenarioDefinition)]


def _select(
    definitions: list[ScenarioDefinition],
    name: str | None,
    source: str,
) -> ScenarioDefinition:
    if not definitions:
        msg = (
            f"No @scenario-decorated class found in {source}. "
            f"Ensure at least one class is decorated with @scenario."
        )
        raise ScenarioError(msg)

    if name is None:
        return definitions[0]

    for definition in definitions:
        if definition.name == name:
            return definition

    available = ", ".join(repr(d.name) for d in definitions)
    msg = f"Scenario {name!r} not found in {source}. Available: {available}"
    raise ScenarioError(msg)


def load_builtin_scenario(name: str | None = None) -> ScenarioDefinition:
    """Return the built-in gateway light load scenario.

    Raises:
        ScenarioError: If ``name`` is given and no built-in scenario has it.
    """
    module = importlib.import_module(BUILTIN_SCENARIO_MODULE)
    return _select(_definitions_in(module), name, BUILTIN_SCENARIO_MODULE)


def load_scenario(file_path: str | Path, name: str | None = None) -> ScenarioDefinition:
    """Load a scenario from a Python file.

    Dynamically imports the file using ``importlib`` and scans the module
    globals for ``ScenarioDefinition`` instances (created by the
    ``@scenario`` decorator).

    Args:
        file_path: Path to the Python scenario file.
        name: Scenario name to pick when the file defines several.
            Defaults to the first one found.

    Returns:
        The selected ``ScenarioDefinition``.

    Raises:
        ScenarioError: If the file does not exist, cannot be imported,
            contains no ``@scenario``-decorated class, or has none
            called ``name``.
    """
    path = Path(file_path)

    if not path.exists():
        msg = f"Scenario file not found: {path}"
        raise ScenarioError(msg)

    if path.suffix != ".py":
        msg = f"Scenario file must be a .py file, got: {path}"
        raise ScenarioError(msg)

    module_name = f"gatewayload_scenario_{path.stem}"

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        msg = f"Could not create module spec for: {path}"
        raise ScenarioError(msg)

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module

    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        msg = f"Failed to import scenario file {path}: {exc}"
        raise ScenarioError(msg) from exc

    try:
        return _select(_definitions_in(module), name, str(path))
    except ScenarioError:
        sys.modules.pop(module_name, None)
        raise


def resolve_scenario(
    source: ScenarioDefinition | str | Path | None,
    name: str | None = None,
) -> ScenarioDefinition:
    """Turn whatever the caller passed into a ``ScenarioDefinition``.

    Args:
        source: A definition (returned as-is), a path to a scenario file,
            or None for the built-in scenario.
        name: Scenario name to pick from the file, or from the built-in
            scenarios when no file is given.

    Returns:
        The resolved scenario definition.

    Raises:
        ScenarioError: If the file cannot be loaded or no scenario is
            called ``name``.
    """
    if isinstance(source, ScenarioDefinition):
        return source
    if source is None:
        return load_builtin_scenario(name)
    return load_scenario(source, name)
