"""``gatewayload init``: scaffold a new scenario file from a template."""

from __future__ import annotations

from pathlib import Path
from string import Template

import typer
from rich.console import Console

console = Console(stderr=True)

_SCENARIO_TEMPLATE = Template('''\
"""Load test scenario: $name.

Run with:
    gatewayload run $filename --vus 2 --duration 15s --base-url http://localhost:8080
"""

from __future__ import annotations

from gatewayload import HttpClient, scenario, task


@scenario(
    name="$name",
    default_headers={"Host": "$host"},
    pause=5.0,
)
class $class_name:
    """$name load test."""

    @task(name="root", check="root status is 200")
    async def get_root(self, client: HttpClient):
        return await client.get("/", name="root")
''')


def init_cmd(
    name: str = typer.Argument(
        "my_scenario",
        help="Name for the scenario (used as filename and class name).",
    ),
    host: str = typer.Option(
        "api.demo.local",
        "--host",
        help="Host header the gateway routes on.",
    ),
) -> None:
    """Scaffold a new scenario file in the current directory."""
    # Sanitise the name for use as a Python identifier
    safe_name = "".join(c if c.isalnum() or c == "_" else "_" for c in name).lower()
    if not safe_name or safe_name[0].isdigit():
        safe_name = "scenario_" + safe_name

    filename = f"{safe_name}.py"
    class_name = "".join(word.capitalize() for word in safe_name.split("_")) + "Scenario"
    display_name = name.replace("_", " ").replace("-", " ").title()

    target = Path.cwd() / filename
    if target.exists():
        console.print(f"[red]File already exists:[/red] {filename}")
        raise typer.Exit(code=1)

    content = _SCENARIO_TEMPLATE.substitute(
        name=display_name,
        filename=filename,
        class_name=class_name,
        host=host,
    )
    target.write_text(content)
    console.print(f"[green]Created scenario:[/green] {filename}")
