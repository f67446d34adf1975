"""Tests for the @scenario, @task, @setup, and @teardown decorators."""

from __future__ import annotations

import pytest

from gatewayload._internal.errors import ScenarioError
from gatewayload.dsl.decorators import scenario, setup, task, teardown
from gatewayload.dsl.scenario import ScenarioDefinition, registry

# =========================================================================
# @scenario decorator
# =========================================================================


class TestScenarioDecorator:
    """Tests for the @scenario class decorator."""

    def test_creates_scenario_definition(self):
        @scenario(name="Test")
        class MyScenario:
            @task()
            async def do_something(self, client: object) -> None:
                pass

        assert isinstance(MyScenario, ScenarioDefinition)

    def test_defaults(self):
        """No base URL, no headers, five second pause."""

        @scenario(name="Defaults")
        class MyScenario:
            @task()
            async def do_something(self, client: object) -> None:
                pass

        assert MyScenario.base_url is None
        assert MyScenario.default_headers == {}
        assert MyScenario.pause_seconds == 5.0

    def test_custom_settings(self):
        @scenario(
            name="Custom",
            base_url="http://example.com",
            default_headers={"Host": "api.demo.local"},
            pause=0.5,
        )
        class MyScenario:
            @task()
            async def do_something(self, client: object) -> None:
                pass

        assert MyScenario.base_url == "http://example.com"
        assert MyScenario.default_headers == {"Host": "api.demo.local"}
        assert MyScenario.pause_seconds == 0.5

    def test_default_headers_are_copied(self):
        headers = {"Host": "api.demo.local"}

        @scenario(name="Copied", default_headers=headers)
        class MyScenario:
            @task()
            async def do_something(self, client: object) -> None:
                pass

        headers["Host"] = "changed"
        assert MyScenario.default_headers == {"Host": "api.demo.local"}

    def test_preserves_original_class(self):
        class _Original:
            @task()
            async def do_something(self, client: object) -> None:
                pass

        result = scenario(name="Test")(_Original)
        assert result.cls is _Original

    def test_registers_in_global_registry(self):
        @scenario(name="Registered")
        class MyScenario:
            @task()
            async def do_something(self, client: object) -> None:
                pass

        assert registry.get("Registered") is MyScenario
        assert len(registry) == 1

    def test_tasks_keep_declaration_order(self):
        """Tasks run in the order they are written, not alphabetically."""

        @scenario(name="Ordered")
        class MyScenario:
            @task()
            async def zulu(self, client: object) -> None:
                pass

            @task()
            async def alpha(self, client: object) -> None:
                pass

            @task()
            async def mike(self, client: object) -> None:
                pass

        assert [t.name for t in MyScenario.tasks] == ["zulu", "alpha", "mike"]

    def test_inherited_tasks_come_first(self):
        class Base:
            @task()
            async def first(self, client: object) -> None:
                pass

        @scenario(name="Inherited")
        class Child(Base):
            @task()
            async def second(self, client: object) -> None:
                pass

        assert [t.name for t in Child.tasks] == ["first", "second"]

    def test_no_tasks_raises(self):
        with pytest.raises(ScenarioError, match="no @task methods"):

            @scenario(name="Empty")
            class Empty:
                async def helper(self, client: object) -> None:
                    pass

    def test_sync_task_raises(self):
        with pytest.raises(ScenarioError, match="must be an async function"):

            @scenario(name="Sync")
            class Sync:
                @task()
                def not_async(self, client: object) -> None:
                    pass

    def test_negative_pause_raises(self):
        with pytest.raises(ScenarioError, match="pause must be >= 0"):
            scenario(name="Negative", pause=-1.0)

    def test_duplicate_name_raises(self):
        @scenario(name="Dup")
        class First:
            @task()
            async def a(self, client: object) -> None:
                pass

        with pytest.raises(ScenarioError, match="already registered"):

            @scenario(name="Dup")
            class Second:
                @task()
                async def b(self, client: object) -> None:
                    pass


# =========================================================================
# @task decorator
# =========================================================================


class TestTaskDecorator:
    """Tests for the @task method decorator."""

    def test_default_name_and_check(self):
        @scenario(name="Task Defaults")
        class MyScenario:
            @task()
            async def get_hello(self, client: object) -> None:
                pass

        t = MyScenario.tasks[0]
        assert t.name == "get_hello"
        assert t.check_name == "get_hello status is 200"
        assert t.expected_status == 200

    def test_custom_name_and_check(self):
        @scenario(name="Task Custom")
        class MyScenario:
            @task(name="service-a hello", check="service-a hello status is 200")
            async def hello(self, client: object) -> None:
                pass

        t = MyScenario.tasks[0]
        assert t.name == "service-a hello"
        assert t.check_name == "service-a hello status is 200"

    def test_custom_expected_status(self):
        @scenario(name="Task Status")
        class MyScenario:
            @task(name="missing", expect_status=404)
            async def missing(self, client: object) -> None:
                pass

        assert MyScenario.tasks[0].expected_status == 404
        assert MyScenario.tasks[0].check_name == "missing status is 404"

    def test_no_automatic_check(self):
        @scenario(name="Task Unchecked")
        class MyScenario:
            @task(name="free-form", expect_status=None)
            async def free_form(self, client: object) -> None:
                pass

        assert MyScenario.tasks[0].check_name is None
        assert MyScenario.check_names == []

    @pytest.mark.parametrize("status", [0, 99, 600])
    def test_invalid_status_raises(self, status: int):
        with pytest.raises(ScenarioError, match="valid HTTP status"):
            task(expect_status=status)


# =========================================================================
# @setup / @teardown
# =========================================================================


class TestHooks:
    def test_setup_and_teardown_are_found(self):
        @scenario(name="Hooks")
        class MyScenario:
            @setup
            async def on_start(self, client: object) -> None:
                pass

            @teardown
            async def on_stop(self, client: object) -> None:
                pass

            @task()
            async def work(self, client: object) -> None:
                pass

        assert MyScenario.setup_func is not None
        assert MyScenario.setup_func.__name__ == "on_start"
        assert MyScenario.teardown_func is not None
        assert MyScenario.teardown_func.__name__ == "on_stop"

    def test_hooks_are_optional(self):
        @scenario(name="No Hooks")
        class MyScenario:
            @task()
            async def work(self, client: object) -> None:
                pass

        assert MyScenario.setup_func is None
        assert MyScenario.teardown_func is None

    def test_multiple_setup_raises(self):
        with pytest.raises(ScenarioError, match="multiple @setup"):

            @scenario(name="Two Setups")
            class MyScenario:
                @setup
                async def one(self, client: object) -> None:
                    pass

                @setup
                async def two(self, client: object) -> None:
                    pass

                @task()
                async def work(self, client: object) -> None:
                    pass

    def test_sync_teardown_raises(self):
        with pytest.raises(ScenarioError, match="must be an async function"):

            @scenario(name="Sync Teardown")
            class MyScenario:
                @teardown
                def stop(self, client: object) -> None:
                    pass

                @task()
                async def work(self, client: object) -> None:
                    pass
