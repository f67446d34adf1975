"""Tests for named response checks."""

from __future__ import annotations

from types import SimpleNamespace

from gatewayload.dsl.checks import CheckResult, check, status_is


def _response(status: int) -> SimpleNamespace:
    return SimpleNamespace(status=status)


class TestStatusIs:
    def test_matches(self):
        assert status_is(200)(_response(200)) is True

    def test_mismatch(self):
        assert status_is(200)(_response(503)) is False

    def test_object_without_status(self):
        assert status_is(200)(object()) is False


class TestCheck:
    def test_records_one_result_per_predicate(self):
        results: list[CheckResult] = []
        passed = check(
            _response(200),
            {"status is 200": status_is(200), "status is not 500": lambda r: r.status != 500},
            callback=results.append,
        )
        assert passed is True
        assert [r.name for r in results] == ["status is 200", "status is not 500"]
        assert all(r.passed for r in results)
        assert all(r.status_code == 200 for r in results)

    def test_failed_predicate_does_not_stop_the_rest(self):
        results: list[CheckResult] = []
        passed = check(
            _response(503),
            {"status is 200": status_is(200), "status is 503": status_is(503)},
            callback=results.append,
        )
        assert passed is False
        assert [r.passed for r in results] == [False, True]

    def test_raising_predicate_counts_as_failure(self):
        results: list[CheckResult] = []

        def _boom(_: object) -> bool:
            raise ValueError("bad body")

        assert check(_response(200), {"body parses": _boom}, callback=results.append) is False
        assert results[0].passed is False

    def test_missing_response_fails_every_predicate(self):
        results: list[CheckResult] = []
        passed = check(None, {"status is 200": status_is(200)}, callback=results.append)
        assert passed is False
        assert results[0].passed is False
        assert results[0].status_code == 0

    def test_worker_id_is_tagged(self):
        results: list[CheckResult] = []
        check(_response(200), {"ok": status_is(200)}, callback=results.append, worker_id=3)
        assert results[0].worker_id == 3
        assert results[0].timestamp > 0
