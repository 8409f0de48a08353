"""Unit tests for the in-flight guard."""

import asyncio

import pytest

from routemetrics.adapters.http_metrics.fake import FakeGauge
from routemetrics.core.in_flight import InFlightGuard


class _BrokenGauge:
    """Gauge whose increment raises, as with a label mismatch."""

    def __init__(self) -> None:
        self.dec_calls = 0

    def inc(self, labels):
        raise KeyError("method")

    def dec(self, labels):
        self.dec_calls += 1


class TestInFlightGuard:
    @pytest.mark.asyncio
    async def test_counts_while_running(self):
        gauge = FakeGauge()
        guard = InFlightGuard(gauge)
        seen = []

        async def work():
            seen.append(gauge.value(method="GET"))
            return "ok"

        result = await guard.run({"method": "GET"}, work)

        assert result == "ok"
        assert seen == [1]
        assert gauge.value(method="GET") == 0

    @pytest.mark.asyncio
    async def test_decrements_when_work_raises(self):
        gauge = FakeGauge()
        guard = InFlightGuard(gauge)

        async def work():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await guard.run({"method": "POST"}, work)

        assert gauge.value(method="POST") == 0
        assert gauge.calls == 2

    @pytest.mark.asyncio
    async def test_decrements_when_cancelled_while_suspended(self):
        gauge = FakeGauge()
        guard = InFlightGuard(gauge)
        started = asyncio.Event()

        async def work():
            started.set()
            await asyncio.Event().wait()

        task = asyncio.create_task(guard.run({"method": "GET"}, work))
        await started.wait()
        assert gauge.value(method="GET") == 1

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert gauge.value(method="GET") == 0

    @pytest.mark.asyncio
    async def test_labels_are_snapshotted_at_entry(self):
        gauge = FakeGauge()
        guard = InFlightGuard(gauge)
        labels = {"method": "GET"}

        async def work():
            labels["method"] = "PATCH"

        await guard.run(labels, work)

        assert gauge.values == {(("method", "GET"),): 0}

    @pytest.mark.asyncio
    async def test_absent_gauge_runs_work_directly(self):
        guard = InFlightGuard(None)

        async def work():
            return 7

        assert not guard.enabled
        assert await guard.run({"method": "GET"}, work) == 7

    def test_absent_gauge_track_is_a_no_op(self):
        with InFlightGuard(None).track({"method": "GET"}) as tracked:
            assert tracked is None

    @pytest.mark.asyncio
    async def test_failed_increment_skips_decrement_and_still_runs_work(self):
        gauge = _BrokenGauge()
        guard = InFlightGuard(gauge)

        async def work():
            return "ran"

        assert await guard.run({"method": "GET"}, work) == "ran"
        assert gauge.dec_calls == 0
