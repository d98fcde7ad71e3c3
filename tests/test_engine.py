"""
测试 Agent 调度引擎
"""

import asyncio

import pytest

from metric_agent.config import AgentConfig, EndpointConfig
from metric_agent.engine import AgentEngine, run_periodically
from metric_agent.errors import ReportError
from metric_agent.models import MetricResult
from tests.stubs import PollerStub, ReporterStub


@pytest.fixture
def config():
    return AgentConfig(
        name="VM1",
        query_interval_seconds=2,
        report_endpoint="http://aggregator.local/api/report",
        report_timeout_seconds=0.2,
        poll_timeout_seconds=1,
        request_timeout_seconds=1,
        endpoints=[
            EndpointConfig(name="VM1.Node1.nonce", url="http://n1.local", value="nonce", type="uint64"),
        ],
    )


def test_requires_poller_and_reporter(config):
    with pytest.raises(ValueError, match="nil poller"):
        AgentEngine(config, None, ReporterStub())
    with pytest.raises(ValueError, match="nil reporter"):
        AgentEngine(config, PollerStub(), None)


def test_process_forwards_results(config):
    result = MetricResult(config=config.endpoints[0], value="7")

    async def poll(endpoints, deadline):
        return {"VM1.Node1.nonce": result}

    poller = PollerStub(poll)
    reporter = ReporterStub()
    asyncio.run(AgentEngine(config, poller, reporter).process())

    endpoints, deadline = poller.calls[0]
    assert endpoints == config.endpoints
    assert deadline == config.poll_timeout_seconds
    assert reporter.reports == [{"VM1.Node1.nonce": result}]


def test_process_reports_when_nothing_polled(config):
    reporter = ReporterStub()
    asyncio.run(AgentEngine(config, PollerStub(), reporter).process())
    assert reporter.reports == [{}]


def test_process_swallows_report_error(config):
    async def fail(results):
        raise ReportError("server rejected report with status code: 500")

    asyncio.run(AgentEngine(config, PollerStub(), ReporterStub(fail)).process())


def test_process_bounds_report_time(config):
    async def hang(results):
        await asyncio.sleep(5)

    async def run():
        loop = asyncio.get_running_loop()
        started = loop.time()
        await AgentEngine(config, PollerStub(), ReporterStub(hang)).process()
        return loop.time() - started

    assert asyncio.run(run()) < 2


class TestRunPeriodically:
    def test_runs_immediately_and_repeats(self):
        calls = []

        async def run():
            stop_event = asyncio.Event()

            async def handler():
                calls.append(1)
                if len(calls) == 3:
                    stop_event.set()

            await asyncio.wait_for(run_periodically(handler, 0.01, stop_event), timeout=2)

        asyncio.run(run())
        assert len(calls) == 3

    def test_stop_interrupts_wait(self):
        calls = []

        async def run():
            stop_event = asyncio.Event()

            async def handler():
                calls.append(1)

            task = asyncio.create_task(run_periodically(handler, 60, stop_event))
            await asyncio.sleep(0.05)
            stop_event.set()
            await asyncio.wait_for(task, timeout=2)

        asyncio.run(run())
        assert calls == [1]

    def test_handler_error_does_not_stop_loop(self):
        calls = []

        async def run():
            stop_event = asyncio.Event()

            async def handler():
                calls.append(1)
                if len(calls) == 2:
                    stop_event.set()
                raise RuntimeError("boom")

            await asyncio.wait_for(run_periodically(handler, 0.01, stop_event), timeout=2)

        asyncio.run(run())
        assert len(calls) == 2
