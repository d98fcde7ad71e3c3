"""
测试上报客户端
"""

import asyncio
import json

import httpx
import pytest

from metric_agent.config import EndpointConfig
from metric_agent.errors import ReportError
from metric_agent.models import MetricResult
from metric_agent.reporter import HTTPReporter


REPORT_URL = "http://aggregator.local/api/report"


def _result(name: str, value: str, metric_type: str = "uint64", num_aggregation: int = 10) -> MetricResult:
    config = EndpointConfig(
        name=name,
        url="http://node.local/status",
        value="data.status.erd_nonce",
        type=metric_type,
        num_aggregation=num_aggregation,
    )
    return MetricResult(config=config, value=value)


class _Recorder:
    """记录收到的请求并返回预设状态码"""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": True})


def _reporter(handler) -> HTTPReporter:
    return HTTPReporter(
        endpoint=REPORT_URL,
        api_key="test-secret",
        agent_name="VM1",
        transport=httpx.MockTransport(handler),
    )


class TestBuildPayload:
    def test_heartbeat_always_present(self):
        payload = _reporter(_Recorder()).build_payload({})
        assert list(payload.metrics) == ["VM1.Active"]
        heartbeat = payload.metrics["VM1.Active"]
        assert heartbeat.value == "true"
        assert heartbeat.type == "bool"
        assert heartbeat.num_aggregation == 1

    def test_wire_format_uses_camel_case(self):
        payload = _reporter(_Recorder()).build_payload({
            "VM1.Node1.nonce": _result("VM1.Node1.nonce", "123456"),
        })
        body = json.loads(payload.to_json())
        assert body == {
            "metrics": {
                "VM1.Node1.nonce": {"value": "123456", "type": "uint64", "numAggregation": 10},
                "VM1.Active": {"value": "true", "type": "bool", "numAggregation": 1},
            }
        }


class TestReport:
    def test_success_sends_key_and_body(self):
        recorder = _Recorder()
        results = {"VM1.Node1.nonce": _result("VM1.Node1.nonce", "123456")}

        asyncio.run(_reporter(recorder).report(results))

        assert len(recorder.requests) == 1
        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == REPORT_URL
        assert request.headers["X-Api-Key"] == "test-secret"
        assert request.headers["Content-Type"] == "application/json"
        body = json.loads(request.content)
        assert body["metrics"]["VM1.Node1.nonce"]["value"] == "123456"
        assert body["metrics"]["VM1.Active"]["value"] == "true"

    def test_empty_results_still_report_heartbeat(self):
        recorder = _Recorder()
        asyncio.run(_reporter(recorder).report({}))

        body = json.loads(recorder.requests[0].content)
        assert list(body["metrics"]) == ["VM1.Active"]

    @pytest.mark.parametrize("status_code", [401, 500])
    def test_non_success_status_raises(self, status_code):
        with pytest.raises(ReportError) as exc_info:
            asyncio.run(_reporter(_Recorder(status_code)).report({}))
        assert str(status_code) in str(exc_info.value)

    def test_network_error_raises(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ReportError) as exc_info:
            asyncio.run(_reporter(refuse).report({}))
        assert "network error" in str(exc_info.value)
