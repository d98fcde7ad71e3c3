"""
上报客户端

把本轮轮询结果加上心跳指标打包为一个报文，POST 到 Aggregator。
上报失败不重试，下一轮就是重试。
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import httpx

from metric_agent.errors import ReportError
from metric_agent.models import MetricPayload, MetricResult, ReportPayload

logger = logging.getLogger(__name__)

HEARTBEAT_METRIC = "Active"
NAME_SEPARATOR = "."
API_KEY_HEADER = "X-Api-Key"


def heartbeat_name(agent_name: str) -> str:
    """心跳指标名：<agent>.Active"""
    return f"{agent_name}{NAME_SEPARATOR}{HEARTBEAT_METRIC}"


class Reporter(ABC):
    """上报器接口"""

    @abstractmethod
    async def report(self, results: Dict[str, MetricResult]) -> None:
        """
        上报本轮结果（自动附加心跳）

        Raises:
            ReportError: 上报失败
        """


class HTTPReporter(Reporter):
    """基于 httpx 的上报器"""

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        agent_name: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.endpoint = endpoint
        self.agent_name = agent_name
        self.timeout = timeout
        self._api_key = api_key
        self._transport = transport

    def build_payload(self, results: Dict[str, MetricResult]) -> ReportPayload:
        """
        构造上报报文

        即使 results 为空，也总会包含心跳指标 <agent>.Active = "true"，
        Aggregator 据此区分"Agent 存活但端点全部失败"与"Agent 已离线"。
        """
        metrics: Dict[str, MetricPayload] = {}
        for name, result in results.items():
            metrics[name] = MetricPayload(
                value=result.value,
                type=result.config.type,
                num_aggregation=result.config.num_aggregation,
            )

        metrics[heartbeat_name(self.agent_name)] = MetricPayload(
            value="true",
            type="bool",
            num_aggregation=1,
        )
        return ReportPayload(metrics=metrics)

    async def report(self, results: Dict[str, MetricResult]) -> None:
        payload = self.build_payload(results)
        headers = {
            "Content-Type": "application/json",
            API_KEY_HEADER: self._api_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint, content=payload.to_json(), headers=headers)
        except httpx.HTTPError as e:
            raise ReportError(f"network error sending report: {e}") from e

        if not response.is_success:
            raise ReportError(f"server rejected report with status code: {response.status_code}")

        logger.debug(f"Report sent: endpoint={self.endpoint} metrics_count={len(payload.metrics)}")
