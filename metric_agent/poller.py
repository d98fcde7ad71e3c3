"""
端点轮询器

每轮并发请求所有配置的端点，提取指标值。失败的端点（超时、非 2xx、
路径不存在等）只记录日志并从结果中省略，不会影响其他端点。
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import httpx

from metric_agent.config import EndpointConfig
from metric_agent.errors import PollError, StatusNotOKError
from metric_agent.extractor import extract_value
from metric_agent.models import MetricResult

logger = logging.getLogger(__name__)


class Poller(ABC):
    """轮询器接口"""

    @abstractmethod
    async def poll_all(
        self,
        endpoints: List[EndpointConfig],
        deadline: Optional[float] = None
    ) -> Dict[str, MetricResult]:
        """
        并发轮询所有端点

        Args:
            endpoints: 端点配置列表
            deadline: 整轮截止时间（秒），None 表示等待全部完成

        Returns:
            {指标名: MetricResult}，失败的端点不在其中
        """


class HTTPPoller(Poller):
    """基于 httpx 的轮询器"""

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            timeout: 单个端点请求超时（秒）
            transport: 自定义 httpx transport（测试时注入 MockTransport）
        """
        self.timeout = timeout
        self._transport = transport

    async def poll_all(
        self,
        endpoints: List[EndpointConfig],
        deadline: Optional[float] = None
    ) -> Dict[str, MetricResult]:
        results: Dict[str, MetricResult] = {}
        if not endpoints:
            return results

        lock = asyncio.Lock()

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            tasks = [
                asyncio.create_task(self._collect(client, endpoint, results, lock))
                for endpoint in endpoints
            ]
            _, pending = await asyncio.wait(tasks, timeout=deadline)

            if pending:
                logger.warning(f"Poll deadline reached, cancelling {len(pending)} pending endpoint(s)")
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

        async with lock:
            return dict(results)

    async def _collect(
        self,
        client: httpx.AsyncClient,
        endpoint: EndpointConfig,
        results: Dict[str, MetricResult],
        lock: asyncio.Lock
    ):
        """轮询单个端点，成功时写入结果表"""
        try:
            value = await asyncio.wait_for(self.poll_endpoint(client, endpoint), self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Endpoint poll timed out: name={endpoint.name} url={endpoint.url}")
            return
        except (httpx.HTTPError, PollError, ValueError) as e:
            logger.warning(f"Endpoint poll failed: name={endpoint.name} url={endpoint.url} error={e}")
            return

        async with lock:
            results[endpoint.name] = MetricResult(config=endpoint, value=value)

    async def poll_endpoint(self, client: httpx.AsyncClient, endpoint: EndpointConfig) -> str:
        """
        请求单个端点并提取值

        Raises:
            StatusNotOKError: 非 2xx 响应
            PathNotFoundError: 取值路径不存在
            httpx.HTTPError: 网络错误
            ValueError: 响应不是合法 JSON
        """
        response = await client.get(endpoint.url)
        if not response.is_success:
            raise StatusNotOKError(response.status_code)

        return extract_value(response.json(), endpoint.value)
