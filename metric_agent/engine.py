"""
Agent 调度引擎

每个周期：并发轮询 → 上报。启动时立即执行一次，之后按固定间隔执行，
直到收到停止信号。
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from metric_agent.config import AgentConfig
from metric_agent.errors import ReportError
from metric_agent.poller import Poller
from metric_agent.reporter import Reporter

logger = logging.getLogger(__name__)


class AgentEngine:
    """编排一次完整的轮询 + 上报周期"""

    def __init__(self, config: AgentConfig, poller: Optional[Poller], reporter: Optional[Reporter]):
        if poller is None:
            raise ValueError("nil poller")
        if reporter is None:
            raise ValueError("nil reporter")

        self.config = config
        self.poller = poller
        self.reporter = reporter

    async def process(self):
        """
        执行一个周期

        轮询和上报各自有独立的超时；任何失败都只记录日志，不向外抛出。
        """
        logger.debug(f"Waking up to poll {len(self.config.endpoints)} endpoint(s)")

        results = await self.poller.poll_all(
            self.config.endpoints,
            deadline=self.config.poll_timeout_seconds
        )
        logger.debug(f"Finished polling: {len(results)} successful result(s)")

        try:
            await asyncio.wait_for(
                self.reporter.report(results),
                timeout=self.config.report_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning("Report timed out, metrics will be discarded")
        except ReportError as e:
            logger.warning(f"Failed to report metrics, they will be discarded: {e}")


async def run_periodically(
    handler: Callable[[], Awaitable[None]],
    interval: float,
    stop_event: asyncio.Event
):
    """
    周期执行 handler

    立即执行一次，之后每次执行结束后等待 interval 秒再执行，
    stop_event 被置位后不再开始新的周期。
    """
    logger.info(f"Starting scheduling loop (interval={interval}s)")

    while not stop_event.is_set():
        try:
            await handler()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Cycle error: {e}", exc_info=True)

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass

    logger.info("Scheduling loop stopped")
