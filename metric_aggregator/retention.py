"""
数据清理任务

按 max(保留秒数 / 10, 60) 的间隔清理超过全局保留时长的历史值。
清理逻辑本身是 Database.cleanup_expired_values，可以同步调用；
后台任务在线程池中执行它。
"""

import asyncio
import logging

from fastapi.concurrency import run_in_threadpool

from .database import MetricStore

logger = logging.getLogger(__name__)

MIN_SWEEP_INTERVAL = 60


def sweep_interval(retention_seconds: int) -> int:
    """清理间隔（秒）"""
    return max(retention_seconds // 10, MIN_SWEEP_INTERVAL)


def run_sweep_once(db: MetricStore, retention_seconds: int) -> int:
    """执行一次清理，出错时只记录日志"""
    try:
        removed = db.cleanup_expired_values(retention_seconds)
    except Exception as e:
        logger.error(f"Retention cleanup error: {e}", exc_info=True)
        return 0

    if removed:
        logger.info(f"Retention cleanup removed {removed} value(s) older than {retention_seconds}s")
    else:
        logger.debug("Retention cleanup: nothing to remove")
    return removed


async def run_retention_sweep(db: MetricStore, retention_seconds: int, stop_event: asyncio.Event):
    """
    运行数据清理任务

    每个间隔执行一次清理，直到 stop_event 被置位。
    """
    interval = sweep_interval(retention_seconds)
    logger.info(f"Starting retention sweep (retention={retention_seconds}s, interval={interval}s)")

    while not stop_event.is_set():
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            # DELETE 可能耗时较长，放到线程池执行，不阻塞 API 请求
            await run_in_threadpool(run_sweep_once, db, retention_seconds)

    logger.info("Retention sweep stopped")
