"""
主程序入口

启动两个并发任务：
1. REST API 服务
2. 数据清理任务

收到 SIGINT/SIGTERM 后停止接收新请求，在限定时间内等待进行中的请求完成，
再停止清理任务并释放数据库。
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from . import __version__
from .config import AggregatorSecrets, get_config
from .database import get_db
from .retention import run_retention_sweep


def setup_logging():
    """配置日志"""
    config = get_config()

    # 日志格式
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 获取日志级别
    level = getattr(logging, config.logging.level.upper(), logging.INFO)

    # 配置根日志
    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # 如果配置了文件日志
    if config.logging.file:
        log_path = Path(config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        logging.getLogger().addHandler(file_handler)

    # 降低第三方库日志级别
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def acquire_single_instance_lock(lock_path: Path):
    """
    防止误启动多个 Aggregator 实例（数据库只能有一个写入进程）。

    通过文件锁实现：同一台机器同一路径下只能有一个进程持锁。
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    handle = open(lock_path, "a+b")

    try:
        if os.name == "nt":
            import msvcrt  # type: ignore

            # 固定锁定首字节
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
        else:
            import fcntl  # type: ignore

            fcntl.flock(handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError as e:
        handle.close()
        raise RuntimeError(f"Another Metric Aggregator instance is already running (lock: {lock_path})") from e

    handle.seek(0)
    handle.truncate()
    handle.write(str(os.getpid()).encode("utf-8"))
    handle.flush()

    return handle


async def run_api_server(app: FastAPI):
    """运行 API 服务器，返回时已完成优雅关闭"""
    config = get_config()

    server_config = uvicorn.Config(
        app=app,
        host=config.api.host,
        port=config.api.port,
        log_level="info",
        access_log=False,  # 我们用自己的日志
        timeout_graceful_shutdown=config.api.shutdown_timeout
    )
    server = uvicorn.Server(server_config)
    await server.serve()


async def main():
    """主函数：启动所有任务"""
    from .api.app import create_app

    logger = logging.getLogger(__name__)

    # 设置日志
    setup_logging()
    logger.info("=" * 60)
    logger.info(f"Metric Aggregator v{__version__}")
    logger.info("=" * 60)

    # 加载配置
    config = get_config()
    logger.info(f"Config loaded: API={config.api.host}:{config.api.port}")
    logger.info(f"Database: {config.database.path}")

    try:
        secrets = AggregatorSecrets()
    except ValidationError as e:
        logger.error(f"Missing SERVICE_KEY / AUTH_USERNAME / AUTH_PASSWORD: {e}")
        return

    # 单实例锁：避免重复启动
    try:
        db_path = Path(config.database.path)
        lock_handle = acquire_single_instance_lock(db_path.parent / "metric-aggregator.lock")
    except Exception as e:
        logger.error(str(e))
        return

    # 初始化数据库
    db = get_db()
    logger.info(f"Database initialized: {db.db_path}")

    app = create_app(db=db, secrets=secrets, cors_origins=config.api.cors_origins)
    stop_event = asyncio.Event()
    sweeper = asyncio.create_task(run_retention_sweep(db, config.retention.seconds, stop_event))

    logger.info("Starting concurrent tasks...")

    try:
        await run_api_server(app)
    except asyncio.CancelledError:
        logger.info("Tasks cancelled, shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise
    finally:
        stop_event.set()
        await sweeper
        db.close()
        lock_handle.close()
        logger.info("Metric Aggregator stopped")


def cli():
    """命令行入口"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested, exiting...")
        sys.exit(0)


if __name__ == "__main__":
    cli()
