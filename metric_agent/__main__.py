"""
Metric Agent 主程序入口

使用方式:
    python -m metric_agent [config.yaml]
    或
    metric-agent [config.yaml]
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from metric_agent import __version__
from metric_agent.config import AgentConfig, AgentSecrets, load_config
from metric_agent.engine import AgentEngine, run_periodically
from metric_agent.poller import HTTPPoller
from metric_agent.reporter import HTTPReporter

logger = logging.getLogger("metric_agent")


def setup_logging(config: AgentConfig):
    """配置日志"""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    level = getattr(logging, config.logging.level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    if config.logging.file:
        log_path = Path(config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format))
        logging.getLogger().addHandler(file_handler)

    # 降低第三方库日志级别
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_engine(config: AgentConfig, secrets: AgentSecrets) -> AgentEngine:
    """组装轮询器、上报器和引擎"""
    poller = HTTPPoller(timeout=config.request_timeout_seconds)
    reporter = HTTPReporter(
        endpoint=config.report_endpoint,
        api_key=secrets.service_key,
        agent_name=config.name,
        timeout=config.report_timeout_seconds,
    )
    return AgentEngine(config, poller, reporter)


async def run(config: AgentConfig, secrets: AgentSecrets):
    """运行调度循环，直到收到 SIGINT/SIGTERM"""
    engine = build_engine(config, secrets)
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows 不支持，依赖 KeyboardInterrupt
            pass

    logger.info(f"Metric Agent v{__version__} started: name={config.name} endpoints={len(config.endpoints)}")
    await run_periodically(engine.process, config.query_interval_seconds, stop_event)
    logger.info("Metric Agent stopped")


def main(config_path: Optional[str] = None):
    """主程序入口"""
    if config_path is None and len(sys.argv) > 1:
        config_path = sys.argv[1]

    try:
        config = load_config(config_path)
        secrets = AgentSecrets()
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Please create config.yaml or set METRIC_AGENT_CONFIG", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)

    try:
        asyncio.run(run(config, secrets))
    except KeyboardInterrupt:
        print("\nShutdown requested, exiting...")


if __name__ == "__main__":
    main()
