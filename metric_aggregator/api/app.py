"""
FastAPI 应用配置

配置 CORS、请求校验错误处理、路由注册。
"""

import logging
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..auth import TokenManager
from ..config import AggregatorSecrets, get_config
from ..database import MetricStore, get_db
from .routers import auth, metrics, ordering, report

logger = logging.getLogger(__name__)


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "invalid payload"}
    )


def create_app(
    db: Optional[MetricStore] = None,
    secrets: Optional[AggregatorSecrets] = None,
    cors_origins: Optional[List[str]] = None
) -> FastAPI:
    """
    创建 FastAPI 应用实例

    每次调用都会生成新的 Token 签名密钥，相当于一次进程重启。

    Args:
        db: 指标存储，默认使用全局数据库
        secrets: Service Key 与登录凭据，默认从环境变量读取
        cors_origins: 允许的跨域来源，默认取配置
    """
    if db is None:
        db = get_db()
    if secrets is None:
        secrets = AggregatorSecrets()
    if cors_origins is None:
        cors_origins = get_config().api.cors_origins

    app = FastAPI(
        title="Metric Aggregator",
        description="指标聚合和 API 服务",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json"
    )

    app.state.db = db
    app.state.secrets = secrets
    app.state.tokens = TokenManager(secrets.service_key)

    # CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    # 注册路由
    app.include_router(report.router)
    app.include_router(auth.router)
    app.include_router(metrics.router)
    app.include_router(ordering.router)

    return app
