"""
Agent 上报 API

接收 Agent 的批量指标报文，逐个写入存储。
"""

import logging
import time

from fastapi import APIRouter, Depends, Request

from ...database import MetricStore
from ...models import OkResponse, ReportRequest
from ..dependencies import get_database, json_body, verify_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["report"])


@router.post("/report", response_model=OkResponse, dependencies=[Depends(verify_api_key)])
def report_metrics(
    request: Request,
    payload: ReportRequest = Depends(json_body(ReportRequest)),
    db: MetricStore = Depends(get_database)
):
    """
    保存 Agent 上报的指标

    同一报文中的所有指标使用同一个 recorded_at。单个指标保存失败只记录日志，
    不影响其余指标，也不改变响应。
    """
    recorded_at = int(time.time())

    sender = request.client.host if request.client else "unknown"
    logger.debug(f"Received report from {sender}: {len(payload.metrics)} metric(s)")

    for name, metric in payload.metrics.items():
        try:
            db.save_metric(name, metric.type, metric.num_aggregation, metric.value, recorded_at)
        except Exception as e:
            logger.warning(f"Failed to save metric {name}: {e}")

    return OkResponse()
