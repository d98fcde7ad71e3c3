"""
指标查询 API

提供最新值列表、单个指标历史和删除操作。

存储调用是阻塞的 SQLite 操作，路由写成同步函数，由 FastAPI 放到线程池执行。
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...database import MetricStore
from ...errors import MetricNotFoundError
from ...models import LatestMetric, LatestMetricsResponse, MetricHistory, OkResponse
from ..dependencies import get_database, require_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/metrics", tags=["metrics"], dependencies=[Depends(require_token)])


@router.get("", response_model=LatestMetricsResponse)
def list_metrics(db: MetricStore = Depends(get_database)):
    """
    获取所有指标的最新值

    已被全局清理清空的指标（没有任何值）不出现在列表中。
    """
    try:
        results = db.get_latest_metrics()
    except Exception as e:
        logger.error(f"Failed to load latest metrics: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    metrics = []
    for item in results:
        latest = item.latest
        if latest is None:
            continue
        metrics.append(LatestMetric(
            name=item.name,
            value=latest.value,
            type=item.type,
            num_aggregation=item.num_aggregation,
            recorded_at=latest.recorded_at,
            display_order=item.display_order
        ))

    return LatestMetricsResponse(metrics=metrics)


@router.get("/{name}/history", response_model=MetricHistory)
def get_metric_history(name: str, db: MetricStore = Depends(get_database)):
    """获取单个指标的全部保留值（按时间升序）"""
    try:
        return db.get_metric_history(name)
    except MetricNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="metric not found")
    except Exception as e:
        logger.error(f"Failed to load history for {name}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.delete("/{name}", response_model=OkResponse)
def delete_metric(name: str, db: MetricStore = Depends(get_database)):
    """删除指标及其全部历史值（幂等）"""
    try:
        db.delete_metric(name)
    except Exception as e:
        logger.error(f"Failed to delete metric {name}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    logger.info(f"Deleted metric {name}")
    return OkResponse()
