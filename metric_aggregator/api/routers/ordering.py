"""
显示顺序 API

面板顺序（按指标名第一段分组）和单个指标的顺序。
"""

from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status

from ...database import MetricStore
from ...models import OkResponse, OrderUpdate
from ..dependencies import get_database, json_body, require_token

router = APIRouter(prefix="/api/config", tags=["ordering"], dependencies=[Depends(require_token)])


@router.get("/panels", response_model=Dict[str, int])
def get_panel_orders(db: MetricStore = Depends(get_database)):
    """获取所有面板的显示顺序"""
    try:
        return db.get_panel_orders()
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.post("/panels", response_model=OkResponse)
def update_panel_order(
    data: OrderUpdate = Depends(json_body(OrderUpdate)),
    db: MetricStore = Depends(get_database)
):
    """设置面板显示顺序"""
    try:
        db.update_panel_order(data.name, data.order)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return OkResponse()


@router.post("/metrics/order", response_model=OkResponse)
def update_metric_order(
    data: OrderUpdate = Depends(json_body(OrderUpdate)),
    db: MetricStore = Depends(get_database)
):
    """设置指标显示顺序"""
    try:
        db.update_metric_order(data.name, data.order)
    except Exception as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return OkResponse()
