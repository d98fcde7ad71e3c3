"""
数据模型定义

包括：
- 存储层返回的指标定义与历史值
- API 请求/响应模型（JSON 字段使用 camelCase，与 Agent 报文保持一致）
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# 存储模型
# =============================================================================

class MetricValue(_CamelModel):
    """单个历史值"""
    value: str
    recorded_at: int = Field(..., alias="recordedAt")


class MetricHistory(_CamelModel):
    """指标定义 + 保留的历史值"""
    name: str
    type: str
    num_aggregation: int = Field(..., alias="numAggregation")
    display_order: int = Field(default=0, alias="displayOrder")
    history: List[MetricValue] = Field(default_factory=list)

    @property
    def latest(self) -> Optional[MetricValue]:
        """最新值（get_latest_metrics 返回的 history 至多一个元素）"""
        return self.history[-1] if self.history else None


# =============================================================================
# Agent 上报
# =============================================================================

class ReportedMetric(_CamelModel):
    """上报报文中的单个指标"""
    value: str
    type: str
    num_aggregation: int = Field(..., alias="numAggregation")


class ReportRequest(BaseModel):
    """POST /api/report 请求"""
    metrics: Dict[str, ReportedMetric]


# =============================================================================
# 前端 API
# =============================================================================

class LoginRequest(BaseModel):
    """POST /api/auth/login 请求"""
    username: str
    password: str


class LoginResponse(BaseModel):
    token: str


class LatestMetric(_CamelModel):
    """GET /api/metrics 列表项"""
    name: str
    value: str
    type: str
    num_aggregation: int = Field(..., alias="numAggregation")
    recorded_at: int = Field(..., alias="recordedAt")
    display_order: int = Field(default=0, alias="displayOrder")


class LatestMetricsResponse(BaseModel):
    metrics: List[LatestMetric] = Field(default_factory=list)


class OrderUpdate(BaseModel):
    """排序更新请求（面板或指标）"""
    name: str = Field(..., min_length=1)
    order: int


class OkResponse(BaseModel):
    ok: bool = True
