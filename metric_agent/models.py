"""
数据模型定义

- MetricResult: 单次轮询结果（仅在内存中流转）
- ReportPayload: 上报给 Aggregator 的报文
"""

from dataclasses import dataclass
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from metric_agent.config import EndpointConfig


@dataclass
class MetricResult:
    """某个端点本轮提取到的值"""
    config: EndpointConfig
    value: str


class MetricPayload(BaseModel):
    """单个指标的上报内容"""
    model_config = ConfigDict(populate_by_name=True)

    value: str
    type: str
    num_aggregation: int = Field(..., alias="numAggregation")


class ReportPayload(BaseModel):
    """上报报文：{"metrics": {name: MetricPayload}}"""
    metrics: Dict[str, MetricPayload] = Field(default_factory=dict)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
