"""
配置管理模块

从 YAML 文件加载配置，Service Key 从环境变量或 .env 文件读取
"""

import os
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EndpointConfig(BaseModel):
    """单个端点轮询规则"""

    name: str = Field(..., min_length=1, description="指标名称（全局唯一，如 VM1.Node1.nonce）")
    url: str = Field(..., description="轮询的 HTTP 地址")
    value: str = Field(..., min_length=1, description="JSON 响应中的取值路径（点分隔）")
    type: Literal["uint64", "string", "bool"] = Field(default="string", description="指标类型")
    num_aggregation: int = Field(default=1, ge=1, description="Aggregator 保留的历史值个数")


class LoggingConfig(BaseModel):
    """日志配置"""
    level: str = "INFO"
    file: Optional[str] = None


class AgentConfig(BaseModel):
    """Agent 配置模型"""

    name: str = Field(..., min_length=1, description="Agent 名称，同时作为心跳指标前缀")
    query_interval_seconds: int = Field(default=60, ge=1, description="轮询间隔（秒）")
    report_endpoint: str = Field(..., description="Aggregator 上报地址")
    report_timeout_seconds: float = Field(default=10, gt=0, description="上报超时（秒）")
    poll_timeout_seconds: float = Field(default=30, gt=0, description="整轮轮询的截止时间（秒）")
    request_timeout_seconds: float = Field(default=10, gt=0, description="单个端点请求超时（秒）")
    endpoints: List[EndpointConfig] = Field(default_factory=list, description="端点列表")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("endpoints")
    @classmethod
    def _unique_names(cls, endpoints: List[EndpointConfig]) -> List[EndpointConfig]:
        seen = set()
        for endpoint in endpoints:
            if endpoint.name in seen:
                raise ValueError(f"duplicate endpoint name: {endpoint.name}")
            seen.add(endpoint.name)
        return endpoints

    @model_validator(mode="after")
    def _timeouts_within_interval(self) -> "AgentConfig":
        # 子超时必须小于轮询间隔，保证周期之间不会重叠
        interval = self.query_interval_seconds
        if self.poll_timeout_seconds >= interval:
            raise ValueError("poll_timeout_seconds must be smaller than query_interval_seconds")
        if self.report_timeout_seconds >= interval:
            raise ValueError("report_timeout_seconds must be smaller than query_interval_seconds")
        if self.request_timeout_seconds > self.poll_timeout_seconds:
            raise ValueError("request_timeout_seconds must not exceed poll_timeout_seconds")
        return self


class AgentSecrets(BaseSettings):
    """敏感配置（环境变量 / .env）"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    service_key: str = Field(..., min_length=1, description="与 Aggregator 共享的静态 Key")


def load_config(config_path: Optional[str] = None) -> AgentConfig:
    """
    加载配置文件

    Args:
        config_path: 配置文件路径，默认读取环境变量 METRIC_AGENT_CONFIG，
            其次为当前目录下的 config.yaml

    Returns:
        AgentConfig 实例
    """
    if config_path is None:
        config_path = os.getenv("METRIC_AGENT_CONFIG", "config.yaml")

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_file, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    return AgentConfig(**config_data)


# 全局配置实例（延迟加载）
_config: Optional[AgentConfig] = None


def get_config() -> AgentConfig:
    """获取全局配置实例"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config():
    """重置配置（主要用于测试）"""
    global _config
    _config = None
