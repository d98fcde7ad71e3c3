"""
配置加载模块

从 config.yaml 加载配置，支持 Pydantic 验证；敏感信息从环境变量或 .env 读取。
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """数据库配置"""
    path: str = "data/metrics.db"
    timeout: int = 30


class APIConfig(BaseModel):
    """API 服务配置"""
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: List[str] = ["http://localhost:8080", "http://127.0.0.1:8080"]
    shutdown_timeout: int = 5


class RetentionConfig(BaseModel):
    """数据保留策略"""
    seconds: int = Field(default=86400, ge=1)


class LoggingConfig(BaseModel):
    """日志配置"""
    level: str = "INFO"
    file: Optional[str] = None


class AppConfig(BaseModel):
    """应用配置（完整配置）"""
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class AggregatorSecrets(BaseSettings):
    """敏感配置（环境变量 / .env）"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    service_key: str = Field(..., min_length=1, description="Agent 上报使用的共享 Key")
    auth_username: str = Field(..., min_length=1, description="前端登录用户名")
    auth_password: str = Field(..., min_length=1, description="前端登录密码")


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    加载配置文件

    优先级：
    1. 参数指定的路径
    2. 环境变量 METRIC_AGGREGATOR_CONFIG
    3. 当前目录下的 config.yaml

    配置文件中的相对路径以配置文件所在目录为基准。
    """
    if config_path is None:
        config_path = os.environ.get("METRIC_AGGREGATOR_CONFIG", "config.yaml")

    config_file = Path(config_path)

    if config_file.exists():
        with open(config_file, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
            if raw_config:
                base_dir = config_file.resolve().parent

                def _resolve_path(value: Optional[str]) -> Optional[str]:
                    if not value:
                        return value
                    path = Path(value)
                    if path.is_absolute():
                        return str(path)
                    return str((base_dir / path).resolve())

                raw_config.setdefault("database", {})
                if raw_config["database"].get("path"):
                    raw_config["database"]["path"] = _resolve_path(raw_config["database"]["path"])

                raw_config.setdefault("logging", {})
                raw_config["logging"]["file"] = _resolve_path(raw_config["logging"].get("file"))

                return AppConfig(**raw_config)

    # 配置文件不存在时使用默认配置
    return AppConfig()


# 全局配置实例（延迟加载）
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """获取全局配置实例（单例模式）"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config():
    """重置配置（主要用于测试）"""
    global _config
    _config = None
