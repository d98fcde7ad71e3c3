"""
Aggregator 异常定义
"""


class MetricNotFoundError(LookupError):
    """指标定义不存在"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"metric not found: {name}")


class TokenError(Exception):
    """Token 无效（结构错误、签名不匹配或已过期）"""
