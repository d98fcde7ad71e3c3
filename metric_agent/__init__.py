"""
Metric Agent - 端点指标采集代理

负责：
- 按固定间隔并发轮询本地 HTTP 端点
- 从 JSON 响应中按路径提取指标值
- 附加心跳指标后统一上报到 Aggregator
"""

__version__ = "1.0.0"
