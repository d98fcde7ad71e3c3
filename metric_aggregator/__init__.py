"""
Metric Aggregator - 指标聚合中心服务

负责：
- 接收 Agent 上报的指标并持久化
- 按指标保留窗口裁剪历史值
- 定期清理超过全局保留时间的数据
- 提供带认证的 REST API 给前端
"""

__version__ = "1.0.0"
